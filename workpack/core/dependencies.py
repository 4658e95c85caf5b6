# workpack/core/dependencies.py
"""Shared FastAPI dependencies."""

from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from workpack.core.base_dao import parse_id
from workpack.core.database import get_db
from workpack.projects.dao import UserDAO
from workpack.projects.models import User

# Core database dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    db: SessionDep,
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> Optional[User]:
    """
    The viewer of the request, identified by the X-User-Id header.

    A missing or malformed header, an unknown id and a locked user all make
    the request anonymous.
    """
    user_id = parse_id(x_user_id) if x_user_id is not None else None
    if user_id is None:
        return None
    return UserDAO(db).get_active(user_id)


CurrentUserDep = Annotated[Optional[User], Depends(get_current_user)]
