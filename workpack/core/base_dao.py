# workpack/core/base_dao.py
"""Generic base DAO for common read operations."""

from typing import Generic, TypeVar, Optional, Any, Type
from sqlalchemy.orm import Session
from sqlalchemy import select
from abc import ABC
from workpack.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)

# Largest value an INTEGER column holds
MAX_ID = 2**63 - 1


def parse_id(raw: Any) -> Optional[int]:
    """Parse a record id from untrusted text. None when the text cannot name a record."""
    text = str(raw).strip()
    if not text.isdecimal():
        return None
    value = int(text)
    return value if value <= MAX_ID else None


class BaseDAO(Generic[ModelType], ABC):
    """Generic DAO for common database operations."""

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> Optional[ModelType]:
        """Get record by ID."""
        return self.db.get(self.model, id)

    def get_by_field(self, field_name: str, value: Any) -> Optional[ModelType]:
        """Get single record by field value."""
        if not hasattr(self.model, field_name):
            return None

        query = select(self.model).where(getattr(self.model, field_name) == value)
        return self.db.execute(query).scalars().first()
