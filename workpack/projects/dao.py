"""Data Access Objects for users and projects."""

from typing import Dict, List, Optional, Set
from sqlalchemy import select
from sqlalchemy.orm import Session

from workpack.core.base_dao import BaseDAO, parse_id
from workpack.projects.models import Member, Project, Role, User


class UserDAO(BaseDAO[User]):
    """DAO for users."""

    def __init__(self, db_session: Session):
        super().__init__(User, db_session)

    def get_active(self, user_id: int) -> Optional[User]:
        user = self.get_by_id(user_id)
        return user if user is not None and user.active else None


class ProjectDAO(BaseDAO[Project]):
    """DAO for projects and the memberships that grant access to them."""

    def __init__(self, db_session: Session):
        super().__init__(Project, db_session)

    def get_by_id_or_identifier(self, id_or_identifier: str) -> Optional[Project]:
        """Projects are addressed either by numeric id or by identifier."""
        if str(id_or_identifier).strip().isdecimal():
            project_id = parse_id(id_or_identifier)
            return self.get_by_id(project_id) if project_id is not None else None
        return self.get_by_field("identifier", id_or_identifier)

    def get_active(self) -> List[Project]:
        query = select(Project).where(Project.active.is_(True)).order_by(Project.name, Project.id)
        return list(self.db.execute(query).scalars().all())

    def get_member_permissions(self, user_id: int) -> Dict[int, Set[str]]:
        """Map of project id to the permissions the user holds there through memberships."""
        query = (
            select(Member.project_id, Role.permissions)
            .join(Role, Role.id == Member.role_id)
            .where(Member.user_id == user_id)
        )
        permissions: Dict[int, Set[str]] = {}
        for project_id, role_permissions in self.db.execute(query).all():
            permissions.setdefault(project_id, set()).update(role_permissions or [])
        return permissions
