"""Database models for users, roles, projects and memberships."""

from typing import List, Optional
from sqlalchemy import Boolean, ForeignKey, Integer, String, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workpack.core.database import Base


class User(Base):
    """A principal that can be a project member and a work package assignee."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    login: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    firstname: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    lastname: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    memberships: Mapped[List["Member"]] = relationship(back_populates="user")

    @property
    def name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip() or self.login


class Role(Base):
    """A named set of permissions granted through a membership."""

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    permissions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def allows(self, permission: str) -> bool:
        return permission in (self.permissions or [])


class Project(Base):
    """Project node; projects form a tree through parent_id."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    identifier: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("projects.id"), nullable=True)
    public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    parent: Mapped[Optional["Project"]] = relationship(remote_side=[id], back_populates="children")
    children: Mapped[List["Project"]] = relationship(back_populates="parent")
    members: Mapped[List["Member"]] = relationship(back_populates="project")


class Member(Base):
    """Membership of a user in a project through a role."""

    __tablename__ = "members"
    __table_args__ = (UniqueConstraint("user_id", "project_id", name="uq_member_user_project"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.id"), nullable=False)

    user: Mapped["User"] = relationship(back_populates="memberships")
    project: Mapped["Project"] = relationship(back_populates="members")
    role: Mapped["Role"] = relationship()
