"""Database models for work packages and their enumerations."""

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workpack.core.database import Base
from workpack.projects.models import Project, User


class RelationType(str, enum.Enum):
    """Supported relation types between two work packages."""
    RELATES = "relates"
    BLOCKS = "blocks"
    PRECEDES = "precedes"


class Priority(Base):
    __tablename__ = "priorities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Status(Base):
    __tablename__ = "statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class WorkPackage(Base):
    """A unit of work inside a project."""

    __tablename__ = "work_packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False, index=True)
    priority_id: Mapped[int] = mapped_column(ForeignKey("priorities.id"), nullable=False)
    status_id: Mapped[int] = mapped_column(ForeignKey("statuses.id"), nullable=False)
    assignee_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("work_packages.id"), nullable=True)

    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Summable values; hours and points are optional, costs always have a value
    estimated_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    remaining_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    story_points: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    labor_costs: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    material_costs: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    schedule_manually: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now, onupdate=datetime.now
    )

    project: Mapped[Project] = relationship()
    priority: Mapped[Priority] = relationship()
    status: Mapped[Status] = relationship()
    assignee: Mapped[Optional[User]] = relationship()
    parent: Mapped[Optional["WorkPackage"]] = relationship(remote_side=[id])


class Relation(Base):
    """Directed relation between two work packages."""

    __tablename__ = "relations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    from_id: Mapped[int] = mapped_column(ForeignKey("work_packages.id"), nullable=False, index=True)
    to_id: Mapped[int] = mapped_column(ForeignKey("work_packages.id"), nullable=False, index=True)
    relation_type: Mapped[RelationType] = mapped_column(SQLEnum(RelationType), nullable=False)
