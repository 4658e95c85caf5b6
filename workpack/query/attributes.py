"""
Registry of work package attributes usable for sorting, grouping and sums.

Column accessors take the work package entity as argument so the same
definitions work on the WorkPackage table and on an aliased subquery of it.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from workpack.projects.models import Project, User
from workpack.query.errors import InvalidQueryError
from workpack.query.schemas import SumFormat
from workpack.work_packages.models import Priority, Status

ColumnsOf = Callable[[Any], Tuple[Any, ...]]
# (target, onclause builder) for attributes living on a related table
JoinSpec = Tuple[Any, Callable[[Any], Any]]


@dataclass(frozen=True)
class QueryAttribute:
    """A work package attribute as seen by the query API."""

    name: str
    title: str
    sort_columns: ColumnsOf
    join: Optional[JoinSpec] = None
    groupable: bool = False
    # Grouping: the key identifying a group, the columns needed to show it
    group_key: Optional[Callable[[Any], Any]] = None
    value_columns: Optional[ColumnsOf] = None
    display: Callable[..., Any] = lambda value, *rest: value
    link_template: Optional[str] = None

    def group_order(self, wp) -> List[Any]:
        """Natural group order with the null group last. Shared by grouping and element ordering."""
        key = self.group_key(wp)
        return [key.is_(None), *self.sort_columns(wp), key]

    def link_for(self, key: Any) -> Optional[str]:
        if self.link_template is None or key is None:
            return None
        return self.link_template.format(key)


@dataclass(frozen=True)
class SumAttribute:
    """A summable attribute and the wire format of its sum."""

    name: str
    expression: Callable[[Any], Any]
    format_type: SumFormat


def _user_name(firstname, lastname, login=None):
    name = f"{firstname or ''} {lastname or ''}".strip()
    return name or login


def _iso(value):
    return value.isoformat() if value is not None else None


_ATTRIBUTES: List[QueryAttribute] = [
    QueryAttribute("id", "ID", lambda wp: (wp.id,)),
    QueryAttribute("subject", "Subject", lambda wp: (wp.subject,)),
    QueryAttribute(
        "priority", "Priority", lambda wp: (Priority.position,),
        join=(Priority, lambda wp: Priority.id == wp.priority_id),
        groupable=True,
        group_key=lambda wp: Priority.id,
        value_columns=lambda wp: (Priority.name,),
        link_template="/api/v3/priorities/{}",
    ),
    QueryAttribute(
        "status", "Status", lambda wp: (Status.position,),
        join=(Status, lambda wp: Status.id == wp.status_id),
        groupable=True,
        group_key=lambda wp: Status.id,
        value_columns=lambda wp: (Status.name,),
        link_template="/api/v3/statuses/{}",
    ),
    QueryAttribute(
        "project", "Project", lambda wp: (Project.name,),
        join=(Project, lambda wp: Project.id == wp.project_id),
        groupable=True,
        group_key=lambda wp: Project.id,
        value_columns=lambda wp: (Project.name,),
        link_template="/api/v3/projects/{}",
    ),
    QueryAttribute(
        "assignee", "Assignee", lambda wp: (User.firstname, User.lastname, User.login),
        join=(User, lambda wp: User.id == wp.assignee_id),
        groupable=True,
        group_key=lambda wp: User.id,
        value_columns=lambda wp: (User.firstname, User.lastname, User.login),
        display=_user_name,
        link_template="/api/v3/users/{}",
    ),
    QueryAttribute(
        "startDate", "Start date", lambda wp: (wp.start_date,),
        groupable=True,
        group_key=lambda wp: wp.start_date,
        value_columns=lambda wp: (wp.start_date,),
        display=_iso,
    ),
    QueryAttribute(
        "dueDate", "Finish date", lambda wp: (wp.due_date,),
        groupable=True,
        group_key=lambda wp: wp.due_date,
        value_columns=lambda wp: (wp.due_date,),
        display=_iso,
    ),
    QueryAttribute("estimatedTime", "Work", lambda wp: (wp.estimated_hours,)),
    QueryAttribute("createdAt", "Created on", lambda wp: (wp.created_at,)),
    QueryAttribute("updatedAt", "Updated on", lambda wp: (wp.updated_at,)),
]

ATTRIBUTES: Dict[str, QueryAttribute] = {a.name: a for a in _ATTRIBUTES}

SUM_ATTRIBUTES: List[SumAttribute] = [
    SumAttribute("estimatedTime", lambda wp: wp.estimated_hours, SumFormat.DURATION),
    SumAttribute("laborCosts", lambda wp: wp.labor_costs, SumFormat.CURRENCY),
    SumAttribute("materialCosts", lambda wp: wp.material_costs, SumFormat.CURRENCY),
    SumAttribute("overallCosts", lambda wp: wp.labor_costs + wp.material_costs, SumFormat.CURRENCY),
    SumAttribute("remainingTime", lambda wp: wp.remaining_hours, SumFormat.DURATION),
    SumAttribute("storyPoints", lambda wp: wp.story_points, SumFormat.INTEGER),
]


def sortable_attribute(name: str) -> QueryAttribute:
    attribute = ATTRIBUTES.get(name)
    if attribute is None:
        raise InvalidQueryError(f"Cannot sort by '{name}'", field="sortBy")
    return attribute


def groupable_attribute(name: str) -> QueryAttribute:
    attribute = ATTRIBUTES.get(name)
    if attribute is None or not attribute.groupable:
        raise InvalidQueryError(f"Cannot group by '{name}'", field="groupBy")
    return attribute
