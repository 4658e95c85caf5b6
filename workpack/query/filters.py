"""
Work package filters.

A Filter is a plain value (name, operator, values). What a filter name means
is described by a FilterDefinition: the filter kind, the column it restricts
and the operators it accepts. Kinds are dispatched through lookup tables
rather than subclasses, so adding a kind means adding one operator set and
one condition builder.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import and_, exists, func, not_, or_, select
from sqlalchemy.sql import Select

from workpack.core.base_dao import MAX_ID, parse_id
from workpack.query.errors import InvalidFilterError
from workpack.work_packages.models import Relation, RelationType, Status, WorkPackage


class FilterKind(str, Enum):
    """Value types a filter can restrict."""

    LIST = "list"
    STRING = "string"
    DATE = "date"
    BOOLEAN = "boolean"
    RELATION = "relation"


# Operators as they appear on the wire:
#   =  is, !  is not, *  any value, !*  no value, ~  contains, !~  doesn't contain,
#   ** subject or id search, o  open, c  closed, <>d  between, =d  on,
#   t  today, <t+ / >t+  in less / more than n days, <t- / >t-  less / more than n days ago
UNARY_OPERATORS = frozenset({"*", "!*", "o", "c", "t"})

KIND_OPERATORS: Dict[FilterKind, Tuple[str, ...]] = {
    FilterKind.LIST: ("=", "!", "*", "!*"),
    FilterKind.STRING: ("~", "!~", "**", "*", "!*"),
    FilterKind.DATE: ("<>d", "=d", "t", "<t+", ">t+", "<t-", ">t-", "*", "!*"),
    FilterKind.BOOLEAN: ("=", "!"),
    FilterKind.RELATION: ("=", "!"),
}


@dataclass(frozen=True)
class Filter:
    """A single attribute-scoped predicate: name, operator and values."""

    name: str
    operator: str
    values: Tuple[str, ...] = ()

    def __post_init__(self):
        # Unary operators never carry values
        values = () if self.operator in UNARY_OPERATORS else tuple(str(v) for v in self.values)
        object.__setattr__(self, "values", values)

    def with_values(self, values: Iterable[Any]) -> "Filter":
        return Filter(self.name, self.operator, tuple(values))

    def with_operator(self, operator: str) -> "Filter":
        return Filter(self.name, operator, self.values)

    def to_wire(self) -> Dict[str, Dict[str, Any]]:
        return {self.name: {"operator": self.operator, "values": list(self.values)}}

    def validate(self, definition: "FilterDefinition") -> None:
        """Check the operator against the definition and the values against its kind."""
        if self.operator not in definition.operators:
            raise InvalidFilterError(
                self.name,
                f"Operator '{self.operator}' is not valid for filter '{self.name}'. "
                f"Valid operators: {', '.join(definition.operators)}",
            )
        if self.operator in UNARY_OPERATORS:
            return
        if not self.values:
            raise InvalidFilterError(self.name, f"Filter '{self.name}' requires at least one value")
        _VALUE_VALIDATORS[definition.kind](self)

    def apply(self, query: Select, definition: "FilterDefinition", today: Optional[date] = None) -> Select:
        """Narrow the query by this filter's condition."""
        return query.where(definition.condition(self, today or date.today()))


# ===== VALUE VALIDATION =====


def _parse_int(flt: Filter, value: str) -> int:
    try:
        number = int(value.strip())
    except (TypeError, ValueError):
        raise InvalidFilterError(flt.name, f"Value '{value}' of filter '{flt.name}' is not an integer") from None
    if abs(number) > MAX_ID:
        raise InvalidFilterError(flt.name, f"Value '{value}' of filter '{flt.name}' is out of range")
    return number


def _parse_date(flt: Filter, value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidFilterError(flt.name, f"Value '{value}' of filter '{flt.name}' is not an ISO 8601 date") from None


def _validate_ids(flt: Filter) -> None:
    for value in flt.values:
        _parse_int(flt, value)


def _validate_string(flt: Filter) -> None:
    if not flt.values[0].strip():
        raise InvalidFilterError(flt.name, f"Filter '{flt.name}' requires a non-blank value")


def _validate_date(flt: Filter) -> None:
    if flt.operator == "<>d":
        if len(flt.values) != 2:
            raise InvalidFilterError(flt.name, f"Filter '{flt.name}' requires a start and an end date")
        if not any(v.strip() for v in flt.values):
            raise InvalidFilterError(flt.name, f"Filter '{flt.name}' requires at least one bound")
        for value in flt.values:
            if value.strip():
                _parse_date(flt, value)
    elif flt.operator == "=d":
        if len(flt.values) != 1:
            raise InvalidFilterError(flt.name, f"Filter '{flt.name}' requires exactly one date")
        _parse_date(flt, flt.values[0])
    else:
        if len(flt.values) != 1 or _parse_int(flt, flt.values[0]) < 0:
            raise InvalidFilterError(flt.name, f"Filter '{flt.name}' requires a non-negative number of days")
        _date_range(flt, date.today())


def _validate_boolean(flt: Filter) -> None:
    if len(flt.values) != 1 or flt.values[0] not in ("t", "f"):
        raise InvalidFilterError(flt.name, f"Filter '{flt.name}' requires exactly one of 't' or 'f'")


_VALUE_VALIDATORS: Dict[FilterKind, Callable[[Filter], None]] = {
    FilterKind.LIST: _validate_ids,
    FilterKind.STRING: _validate_string,
    FilterKind.DATE: _validate_date,
    FilterKind.BOOLEAN: _validate_boolean,
    FilterKind.RELATION: _validate_ids,
}


# ===== CONDITION BUILDERS =====


def _ids(flt: Filter) -> List[int]:
    return [int(v.strip()) for v in flt.values]


def _set_conditions(column, flt: Filter):
    if flt.operator == "*":
        return column.isnot(None)
    if flt.operator == "!*":
        return column.is_(None)
    return None


def _list_condition(definition: "FilterDefinition", flt: Filter, today: date):
    column = definition.column
    unary = _set_conditions(column, flt)
    if unary is not None:
        return unary
    if flt.operator == "=":
        return column.in_(_ids(flt))
    # "!" keeps rows without a value at all
    if definition.nullable:
        return or_(column.notin_(_ids(flt)), column.is_(None))
    return column.notin_(_ids(flt))


def _string_condition(definition: "FilterDefinition", flt: Filter, today: date):
    column = definition.column
    if flt.operator == "*":
        return and_(column.isnot(None), column != "")
    if flt.operator == "!*":
        return or_(column.is_(None), column == "")
    contains = column.icontains(flt.values[0].strip(), autoescape=True)
    if flt.operator == "!~":
        return or_(not_(contains), column.is_(None))
    return contains


def _date_range(flt: Filter, today: date) -> Tuple[Optional[date], Optional[date]]:
    """Translate a date operator into an inclusive (from, to) range."""
    if flt.operator == "<>d":
        start, end = (v.strip() for v in flt.values)
        return (date.fromisoformat(start) if start else None, date.fromisoformat(end) if end else None)
    if flt.operator == "=d":
        day = date.fromisoformat(flt.values[0].strip())
        return day, day
    if flt.operator == "t":
        return today, today
    days = int(flt.values[0].strip())
    if flt.operator in ("<t+", ">t+"):
        shifted = _shift(flt, today, days)
        return (today, shifted) if flt.operator == "<t+" else (shifted, None)
    shifted = _shift(flt, today, -days)
    return (shifted, today) if flt.operator == "<t-" else (None, shifted)


def _shift(flt: Filter, today: date, days: int) -> date:
    try:
        return today + timedelta(days=days)
    except OverflowError:
        raise InvalidFilterError(flt.name, f"Filter '{flt.name}' reaches beyond the supported date range") from None


def _date_condition(definition: "FilterDefinition", flt: Filter, today: date):
    column = definition.column
    unary = _set_conditions(column, flt)
    if unary is not None:
        return unary
    start, end = _date_range(flt, today)
    conditions = []
    if start is not None:
        conditions.append(column >= start)
    if end is not None:
        conditions.append(column <= end)
    return and_(*conditions)


def _boolean_condition(definition: "FilterDefinition", flt: Filter, today: date):
    expected = flt.values[0] == "t"
    if flt.operator == "!":
        expected = not expected
    return definition.column == expected


def _relation_condition(definition: "FilterDefinition", flt: Filter, today: date):
    ids = _ids(flt)
    outgoing = and_(
        Relation.from_id == WorkPackage.id,
        Relation.to_id.in_(ids),
        Relation.relation_type == definition.relation_type,
    )
    if definition.relation_type == RelationType.RELATES:
        incoming = and_(
            Relation.to_id == WorkPackage.id,
            Relation.from_id.in_(ids),
            Relation.relation_type == definition.relation_type,
        )
        related = exists().where(or_(outgoing, incoming))
    else:
        related = exists().where(outgoing)
    return related if flt.operator == "=" else not_(related)


_KIND_CONDITIONS = {
    FilterKind.LIST: _list_condition,
    FilterKind.STRING: _string_condition,
    FilterKind.DATE: _date_condition,
    FilterKind.BOOLEAN: _boolean_condition,
    FilterKind.RELATION: _relation_condition,
}


# ===== DEFINITIONS =====


@dataclass(frozen=True)
class FilterDefinition:
    """What a filter name restricts and how."""

    name: str
    kind: FilterKind
    column: Any = None
    title: Optional[str] = None
    nullable: bool = False
    allowed_operators: Optional[Tuple[str, ...]] = None
    # Operators whose condition is not derived from the kind
    custom_conditions: Dict[str, Callable[[Filter, date], Any]] = field(default_factory=dict)
    relation_type: Optional[RelationType] = None

    @property
    def operators(self) -> Tuple[str, ...]:
        return self.allowed_operators or KIND_OPERATORS[self.kind]

    @property
    def human_name(self) -> str:
        return self.title or self.name

    def available(self, viewer) -> bool:
        return True

    def condition(self, flt: Filter, today: date):
        custom = self.custom_conditions.get(flt.operator)
        if custom is not None:
            return custom(flt, today)
        return _KIND_CONDITIONS[self.kind](self, flt, today)

    def to_schema(self) -> Dict[str, Any]:
        return {
            "id": self.name,
            "name": self.human_name,
            "kind": self.kind.value,
            "operators": list(self.operators),
        }


ProjectTree = Callable[[Sequence[Any]], Iterator[Tuple[Any, int]]]


@dataclass(frozen=True)
class ProjectFilter(FilterDefinition):
    """
    The project filter. Its values are project ids, restricted to the projects
    the viewer may see, which are offered as an indented tree.
    """

    visible_projects: Callable[[Any], Sequence[Any]] = lambda viewer: []
    project_tree: Optional[ProjectTree] = None

    def available(self, viewer) -> bool:
        return len(self.visible_projects(viewer)) > 0

    def allowed_values(self, viewer) -> List[Tuple[str, str]]:
        """Visible and active projects as (label, id) pairs, descendants indented by depth."""
        values = []
        for project, depth in self.project_tree(self.visible_projects(viewer)):
            label = f"{'--' * depth} {project.name}" if depth > 0 else project.name
            values.append((label, str(project.id)))
        return values

    def value_objects(self, viewer, values: Iterable[str]) -> List[Any]:
        wanted = {str(v) for v in values}
        return [p for p in self.visible_projects(viewer) if str(p.id) in wanted]


def _subject_or_id(flt: Filter, today: date):
    term = flt.values[0].strip()
    condition = WorkPackage.subject.icontains(term, autoescape=True)
    wp_id = parse_id(term.lstrip("#"))
    if wp_id is not None:
        condition = or_(condition, WorkPackage.id == wp_id)
    return condition


def _dates_interval(flt: Filter, today: date):
    """Work packages whose [start, due] span overlaps the given interval."""
    start, end = _date_range(flt, today)
    span_start = func.coalesce(WorkPackage.start_date, WorkPackage.due_date)
    span_end = func.coalesce(WorkPackage.due_date, WorkPackage.start_date)
    conditions = [span_start.isnot(None)]
    if end is not None:
        conditions.append(span_start <= end)
    if start is not None:
        conditions.append(span_end >= start)
    return and_(*conditions)


def _status_open(closed: bool):
    def condition(flt: Filter, today: date):
        return WorkPackage.status_id.in_(select(Status.id).where(Status.is_closed == closed))
    return condition


def standard_definitions(project_filter: ProjectFilter) -> List[FilterDefinition]:
    """All filters a work package query understands."""
    return [
        FilterDefinition("id", FilterKind.LIST, WorkPackage.id, title="ID", allowed_operators=("=", "!")),
        project_filter,
        FilterDefinition("priority", FilterKind.LIST, WorkPackage.priority_id, title="Priority",
                         allowed_operators=("=", "!")),
        FilterDefinition(
            "status", FilterKind.LIST, WorkPackage.status_id, title="Status",
            allowed_operators=("o", "c", "=", "!", "*"),
            custom_conditions={"o": _status_open(False), "c": _status_open(True)},
        ),
        FilterDefinition("assignee", FilterKind.LIST, WorkPackage.assignee_id, title="Assignee", nullable=True),
        FilterDefinition("parent", FilterKind.LIST, WorkPackage.parent_id, title="Parent", nullable=True),
        FilterDefinition("subject", FilterKind.STRING, WorkPackage.subject, title="Subject",
                         allowed_operators=("~", "!~")),
        FilterDefinition(
            "subjectOrId", FilterKind.STRING, WorkPackage.subject, title="Subject or ID",
            allowed_operators=("**",), custom_conditions={"**": _subject_or_id},
        ),
        FilterDefinition("startDate", FilterKind.DATE, WorkPackage.start_date, title="Start date", nullable=True),
        FilterDefinition("dueDate", FilterKind.DATE, WorkPackage.due_date, title="Finish date", nullable=True),
        FilterDefinition(
            "datesInterval", FilterKind.DATE, title="Dates interval",
            allowed_operators=("<>d",), custom_conditions={"<>d": _dates_interval},
        ),
        FilterDefinition("scheduleManually", FilterKind.BOOLEAN, WorkPackage.schedule_manually,
                         title="Manual scheduling"),
        FilterDefinition("relates", FilterKind.RELATION, title="Relates to", relation_type=RelationType.RELATES),
        FilterDefinition("blocks", FilterKind.RELATION, title="Blocks", relation_type=RelationType.BLOCKS),
        FilterDefinition("precedes", FilterKind.RELATION, title="Precedes", relation_type=RelationType.PRECEDES),
    ]


class FilterRegistry:
    """Lookup of filter definitions by name, with validation of whole chains."""

    def __init__(self, definitions: Iterable[FilterDefinition]):
        self._definitions: Dict[str, FilterDefinition] = {d.name: d for d in definitions}

    def get(self, name: str) -> Optional[FilterDefinition]:
        return self._definitions.get(name)

    def __getitem__(self, name: str) -> FilterDefinition:
        definition = self.get(name)
        if definition is None:
            raise InvalidFilterError(name, f"Filter '{name}' does not exist")
        return definition

    def available(self, viewer) -> List[FilterDefinition]:
        return [d for d in self._definitions.values() if d.available(viewer)]

    def validate(self, filters: Iterable[Filter], viewer) -> None:
        for flt in filters:
            definition = self[flt.name]
            if not definition.available(viewer):
                raise InvalidFilterError(flt.name, f"Filter '{flt.name}' is not available")
            flt.validate(definition)
