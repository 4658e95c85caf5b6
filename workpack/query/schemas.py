"""
Query schemas and types for the work package query API.

This module defines the enums and value objects passed between the
parameter parser, the executor, the group aggregator and the presenter.
"""

from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum

from workpack.core.config import DEFAULT_PAGE_SIZE
from workpack.query.chain import FilterChain


class SortDirection(str, Enum):
    """Available sort directions."""

    ASC = "asc"
    DESC = "desc"


class SumFormat(str, Enum):
    """How a summed attribute is rendered on the wire."""

    DURATION = "duration"
    CURRENCY = "currency"
    INTEGER = "integer"


@dataclass(frozen=True)
class SortDirective:
    """One sort key of a query."""

    attribute: str
    direction: SortDirection = SortDirection.ASC

    def to_wire(self) -> List[str]:
        return [self.attribute, self.direction.value]


@dataclass(frozen=True)
class QuerySpec:
    """Everything the executor needs to run one query."""

    filters: FilterChain = field(default_factory=FilterChain)
    sort_by: Tuple[SortDirective, ...] = ()
    group_by: Optional[str] = None
    show_sums: bool = False
    offset: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass
class ResultSet:
    """One page of a filtered and sorted query."""

    elements: List[Any]
    total: int
    offset: int
    page_size: int

    @property
    def count(self) -> int:
        return len(self.elements)


@dataclass
class Group:
    """A partition of the filtered set by the group-by attribute."""

    value: Any
    count: int
    link: Optional[str] = None
    sums: Optional[Dict[str, Any]] = None
