"""
Work package query module.

Main Components:
- Filter / FilterChain: named predicates and their ordered, conjunctive chain
- QueryBuilder: single source of truth for the generated SQL
- QueryExecutor: scopes, filters, sorts and paginates
- GroupAggregator: per-group counts and sums over the filtered set
- ResultPresenter: the wire representation of results
"""

from .builder import QueryBuilder
from .chain import FilterChain
from .engine import QueryExecutor
from .errors import (
    Forbidden,
    FilterNotFoundError,
    InvalidFilterError,
    InvalidQueryError,
    NotFound,
    QueryError,
)
from .filters import Filter, FilterDefinition, FilterKind, FilterRegistry, ProjectFilter
from .grouping import GroupAggregator
from .presenter import ResultPresenter
from .schemas import Group, QuerySpec, ResultSet, SortDirection, SortDirective, SumFormat

__all__ = [
    # Main classes
    "QueryBuilder",
    "QueryExecutor",
    "GroupAggregator",
    "ResultPresenter",
    # Filters
    "Filter",
    "FilterChain",
    "FilterDefinition",
    "FilterKind",
    "FilterRegistry",
    "ProjectFilter",
    # Value types
    "QuerySpec",
    "ResultSet",
    "Group",
    "SortDirective",
    # Enums
    "SortDirection",
    "SumFormat",
    # Errors
    "QueryError",
    "InvalidQueryError",
    "InvalidFilterError",
    "FilterNotFoundError",
    "NotFound",
    "Forbidden",
]
