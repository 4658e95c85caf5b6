"""Exceptions raised by the work package query layer."""

from typing import Any, Dict, List, Optional


class QueryError(Exception):
    """Base class for query errors."""


class InvalidQueryError(QueryError):
    """A query parameter is malformed. Carries the offending field for the response."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def errors(self) -> List[Dict[str, Any]]:
        return [{"field": self.field, "message": self.message}]


class InvalidFilterError(InvalidQueryError):
    """A filter has an unknown name, an illegal operator or malformed values."""

    def __init__(self, name: str, message: str):
        super().__init__(message, field=f"filters.{name}")
        self.name = name


class FilterNotFoundError(KeyError):
    """Raised when modifying a filter that is not part of the chain."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Filter '{self.name}' is not part of the chain"


class NotFound(QueryError):
    """The container resource does not exist or is not visible to the viewer."""


class Forbidden(QueryError):
    """The container is visible but the viewer lacks permission for its records."""
