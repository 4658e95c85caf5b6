"""Deserialization of query parameters into a QuerySpec."""

import json
from typing import Any, Optional, Tuple

from workpack.core.base_dao import MAX_ID
from workpack.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from workpack.query.attributes import groupable_attribute, sortable_attribute
from workpack.query.chain import FilterChain
from workpack.query.errors import InvalidQueryError
from workpack.query.schemas import QuerySpec, SortDirection, SortDirective


def parse_sort_by(raw: Optional[str]) -> Tuple[SortDirective, ...]:
    """Parse '[["id", "desc"], ["subject", "asc"]]'."""
    if raw is None or raw == "":
        return ()
    try:
        pairs = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidQueryError(f"sortBy is not valid JSON: {e.msg}", field="sortBy") from e
    if not isinstance(pairs, list):
        raise InvalidQueryError("sortBy must be a JSON array", field="sortBy")

    directives = []
    for pair in pairs:
        if not isinstance(pair, list) or len(pair) != 2 or not all(isinstance(p, str) for p in pair):
            raise InvalidQueryError("Each sortBy entry must be an [attribute, direction] pair", field="sortBy")
        attribute, direction = pair
        sortable_attribute(attribute)
        try:
            directives.append(SortDirective(attribute, SortDirection(direction.lower())))
        except ValueError:
            raise InvalidQueryError(f"Unknown sort direction '{direction}'", field="sortBy") from None
    return tuple(directives)


def parse_bool(raw: Optional[str], field: str) -> bool:
    if raw is None or raw == "":
        return False
    if raw.lower() in ("true", "t", "1"):
        return True
    if raw.lower() in ("false", "f", "0"):
        return False
    raise InvalidQueryError(f"{field} must be 'true' or 'false'", field=field)


def parse_query_spec(
    filters: Optional[Any] = None,
    sort_by: Optional[str] = None,
    group_by: Optional[str] = None,
    show_sums: Optional[str] = None,
    offset: Optional[int] = None,
    page_size: Optional[int] = None,
) -> QuerySpec:
    """Build a QuerySpec from untrusted request parameters."""
    if group_by:
        groupable_attribute(group_by)

    offset = 1 if offset is None else offset
    page_size = DEFAULT_PAGE_SIZE if page_size is None else page_size
    if offset < 1:
        raise InvalidQueryError("offset must be at least 1", field="offset")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidQueryError(f"pageSize must be between 1 and {MAX_PAGE_SIZE}", field="pageSize")
    if (offset - 1) * page_size > MAX_ID:
        raise InvalidQueryError("offset is out of range", field="offset")

    return QuerySpec(
        filters=FilterChain.parse(filters),
        sort_by=parse_sort_by(sort_by),
        group_by=group_by or None,
        show_sums=parse_bool(show_sums, "showSums"),
        offset=offset,
        page_size=page_size,
    )
