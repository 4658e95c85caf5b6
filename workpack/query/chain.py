"""Ordered, name-unique collection of filters combined with AND."""

import json
from typing import Any, Callable, Iterable, Iterator, List, Optional, Union

from workpack.query.errors import FilterNotFoundError, InvalidQueryError
from workpack.query.filters import Filter, FilterRegistry

FilterTransform = Callable[[Filter], Filter]


class FilterChain:
    """
    Immutable chain of filters.

    Every modifying operation returns a new chain, so a chain handed to the
    executor can never change underneath it. Filter names are unique: adding
    a filter whose name is already present replaces it at its position.
    """

    __slots__ = ("_filters",)

    def __init__(self, filters: Iterable[Filter] = ()):
        ordered: List[Filter] = []
        for flt in filters:
            index = next((i for i, f in enumerate(ordered) if f.name == flt.name), -1)
            if index == -1:
                ordered.append(flt)
            else:
                ordered[index] = flt
        self._filters = tuple(ordered)

    # ===== READ ACCESS =====

    def __iter__(self) -> Iterator[Filter]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterChain):
            return NotImplemented
        return self._filters == other._filters

    def __hash__(self) -> int:
        return hash(self._filters)

    def __repr__(self) -> str:
        return f"FilterChain({list(self._filters)!r})"

    @property
    def names(self) -> List[str]:
        return [f.name for f in self._filters]

    def find(self, name: str) -> Optional[Filter]:
        return next((f for f in self._filters if f.name == name), None)

    def find_index(self, name: str) -> int:
        return next((i for i, f in enumerate(self._filters) if f.name == name), -1)

    # ===== TRANSFORMS =====

    def add(self, name: str, operator: str, values: Iterable[Any] = ()) -> "FilterChain":
        """Append a filter, or replace the filter of the same name in place."""
        return FilterChain(self._filters + (Filter(name, operator, tuple(values)),))

    def remove(self, name: str) -> "FilterChain":
        return FilterChain(f for f in self._filters if f.name != name)

    def replace(self, name: str, transform: FilterTransform) -> "FilterChain":
        """Apply transform to the named filter, creating an empty '=' filter first if needed."""
        current = self.find(name) or Filter(name, "=")
        return self._put(transform(current))

    def modify(self, name: str, transform: FilterTransform) -> "FilterChain":
        """Apply transform to an existing filter. Raises FilterNotFoundError otherwise."""
        current = self.find(name)
        if current is None:
            raise FilterNotFoundError(name)
        return self._put(transform(current))

    def with_values(self, name: str, values: Iterable[Any]) -> "FilterChain":
        return self.modify(name, lambda flt: flt.with_values(values))

    def validate(self, registry: FilterRegistry, viewer) -> "FilterChain":
        """Validate every filter against its definition. Returns the chain unchanged."""
        registry.validate(self._filters, viewer)
        return self

    # ===== HELPERS =====

    def _put(self, flt: Filter) -> "FilterChain":
        return FilterChain(self._filters + (flt,))

    # ===== WIRE FORMAT =====

    def serialize(self) -> List[dict]:
        """[{name: {"operator": op, "values": [...]}}, ...]"""
        return [f.to_wire() for f in self._filters]

    def to_json(self) -> str:
        return json.dumps(self.serialize())

    @classmethod
    def parse(cls, wire: Union[str, List[Any], None]) -> "FilterChain":
        """Build a chain from its wire form, given either decoded or as a JSON string."""
        if wire is None or wire == "":
            return cls()
        if isinstance(wire, str):
            try:
                wire = json.loads(wire)
            except json.JSONDecodeError as e:
                raise InvalidQueryError(f"Filters are not valid JSON: {e.msg}", field="filters") from e
        if not isinstance(wire, list):
            raise InvalidQueryError("Filters must be a JSON array", field="filters")

        filters = []
        for entry in wire:
            if not isinstance(entry, dict) or len(entry) != 1:
                raise InvalidQueryError("Each filter must be an object with exactly one key", field="filters")
            (name, body), = entry.items()
            if not isinstance(body, dict) or not isinstance(body.get("operator"), str):
                raise InvalidQueryError(f"Filter '{name}' lacks an operator", field=f"filters.{name}")
            values = body.get("values", [])
            if not isinstance(values, list):
                raise InvalidQueryError(f"Values of filter '{name}' must be an array", field=f"filters.{name}")
            filters.append(Filter(name, body["operator"], tuple(values)))
        return cls(filters)
