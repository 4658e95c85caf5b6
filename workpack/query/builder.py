"""
QueryBuilder constructs the SQL for work package queries.

This is the single source of truth for query construction. The executor,
the group aggregator and the debug log all see the statements built here.

The filtered set is built once as a subquery and exposed as an aliased
WorkPackage entity. Everything downstream (page, total, groups, sums)
selects from that entity, so filters are never applied twice.
"""

from datetime import date
from typing import Any, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import aliased, outerjoin, selectinload
from sqlalchemy.sql import Select

from workpack.query.attributes import JoinSpec, QueryAttribute, groupable_attribute, sortable_attribute
from workpack.query.chain import FilterChain
from workpack.query.filters import FilterRegistry
from workpack.query.schemas import QuerySpec, SortDirection
from workpack.work_packages.models import WorkPackage


class QueryBuilder:
    """Builds the filtered, ordered and paginated statements of a query."""

    def __init__(self, registry: FilterRegistry, today: Optional[date] = None):
        self.registry = registry
        self.today = today

    # ===== FILTERED SET =====

    def build_filtered_query(self, base_scope: Select, filters: FilterChain) -> Select:
        """Apply every filter of the chain to the scope. Filters combine with AND."""
        query = base_scope
        for flt in filters:
            query = flt.apply(query, self.registry[flt.name], self.today)
        return query

    def build_filtered_entity(self, base_scope: Select, filters: FilterChain) -> Any:
        """The filtered set as a WorkPackage entity over a subquery."""
        filtered = self.build_filtered_query(base_scope, filters).subquery("filtered_work_packages")
        return aliased(WorkPackage, filtered)

    # ===== PAGE AND TOTAL =====

    def build_count_query(self, wp) -> Select:
        return select(func.count(wp.id))

    def build_page_query(self, wp, spec: QuerySpec) -> Select:
        """Ordered and paginated selection of work packages from the filtered entity."""
        order_by, joins = self._build_ordering(wp, spec)
        query = (
            select(wp)
            .select_from(self.build_from_clause(wp, joins))
            .order_by(*order_by)
            .offset((spec.offset - 1) * spec.page_size)
            .limit(spec.page_size)
        )
        return query.options(
            selectinload(wp.project),
            selectinload(wp.priority),
            selectinload(wp.status),
            selectinload(wp.assignee),
            selectinload(wp.parent),
        )

    @staticmethod
    def build_from_clause(wp, joins: List[JoinSpec]) -> Any:
        """Outer join the related tables that sorting or grouping needs."""
        from_clause = wp
        for target, onclause in joins:
            from_clause = outerjoin(from_clause, target, onclause(wp))
        return from_clause

    def _build_ordering(self, wp, spec: QuerySpec) -> Tuple[List[Any], List[JoinSpec]]:
        """
        Order by the group (when grouping), then by the sort directives in
        their declared order, then by id as a stable tie-breaker.
        """
        order_by: List[Any] = []
        joins: List[JoinSpec] = []

        def require(attribute: QueryAttribute):
            if attribute.join is not None and all(attribute.join[0] is not target for target, _ in joins):
                joins.append(attribute.join)

        if spec.group_by:
            attribute = groupable_attribute(spec.group_by)
            require(attribute)
            order_by.extend(attribute.group_order(wp))

        for directive in spec.sort_by:
            attribute = sortable_attribute(directive.attribute)
            require(attribute)
            for column in attribute.sort_columns(wp):
                # Nulls last in both directions
                order_by.append(column.is_(None))
                order_by.append(column.desc() if directive.direction == SortDirection.DESC else column.asc())

        if all(directive.attribute != "id" for directive in spec.sort_by):
            order_by.append(wp.id.asc())
        return order_by, joins

    # ===== DEBUGGING =====

    @staticmethod
    def compile_to_sql(query: Select, dialect) -> str:
        """Compile a statement to an SQL string for debug logging."""
        return str(query.compile(dialect=dialect))
