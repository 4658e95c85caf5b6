# workpack/query/engine.py
"""Query executor: scopes, filters, sorts and paginates work packages."""

import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from workpack.query.builder import QueryBuilder
from workpack.query.filters import FilterRegistry
from workpack.query.schemas import QuerySpec, ResultSet

logger = logging.getLogger(__name__)


class QueryExecutor:
    """Runs a QuerySpec against a base scope of work packages."""

    def __init__(self, db: Session, registry: FilterRegistry, today: Optional[date] = None):
        self.db = db
        self.registry = registry
        self.builder = QueryBuilder(registry, today)

    def filtered_set(self, base_scope: Select, spec: QuerySpec, policy, viewer) -> Any:
        """
        The visible, filtered work packages as an entity to select from.

        The chain is validated first so that no statement is issued for a
        query that would be rejected.
        """
        spec.filters.validate(self.registry, viewer)
        scoped = policy.filter(base_scope, viewer)
        return self.builder.build_filtered_entity(scoped, spec.filters)

    def execute(self, base_scope: Select, spec: QuerySpec, policy, viewer) -> ResultSet:
        return self.execute_filtered(self.filtered_set(base_scope, spec, policy, viewer), spec)

    def execute_filtered(self, wp, spec: QuerySpec) -> ResultSet:
        """Count and fetch one page of an already filtered entity."""
        page_query = self.builder.build_page_query(wp, spec)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Work package query: %s", self.builder.compile_to_sql(page_query, self.db.bind.dialect))

        total = self.db.execute(self.builder.build_count_query(wp)).scalar_one()
        elements = list(self.db.execute(page_query).scalars().all())
        logger.debug("Query with %d filters matched %d work packages, returning page %d (%d elements)",
                     len(spec.filters), total, spec.offset, len(elements))
        return ResultSet(elements=elements, total=total, offset=spec.offset, page_size=spec.page_size)
