"""Partitioning of a filtered work package set into groups, with sums."""

from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from workpack.query.attributes import SUM_ATTRIBUTES, SumAttribute, groupable_attribute
from workpack.query.builder import QueryBuilder
from workpack.query.formatting import format_sum
from workpack.query.schemas import Group


class GroupAggregator:
    """
    Groups and sums are computed in SQL over the whole filtered set, not over
    the current page. Groups come back in the same order in which the
    executor orders grouped elements.
    """

    def __init__(self, db: Session, sum_attributes: Sequence[SumAttribute] = SUM_ATTRIBUTES):
        self.db = db
        self.sum_attributes = list(sum_attributes)

    def _sum_columns(self, wp) -> List[Any]:
        return [func.sum(s.expression(wp)) for s in self.sum_attributes]

    def _format_sums(self, values: Sequence[Any]) -> Dict[str, Any]:
        return {s.name: format_sum(v, s.format_type) for s, v in zip(self.sum_attributes, values)}

    def group(self, wp, group_by: str, compute_sums: bool = False) -> List[Group]:
        attribute = groupable_attribute(group_by)
        key = attribute.group_key(wp)
        value_columns = list(attribute.value_columns(wp))
        sum_columns = self._sum_columns(wp) if compute_sums else []

        joins = [attribute.join] if attribute.join is not None else []
        query = (
            select(key, func.count(wp.id), *value_columns, *sum_columns)
            .select_from(QueryBuilder.build_from_clause(wp, joins))
            .group_by(key, *value_columns, *attribute.sort_columns(wp))
            .order_by(*attribute.group_order(wp))
        )

        groups = []
        n_values = len(value_columns)
        for row in self.db.execute(query).all():
            group_key, count = row[0], row[1]
            values = row[2:2 + n_values]
            groups.append(Group(
                value=attribute.display(*values),
                count=count,
                link=attribute.link_for(group_key),
                sums=self._format_sums(row[2 + n_values:]) if compute_sums else None,
            ))
        return groups

    def total_sums(self, wp) -> Dict[str, Optional[Any]]:
        """Sums over the whole filtered set. An empty set sums to None everywhere."""
        row = self.db.execute(select(*self._sum_columns(wp))).one()
        return self._format_sums(row)
