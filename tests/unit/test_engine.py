"""
Unit tests for the query executor: conjunctive filtering, ordering and
pagination.
"""

import itertools
import pytest
from sqlalchemy import select

from workpack.query.chain import FilterChain
from workpack.query.engine import QueryExecutor
from workpack.query.errors import InvalidFilterError, InvalidQueryError
from workpack.query.schemas import QuerySpec, SortDirection, SortDirective
from workpack.work_packages.models import WorkPackage


@pytest.fixture
def executor(db_session, registry):
    return QueryExecutor(db_session, registry)


def run(executor, policy, viewer, scope=None, **spec):
    spec.setdefault("filters", FilterChain())
    return executor.execute(scope if scope is not None else select(WorkPackage), QuerySpec(**spec), policy, viewer)


def subjects(result):
    return [wp.subject for wp in result.elements]


class TestFiltering:
    """Test that filters compose conjunctively"""

    def test_no_filters_returns_visible_set_in_id_order(self, executor, policy, users, work_packages):
        result = run(executor, policy, users.alice)
        assert subjects(result) == [
            "Design schema", "Write migrations", "Review schema", "Document endpoints", "Fix header"]
        assert result.total == 5
        assert result.count == 5

    def test_project_scope(self, executor, policy, users, projects, work_packages):
        scope = select(WorkPackage).where(WorkPackage.project_id == projects.platform.id)
        assert run(executor, policy, users.alice, scope=scope).total == 3

    def test_intersection_is_independent_of_filter_order(self, executor, policy, users, projects, work_packages):
        filters = [
            ("status", "o", []),
            ("subject", "~", ["e"]),
            ("project", "!", [projects.website.id]),
        ]
        individual = []
        for name, operator, values in filters:
            result = run(executor, policy, users.alice, filters=FilterChain().add(name, operator, values))
            individual.append({wp.id for wp in result.elements})
        expected = set.intersection(*individual)
        assert expected == {work_packages.design.id, work_packages.migrate.id, work_packages.document.id}

        for permutation in itertools.permutations(filters):
            chain = FilterChain()
            for name, operator, values in permutation:
                chain = chain.add(name, operator, values)
            result = run(executor, policy, users.alice, filters=chain)
            assert {wp.id for wp in result.elements} == expected

    def test_filters_cannot_widen_visibility(self, executor, policy, users, projects, work_packages):
        chain = FilterChain().add("project", "=", [projects.internal.id])
        assert run(executor, policy, users.alice, filters=chain).total == 0

    def test_invalid_filter_is_rejected_before_querying(self, executor, policy, users, work_packages):
        with pytest.raises(InvalidFilterError):
            run(executor, policy, users.alice, filters=FilterChain().add("priority", "~", ["x"]))


class TestOrdering:
    """Test sort directives, tie-breaking and grouping order"""

    def test_id_descending(self, executor, policy, users, work_packages):
        result = run(executor, policy, users.alice, sort_by=(SortDirective("id", SortDirection.DESC),))
        assert subjects(result) == [
            "Fix header", "Document endpoints", "Review schema", "Write migrations", "Design schema"]

    def test_priority_by_position_with_id_tie_break(self, executor, policy, users, work_packages):
        result = run(executor, policy, users.alice, sort_by=(SortDirective("priority"),))
        assert subjects(result) == [
            "Write migrations", "Fix header", "Design schema", "Review schema", "Document endpoints"]

    def test_ties_are_stable_across_calls(self, executor, policy, users, work_packages):
        spec = dict(sort_by=(SortDirective("status"),))
        first = [wp.id for wp in run(executor, policy, users.alice, **spec).elements]
        second = [wp.id for wp in run(executor, policy, users.alice, **spec).elements]
        assert first == second

    def test_nulls_sort_last_in_both_directions(self, executor, policy, users, work_packages):
        ascending = run(executor, policy, users.alice, sort_by=(SortDirective("assignee"),))
        assert subjects(ascending) == [
            "Design schema", "Document endpoints", "Write migrations", "Review schema", "Fix header"]
        descending = run(executor, policy, users.alice,
                         sort_by=(SortDirective("assignee", SortDirection.DESC),))
        assert subjects(descending) == [
            "Write migrations", "Design schema", "Document endpoints", "Review schema", "Fix header"]

    def test_multiple_keys_in_declared_order(self, executor, policy, users, work_packages):
        result = run(executor, policy, users.alice, sort_by=(
            SortDirective("priority", SortDirection.DESC),
            SortDirective("subject", SortDirection.DESC),
        ))
        assert subjects(result) == [
            "Review schema", "Document endpoints", "Design schema", "Write migrations", "Fix header"]

    def test_grouping_orders_elements_by_group_first(self, executor, policy, users, work_packages):
        result = run(executor, policy, users.alice, group_by="priority",
                     sort_by=(SortDirective("id", SortDirection.DESC),))
        assert subjects(result) == [
            "Fix header", "Write migrations", "Document endpoints", "Review schema", "Design schema"]

    def test_unknown_sort_attribute(self, executor, policy, users, work_packages):
        with pytest.raises(InvalidQueryError) as exc_info:
            run(executor, policy, users.alice, sort_by=(SortDirective("colour"),))
        assert exc_info.value.field == "sortBy"


class TestPagination:
    """Test 1-based pages, count and total"""

    def test_pages(self, executor, policy, users, work_packages):
        second = run(executor, policy, users.alice, offset=2, page_size=2)
        assert subjects(second) == ["Review schema", "Document endpoints"]
        assert (second.count, second.total, second.offset, second.page_size) == (2, 5, 2, 2)

        last = run(executor, policy, users.alice, offset=3, page_size=2)
        assert subjects(last) == ["Fix header"]
        assert last.count == 1

    def test_page_past_the_end_is_empty(self, executor, policy, users, work_packages):
        result = run(executor, policy, users.alice, offset=10, page_size=2)
        assert result.elements == []
        assert result.total == 5
