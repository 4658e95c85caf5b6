"""
Unit tests for filters: value normalization, validation and the SQL
conditions of each filter kind.
"""

import pytest
from datetime import date
from sqlalchemy import select

from workpack.query.errors import InvalidFilterError
from workpack.query.filters import Filter, FilterKind, FilterRegistry, ProjectFilter, standard_definitions
from workpack.work_packages.models import WorkPackage


def matching(db_session, registry, name, operator, values=(), today=None):
    """Subjects of all work packages (visibility aside) matching one filter."""
    flt = Filter(name, operator, tuple(str(v) for v in values))
    definition = registry[name]
    flt.validate(definition)
    query = flt.apply(select(WorkPackage.subject), definition, today)
    return set(db_session.execute(query).scalars().all())


class TestFilterValue:
    """Test the Filter value object"""

    def test_unary_operators_drop_values(self):
        assert Filter("status", "o", ("1", "2")).values == ()
        assert Filter("assignee", "!*", ("5",)).values == ()
        assert Filter("dueDate", "t", ("3",)).values == ()

    def test_values_are_normalized_to_strings(self):
        flt = Filter("priority", "=", (1, 2))
        assert flt.values == ("1", "2")

    def test_with_values_returns_new_filter(self):
        flt = Filter("priority", "=", ("1",))
        changed = flt.with_values(["2", "3"])
        assert changed.values == ("2", "3")
        assert flt.values == ("1",)

    def test_to_wire(self):
        assert Filter("subject", "~", ("schema",)).to_wire() == {
            "subject": {"operator": "~", "values": ["schema"]}
        }


class TestFilterValidation:
    """Test operator and value validation against the filter definitions"""

    @pytest.fixture
    def definitions(self):
        project_filter = ProjectFilter("project", FilterKind.LIST, WorkPackage.project_id,
                                       allowed_operators=("=", "!"))
        return FilterRegistry(standard_definitions(project_filter))

    def test_illegal_operator_names_the_field(self, definitions):
        with pytest.raises(InvalidFilterError) as exc_info:
            Filter("priority", "~", ("1",)).validate(definitions["priority"])
        assert exc_info.value.field == "filters.priority"
        assert "not valid" in exc_info.value.message

    def test_missing_values_for_binary_operator(self, definitions):
        with pytest.raises(InvalidFilterError, match="at least one value"):
            Filter("priority", "=").validate(definitions["priority"])

    @pytest.mark.parametrize("name, operator, values", [
        ("priority", "=", ("abc",)),
        ("startDate", "=d", ("2024-13-01",)),
        ("startDate", "<>d", ("", "")),
        ("startDate", "<>d", ("2024-01-01",)),
        ("dueDate", "<t+", ("-1",)),
        ("scheduleManually", "=", ("yes",)),
        ("subject", "~", ("   ",)),
        ("relates", "=", ("#1",)),
        ("id", "=", ("99999999999999999999999",)),
        ("dueDate", ">t+", ("999999999",)),
        ("dueDate", "<t-", ("999999",)),
        ("startDate", "<t+", ("99999999999",)),
    ])
    def test_malformed_values(self, definitions, name, operator, values):
        with pytest.raises(InvalidFilterError) as exc_info:
            Filter(name, operator, values).validate(definitions[name])
        assert exc_info.value.field == f"filters.{name}"

    def test_unary_operator_needs_no_values(self, definitions):
        Filter("assignee", "!*").validate(definitions["assignee"])
        Filter("status", "o").validate(definitions["status"])

    def test_open_date_interval_bound(self, definitions):
        Filter("startDate", "<>d", ("2024-01-01", "")).validate(definitions["startDate"])

    def test_unknown_filter_name(self, definitions):
        with pytest.raises(InvalidFilterError, match="does not exist") as exc_info:
            definitions["colour"]
        assert exc_info.value.field == "filters.colour"

    def test_unavailable_filter_is_rejected(self):
        project_filter = ProjectFilter("project", FilterKind.LIST, WorkPackage.project_id,
                                       visible_projects=lambda viewer: [])
        registry = FilterRegistry(standard_definitions(project_filter))
        with pytest.raises(InvalidFilterError, match="not available"):
            registry.validate([Filter("project", "=", ("1",))], viewer=None)
        assert "project" not in [d.name for d in registry.available(None)]


class TestListFilters:
    """Test the list kind: ids, presence and status open/closed"""

    def test_equals_any_of(self, db_session, registry, priorities, work_packages):
        assert matching(db_session, registry, "priority", "=", [priorities.urgent.id]) == {
            "Write migrations", "Rotate secrets", "Fix header"}

    def test_not_equals(self, db_session, registry, priorities, work_packages):
        assert matching(db_session, registry, "priority", "!", [priorities.urgent.id]) == {
            "Design schema", "Review schema", "Document endpoints", "Old task"}

    def test_not_equals_keeps_unassigned(self, db_session, registry, users, work_packages):
        assert matching(db_session, registry, "assignee", "!", [users.alice.id]) == {
            "Write migrations", "Review schema", "Rotate secrets", "Fix header", "Old task"}

    def test_any_and_none(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "assignee", "*") == {
            "Design schema", "Write migrations", "Document endpoints"}
        assert matching(db_session, registry, "assignee", "!*") == {
            "Review schema", "Rotate secrets", "Fix header", "Old task"}

    def test_status_open_and_closed(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "status", "c") == {"Review schema", "Old task"}
        assert matching(db_session, registry, "status", "o") == {
            "Design schema", "Write migrations", "Document endpoints", "Rotate secrets", "Fix header"}

    def test_id_parent_and_project(self, db_session, registry, projects, work_packages):
        wps = work_packages
        assert matching(db_session, registry, "id", "=", [wps.design.id, wps.review.id]) == {
            "Design schema", "Review schema"}
        assert matching(db_session, registry, "parent", "=", [wps.design.id]) == {"Document endpoints"}
        assert matching(db_session, registry, "project", "=", [projects.api.id]) == {"Document endpoints"}


class TestStringFilters:
    """Test the string kind"""

    def test_contains_is_case_insensitive(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "subject", "~", ["SCHEMA"]) == {"Design schema", "Review schema"}

    def test_does_not_contain(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "subject", "!~", ["schema"]) == {
            "Write migrations", "Document endpoints", "Rotate secrets", "Fix header", "Old task"}

    def test_subject_or_id(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "subjectOrId", "**", [work_packages.migrate.id]) == {
            "Write migrations"}
        assert matching(db_session, registry, "subjectOrId", "**", [f"#{work_packages.header.id}"]) == {
            "Fix header"}
        assert matching(db_session, registry, "subjectOrId", "**", ["secret"]) == {"Rotate secrets"}

    def test_wildcards_match_literally(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "subject", "~", ["_"]) == set()
        assert matching(db_session, registry, "subject", "~", ["%"]) == set()
        assert len(matching(db_session, registry, "subject", "!~", ["_"])) == 7
        assert matching(db_session, registry, "subjectOrId", "**", ["s_c"]) == set()

    def test_subject_or_id_with_non_id_digits(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "subjectOrId", "**", ["\N{SUPERSCRIPT TWO}"]) == set()
        assert matching(db_session, registry, "subjectOrId", "**", ["99999999999999999999999"]) == set()


class TestDateFilters:
    """Test the date kind with a fixed today"""

    def test_between_with_open_end(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "startDate", "<>d", ["2024-01-12", ""]) == {"Write migrations"}

    def test_on_day(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "startDate", "=d", ["2024-01-10"]) == {"Design schema"}

    def test_relative_to_today(self, db_session, registry, work_packages):
        today = date(2024, 1, 16)
        assert matching(db_session, registry, "dueDate", "<t+", [5], today=today) == {
            "Design schema", "Write migrations"}
        assert matching(db_session, registry, "dueDate", ">t+", [10], today=today) == {"Document endpoints"}
        assert matching(db_session, registry, "dueDate", "t", today=date(2024, 1, 18)) == {"Write migrations"}
        assert matching(db_session, registry, "startDate", "<t-", [3], today=today) == {"Write migrations"}
        assert matching(db_session, registry, "startDate", ">t-", [3], today=today) == {"Design schema"}

    def test_not_set(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "startDate", "!*") == {
            "Review schema", "Document endpoints", "Rotate secrets", "Fix header", "Old task"}

    def test_dates_interval_overlaps_span(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "datesInterval", "<>d", ["2024-01-19", "2024-01-25"]) == {
            "Design schema"}
        assert matching(db_session, registry, "datesInterval", "<>d", ["", "2024-01-12"]) == {"Design schema"}
        # A due date alone spans a single day
        assert matching(db_session, registry, "datesInterval", "<>d", ["2024-01-30", ""]) == {
            "Document endpoints"}


class TestBooleanAndRelationFilters:
    """Test the boolean and relation kinds"""

    def test_boolean(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "scheduleManually", "=", ["t"]) == {"Review schema"}
        assert "Review schema" not in matching(db_session, registry, "scheduleManually", "!", ["t"])
        assert matching(db_session, registry, "scheduleManually", "=", ["f"]) == matching(
            db_session, registry, "scheduleManually", "!", ["t"])

    def test_precedes_follows_direction(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "precedes", "=", [work_packages.migrate.id]) == {"Design schema"}
        assert matching(db_session, registry, "precedes", "=", [work_packages.design.id]) == set()

    def test_relates_matches_both_directions(self, db_session, registry, work_packages):
        assert matching(db_session, registry, "relates", "=", [work_packages.design.id]) == {"Review schema"}
        assert matching(db_session, registry, "relates", "=", [work_packages.review.id]) == {"Design schema"}

    def test_not_related(self, db_session, registry, work_packages):
        result = matching(db_session, registry, "blocks", "!", [work_packages.document.id])
        assert "Write migrations" not in result
        assert len(result) == 6
