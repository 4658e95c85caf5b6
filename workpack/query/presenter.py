"""Serialization of query results to the HAL-style wire format."""

from typing import Any, Dict, List, Optional

from workpack.query.attributes import ATTRIBUTES
from workpack.query.formatting import format_currency, format_date, format_datetime, format_duration
from workpack.query.schemas import Group, ResultSet

API_ROOT = "/api/v3"


def _link(href: Optional[str], title: Optional[str] = None) -> Dict[str, Any]:
    link: Dict[str, Any] = {"href": href}
    if href is not None and title is not None:
        link["title"] = title
    return link


class ResultPresenter:
    """Turns result sets and groups into response dictionaries. Has no side effects."""

    def work_package(self, wp) -> Dict[str, Any]:
        assignee = wp.assignee
        parent = wp.parent
        return {
            "_type": "WorkPackage",
            "id": wp.id,
            "subject": wp.subject,
            "startDate": format_date(wp.start_date),
            "dueDate": format_date(wp.due_date),
            "estimatedTime": format_duration(wp.estimated_hours),
            "remainingTime": format_duration(wp.remaining_hours),
            "storyPoints": wp.story_points,
            "laborCosts": format_currency(wp.labor_costs),
            "materialCosts": format_currency(wp.material_costs),
            "overallCosts": format_currency((wp.labor_costs or 0) + (wp.material_costs or 0)),
            "scheduleManually": wp.schedule_manually,
            "createdAt": format_datetime(wp.created_at),
            "updatedAt": format_datetime(wp.updated_at),
            "_links": {
                "self": _link(f"{API_ROOT}/work_packages/{wp.id}", wp.subject),
                "project": _link(f"{API_ROOT}/projects/{wp.project_id}", wp.project.name),
                "priority": _link(f"{API_ROOT}/priorities/{wp.priority_id}", wp.priority.name),
                "status": _link(f"{API_ROOT}/statuses/{wp.status_id}", wp.status.name),
                "assignee": _link(f"{API_ROOT}/users/{assignee.id}", assignee.name) if assignee else _link(None),
                "parent": _link(f"{API_ROOT}/work_packages/{parent.id}", parent.subject) if parent else _link(None),
            },
        }

    def group(self, group: Group, group_by: str) -> Dict[str, Any]:
        attribute = ATTRIBUTES[group_by]
        data: Dict[str, Any] = {"_type": "GroupBy", "value": group.value, "count": group.count}
        if group.sums is not None:
            data["sums"] = group.sums
        data["_links"] = {
            "valueLink": [_link(group.link)] if group.link else [],
            "groupBy": _link(f"{API_ROOT}/queries/group_bys/{group_by}", attribute.title),
        }
        return data

    def collection(
        self,
        result: ResultSet,
        groups: Optional[List[Group]] = None,
        group_by: Optional[str] = None,
        total_sums: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """The WorkPackageCollection. Groups and totalSums appear only when computed."""
        data: Dict[str, Any] = {
            "_type": "WorkPackageCollection",
            "count": result.count,
            "total": result.total,
            "pageSize": result.page_size,
            "offset": result.offset,
            "_embedded": {"elements": [self.work_package(wp) for wp in result.elements]},
        }
        if groups is not None and group_by is not None:
            data["groups"] = [self.group(g, group_by) for g in groups]
        if total_sums is not None:
            data["totalSums"] = total_sums
        return data
