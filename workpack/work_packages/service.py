# workpack/work_packages/service.py
"""Service layer orchestrating work package queries."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from workpack.projects.models import Project, User
from workpack.projects.policy import VisibilityPolicy
from workpack.projects.tree import project_tree
from workpack.query.engine import QueryExecutor
from workpack.query.filters import FilterKind, FilterRegistry, ProjectFilter, standard_definitions
from workpack.query.grouping import GroupAggregator
from workpack.query.presenter import ResultPresenter
from workpack.query.schemas import QuerySpec
from workpack.work_packages.models import WorkPackage
from workpack.work_packages.schemas import AllowedValueRead, FilterSchemaRead

logger = logging.getLogger(__name__)


def build_filter_registry(policy: VisibilityPolicy) -> FilterRegistry:
    """The filters of a work package query, with the project filter bound to the policy."""
    project_filter = ProjectFilter(
        "project", FilterKind.LIST, WorkPackage.project_id, title="Project",
        allowed_operators=("=", "!"),
        visible_projects=policy.visible_projects,
        project_tree=project_tree,
    )
    return FilterRegistry(standard_definitions(project_filter))


class WorkPackageQueryService:
    """Runs work package queries on behalf of a viewer."""

    def __init__(self, db: Session, policy: Optional[VisibilityPolicy] = None, today: Optional[date] = None):
        self.db = db
        self.policy = policy or VisibilityPolicy(db)
        self.registry = build_filter_registry(self.policy)
        self.executor = QueryExecutor(db, self.registry, today)
        self.aggregator = GroupAggregator(db)
        self.presenter = ResultPresenter()

    def authorize_project(self, id_or_identifier: str, viewer: Optional[User]) -> Project:
        return self.policy.authorize_project(id_or_identifier, viewer)

    def query(self, spec: QuerySpec, viewer: Optional[User], project: Optional[Project] = None) -> Dict[str, Any]:
        """
        Run a query across all visible projects, or inside one already
        authorized project, and serialize the result collection.
        """
        base_scope = select(WorkPackage)
        if project is not None:
            base_scope = base_scope.where(WorkPackage.project_id == project.id)

        wp = self.executor.filtered_set(base_scope, spec, self.policy, viewer)
        result = self.executor.execute_filtered(wp, spec)

        groups = self.aggregator.group(wp, spec.group_by, spec.show_sums) if spec.group_by else None
        total_sums = self.aggregator.total_sums(wp) if spec.show_sums else None

        logger.info(
            "Viewer %s queried work packages%s: %d of %d",
            getattr(viewer, "id", "anonymous"),
            f" of project {project.identifier}" if project is not None else "",
            result.count,
            result.total,
        )
        return self.presenter.collection(result, groups, spec.group_by, total_sums)

    # ===== FILTER METADATA =====

    def available_filters(self, viewer: Optional[User]) -> List[FilterSchemaRead]:
        return [FilterSchemaRead(**definition.to_schema()) for definition in self.registry.available(viewer)]

    def project_allowed_values(self, viewer: Optional[User]) -> List[AllowedValueRead]:
        project_filter = self.registry["project"]
        return [AllowedValueRead(label=label, value=value) for label, value in project_filter.allowed_values(viewer)]
