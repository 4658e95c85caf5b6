# workpack/work_packages/router.py
"""API router for work package queries."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from workpack.core.dependencies import CurrentUserDep, SessionDep
from workpack.query.params import parse_query_spec
from workpack.work_packages.schemas import AllowedValueRead, FilterSchemaRead
from workpack.work_packages.service import WorkPackageQueryService

router = APIRouter(
    prefix="/v3",
    tags=["work_packages"],
)


# ===== DEPENDENCY INJECTION =====

def get_query_service(session: SessionDep) -> WorkPackageQueryService:
    return WorkPackageQueryService(session)


class QueryParams:
    """The query parameters shared by both collection endpoints."""

    def __init__(
        self,
        filters: Optional[str] = Query(None, description='JSON array, e.g. [{"status": {"operator": "o", "values": []}}]'),
        sort_by: Optional[str] = Query(None, alias="sortBy", description='JSON array, e.g. [["id", "desc"]]'),
        group_by: Optional[str] = Query(None, alias="groupBy", description="Attribute to group by"),
        show_sums: Optional[str] = Query(None, alias="showSums", description="true or false"),
        offset: Optional[int] = Query(None, description="1-based page number"),
        page_size: Optional[int] = Query(None, alias="pageSize", description="Elements per page"),
    ):
        self.filters = filters
        self.sort_by = sort_by
        self.group_by = group_by
        self.show_sums = show_sums
        self.offset = offset
        self.page_size = page_size

    def to_spec(self):
        return parse_query_spec(
            filters=self.filters,
            sort_by=self.sort_by,
            group_by=self.group_by,
            show_sums=self.show_sums,
            offset=self.offset,
            page_size=self.page_size,
        )


# ===== COLLECTIONS =====

@router.get("/work_packages", response_model=Dict[str, Any])
def get_work_packages(
    viewer: CurrentUserDep,
    params: QueryParams = Depends(),
    service: WorkPackageQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    """Work packages of all projects visible to the viewer."""
    return service.query(params.to_spec(), viewer)


@router.get("/projects/{project_id}/work_packages", response_model=Dict[str, Any])
def get_project_work_packages(
    project_id: str,
    viewer: CurrentUserDep,
    params: QueryParams = Depends(),
    service: WorkPackageQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    """Work packages of one project, addressed by id or identifier."""
    # The project is authorized before the parameters are looked at
    project = service.authorize_project(project_id, viewer)
    return service.query(params.to_spec(), viewer, project)


# ===== FILTER METADATA =====

@router.get("/queries/filters", response_model=List[FilterSchemaRead])
def get_available_filters(
    viewer: CurrentUserDep,
    service: WorkPackageQueryService = Depends(get_query_service),
) -> List[FilterSchemaRead]:
    return service.available_filters(viewer)


@router.get("/queries/filters/project/allowed_values", response_model=List[AllowedValueRead])
def get_project_filter_values(
    viewer: CurrentUserDep,
    service: WorkPackageQueryService = Depends(get_query_service),
) -> List[AllowedValueRead]:
    """Projects selectable in the project filter, indented by depth."""
    return service.project_allowed_values(viewer)
