# workpack/logging/router.py
"""API router for browsing request logs."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from workpack.core.dependencies import SessionDep
from workpack.logging.dao import LogDAO
from workpack.logging.schemas import LogRead
from workpack.logging.service import LogService

router = APIRouter(
    prefix="/logs",
    tags=["logs"],
)


# ===== DEPENDENCY INJECTION =====

def get_log_dao(session: SessionDep) -> LogDAO:
    return LogDAO(session)


def get_log_service(log_dao: LogDAO = Depends(get_log_dao)) -> LogService:
    return LogService(log_dao)


# ===== ENDPOINTS =====

@router.get("/", response_model=List[LogRead])
def get_logs(
    response: Response,
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of logs to return"),
    offset: int = Query(0, ge=0, description="Number of logs to skip"),
    hours: int = Query(24, ge=1, le=168, description="Time window in hours"),
    status_min: Optional[int] = Query(None, ge=100, le=599, description="Minimum status code"),
    status_max: Optional[int] = Query(None, ge=100, le=599, description="Maximum status code"),
    search: Optional[str] = Query(None, description="Search term for filtering logs"),
    log_service: LogService = Depends(get_log_service),
) -> List[LogRead]:
    """Get logs with pagination and filtering."""
    logs = log_service.get_logs_with_filters(
        limit=limit,
        offset=offset,
        hours=hours,
        status_min=status_min,
        status_max=status_max,
        search=search,
    )
    total_count = log_service.get_logs_count_with_filters(
        hours=hours,
        status_min=status_min,
        status_max=status_max,
        search=search,
    )

    # Pagination headers
    response.headers["X-Total-Count"] = str(total_count)
    response.headers["X-Page-Size"] = str(limit)
    response.headers["X-Page-Offset"] = str(offset)
    return logs


@router.get("/{log_id}", response_model=LogRead)
def get_log(log_id: int, log_service: LogService = Depends(get_log_service)) -> LogRead:
    return log_service.get_log(log_id)
