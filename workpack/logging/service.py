# workpack/logging/service.py
"""Service layer for browsing request logs."""

from typing import List, Optional

from fastapi import HTTPException

from workpack.core.base_service import BaseService
from workpack.logging.dao import LogDAO
from workpack.logging.models import Log
from workpack.logging.schemas import LogRead


class LogService(BaseService[Log, LogRead]):
    """Retrieves logs with time window, status range and search filters."""

    def __init__(self, log_dao: LogDAO):
        super().__init__(log_dao)

    def _to_response(self, record: Log) -> LogRead:
        return LogRead.model_validate(record)

    def get_logs_with_filters(
        self,
        limit: int = 50,
        offset: int = 0,
        hours: int = 24,
        status_min: Optional[int] = None,
        status_max: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[LogRead]:
        if status_min is not None and status_max is not None and status_min > status_max:
            raise HTTPException(status_code=400, detail="status_min cannot be greater than status_max")
        logs = self.dao.get_logs_with_filters(
            limit=limit,
            offset=offset,
            hours=hours,
            status_min=status_min,
            status_max=status_max,
            search=search,
        )
        return [self._to_response(log) for log in logs]

    def get_logs_count_with_filters(
        self,
        hours: int = 24,
        status_min: Optional[int] = None,
        status_max: Optional[int] = None,
        search: Optional[str] = None,
    ) -> int:
        return self.dao.count_logs_with_filters(hours=hours, status_min=status_min, status_max=status_max, search=search)

    def get_log(self, log_id: int) -> LogRead:
        log = self.get_by_id(log_id)
        if log is None:
            raise HTTPException(status_code=404, detail=f"Log with ID {log_id} not found")
        return log
