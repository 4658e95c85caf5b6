# workpack/logging/dao.py
"""Data Access Objects for the logging module."""

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from workpack.core.base_dao import BaseDAO
from workpack.logging.models import Log


class LogDAO(BaseDAO[Log]):
    """DAO for browsing request logs."""

    def __init__(self, db_session: Session):
        super().__init__(Log, db_session)

    def _apply_filters(
        self,
        query: Select,
        hours: int,
        status_min: Optional[int],
        status_max: Optional[int],
        search: Optional[str],
    ) -> Select:
        time_threshold = datetime.now() - timedelta(hours=hours)
        query = query.where(self.model.timestamp >= time_threshold)

        if status_min is not None:
            query = query.where(self.model.status_code >= status_min)
        if status_max is not None:
            query = query.where(self.model.status_code <= status_max)

        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    self.model.path.ilike(search_term),
                    self.model.query_string.ilike(search_term),
                    self.model.method.ilike(search_term),
                    self.model.client_ip.ilike(search_term),
                    self.model.username.ilike(search_term),
                    self.model.hostname.ilike(search_term),
                    cast(self.model.status_code, String).ilike(search_term),
                    cast(self.model.application_id, String).ilike(search_term),
                )
            )
        return query

    def get_logs_with_filters(
        self,
        limit: int = 50,
        offset: int = 0,
        hours: int = 24,
        status_min: Optional[int] = None,
        status_max: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[Log]:
        """Most recent logs first."""
        query = self._apply_filters(select(self.model), hours, status_min, status_max, search)
        query = query.order_by(self.model.timestamp.desc(), self.model.id.desc()).offset(offset).limit(limit)
        return list(self.db.execute(query).scalars().all())

    def count_logs_with_filters(
        self,
        hours: int = 24,
        status_min: Optional[int] = None,
        status_max: Optional[int] = None,
        search: Optional[str] = None,
    ) -> int:
        query = self._apply_filters(select(func.count()).select_from(self.model), hours, status_min, status_max, search)
        return self.db.execute(query).scalar_one()
