# workpack/core/base_service.py
"""Generic base service for read-side business logic."""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from workpack.core.base_dao import BaseDAO

ModelType = TypeVar("ModelType")
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)


class BaseService(Generic[ModelType, ResponseSchemaType], ABC):
    """Generic service converting DAO records into response schemas."""

    def __init__(self, dao: BaseDAO[ModelType]):
        self.dao = dao

    def get_by_id(self, id: int) -> Optional[ResponseSchemaType]:
        record = self.dao.get_by_id(id)
        if record:
            return self._to_response(record)
        return None

    @abstractmethod
    def _to_response(self, record: ModelType) -> ResponseSchemaType:
        """Convert a database record to its response schema."""
        pass
