"""Pydantic schemas for the work package query API."""
from typing import List
from pydantic import BaseModel, ConfigDict


class FilterSchemaRead(BaseModel):
    """A filter the viewer may use, with its kind and legal operators."""
    id: str
    name: str
    kind: str
    operators: List[str]

    model_config = ConfigDict(from_attributes=True)


class AllowedValueRead(BaseModel):
    """One selectable value of a filter, e.g. an indented project name."""
    label: str
    value: str
