"""Shared schemas: paging and error bodies"""
from datetime import datetime
from enum import Enum
from typing import Dict, Generic, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, Field, field_validator

from fleet.core.exceptions import FieldValidationError

T = TypeVar("T")


def to_local_naive(value: datetime) -> datetime:
    """Datetimes are stored as naive local time; convert aware values to that"""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class PageParams(BaseModel):
    """Page index (from 0), page size, sort field and direction"""
    page: int = Field(0, ge=0, description="Page number, starts at 0")
    size: int = Field(10, ge=1, le=100, description="Page size")
    sort: str = Field("id", min_length=1, description="Sort field")
    direction: SortDirection = Field(SortDirection.ASC, description="ASC or DESC")

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC

    def ensure_sortable(self, allowed: Sequence[str]) -> None:
        """Reject sort fields that are not columns of the listed entity"""
        if self.sort not in allowed:
            raise FieldValidationError({
                "sort": f"Unknown sort field '{self.sort}', expected one of: {', '.join(allowed)}"
            })


class PageResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    size: int


class ErrorResponse(BaseModel):
    status: int
    type: str
    message: str
    errors: Optional[Dict[str, str]] = None
    timestamp: datetime
