"""
Driver schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from fleet.schemas.common import PageResponse

DRIVER_SORT_FIELDS = ("id", "name", "license", "created_at")


class DriverBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    license: str = Field(..., pattern=r"^[0-9]{11}$", description="Licence number, 11 digits")


class DriverCreate(DriverBase):
    pass


class DriverUpdate(DriverBase):
    pass


class DriverResponse(DriverBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


DriverListResponse = PageResponse[DriverResponse]
