"""
Truck schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from fleet.schemas.common import PageResponse

PLATE_PATTERN = r"^[A-Z]{3}[0-9][0-9A-Z][0-9]{2}$"

TRUCK_SORT_FIELDS = ("id", "plate", "model", "manufacturing_year", "driver_id", "created_at")


class TruckBase(BaseModel):
    plate: str = Field(..., pattern=PLATE_PATTERN, description="Mercosur plate (AAA0A00)")
    model: str = Field(..., min_length=2, max_length=50)
    manufacturing_year: Optional[int] = Field(None, ge=1990, le=2025)
    driver_id: Optional[int] = Field(None, description="Owning driver")


class TruckCreate(TruckBase):
    pass


class TruckUpdate(TruckBase):
    """Full replacement of the editable fields"""
    pass


class TruckResponse(TruckBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


TruckListResponse = PageResponse[TruckResponse]
