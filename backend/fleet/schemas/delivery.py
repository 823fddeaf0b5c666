"""Delivery schemas"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from fleet.models.delivery import CargoType
from fleet.schemas.common import PageResponse, to_local_naive

DELIVERY_SORT_FIELDS = (
    "id", "destination", "delivery_datetime", "cargo_type", "value",
    "truck_id", "driver_id", "created_at",
)


class DeliveryCreate(BaseModel):
    """
    Delivery draft as sent by the client.
    The derived flags are not part of the draft; unknown fields are ignored.
    """
    destination: str = Field(..., min_length=2, max_length=100)
    delivery_datetime: datetime = Field(..., description="Must be in the future")
    cargo_type: CargoType
    value: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    truck_id: int
    driver_id: int

    @field_validator("destination")
    @classmethod
    def destination_not_blank(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("destination must have between 2 and 100 characters")
        return v

    @field_validator("delivery_datetime")
    @classmethod
    def must_be_future(cls, v: datetime) -> datetime:
        v = to_local_naive(v)
        if v <= datetime.now():
            raise ValueError("delivery date must be in the future")
        return v


class DeliveryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    destination: str
    delivery_datetime: datetime
    cargo_type: CargoType
    value: Decimal
    is_high_value: bool
    is_dangerous: bool
    is_insured: bool
    truck_id: int
    driver_id: int
    created_at: Optional[datetime] = None


DeliveryListResponse = PageResponse[DeliveryResponse]
