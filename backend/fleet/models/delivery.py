"""
Delivery model

A delivery references exactly one truck and one driver by id. The three
flags are derived from value and cargo_type and are recomputed right before
every INSERT and UPDATE, so a stored row never carries stale flags.
"""
import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL, Boolean, Enum, event
from fleet.db.base import Base
from fleet.core.config import settings


class CargoType(str, enum.Enum):
    GENERAL = "GENERAL"
    COMBUSTIBLE = "COMBUSTIBLE"
    ELECTRONICS = "ELECTRONICS"
    PERISHABLE = "PERISHABLE"
    FRAGILE = "FRAGILE"


class Delivery(Base):
    __tablename__ = "deliveries"

    id = Column(Integer, primary_key=True, index=True)
    destination = Column(String(100), nullable=False)
    delivery_datetime = Column(DateTime, nullable=False, index=True, comment="Scheduled date/time")
    cargo_type = Column(Enum(CargoType, native_enum=False, length=20), nullable=False)
    value = Column(DECIMAL(12, 2), nullable=False, comment="Value after regional adjustment")

    # derived flags
    is_high_value = Column(Boolean, nullable=False, default=False)
    is_dangerous = Column(Boolean, nullable=False, default=False)
    is_insured = Column(Boolean, nullable=False, default=False)

    truck_id = Column(Integer, ForeignKey("trucks.id", ondelete="CASCADE"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.now)

    # not persisted; None means settings.HIGH_VALUE_THRESHOLD
    high_value_threshold = None

    def __repr__(self):
        return f"<Delivery {self.id} -> {self.destination} ({self.value})>"

    def recalculate_flags(self, threshold: Optional[Decimal] = None):
        """
        Recompute the derived flags from the current value and cargo type.
        The high-value threshold is, in order: the argument, the instance's
        high_value_threshold, settings.HIGH_VALUE_THRESHOLD.
        """
        if threshold is None:
            threshold = self.high_value_threshold
        if threshold is None:
            threshold = settings.HIGH_VALUE_THRESHOLD
        value = Decimal(str(self.value)) if self.value is not None else Decimal("0")
        cargo = CargoType(self.cargo_type) if self.cargo_type is not None else None
        self.is_high_value = value > threshold
        self.is_dangerous = cargo == CargoType.COMBUSTIBLE
        self.is_insured = cargo == CargoType.ELECTRONICS


@event.listens_for(Delivery, "before_insert")
@event.listens_for(Delivery, "before_update")
def _refresh_derived_flags(mapper, connection, target: Delivery):
    target.recalculate_flags()
