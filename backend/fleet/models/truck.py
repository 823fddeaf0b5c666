"""
Truck model

The owning driver is optional. Removing the driver keeps the truck and
clears driver_id.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from fleet.db.base import Base


class Truck(Base):
    __tablename__ = "trucks"

    id = Column(Integer, primary_key=True, index=True)
    plate = Column(String(7), nullable=False, comment="Mercosur plate, AAA0A00")
    model = Column(String(50), nullable=False)
    manufacturing_year = Column(Integer, comment="1990-2025")

    driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="SET NULL"), index=True, comment="Owning driver")

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self):
        return f"<Truck {self.id}: {self.plate}>"
