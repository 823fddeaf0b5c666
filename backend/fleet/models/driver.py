"""
Driver model

- license: 11-digit national licence number, unique across drivers
- owns zero or more trucks (Truck.driver_id) and zero or more deliveries
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from fleet.db.base import Base


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="Full name")
    license = Column(String(11), nullable=False, unique=True, index=True, comment="Licence number (11 digits)")

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self):
        return f"<Driver {self.id}: {self.name}>"
