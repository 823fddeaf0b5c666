# models package

from fleet.models.driver import Driver
from fleet.models.truck import Truck
from fleet.models.delivery import Delivery, CargoType

__all__ = [
    "Driver",
    "Truck",
    "Delivery",
    "CargoType",
]
