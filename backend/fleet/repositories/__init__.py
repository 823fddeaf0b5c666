from fleet.repositories.delivery import DeliveryRepository
from fleet.repositories.fleet import TruckRepository, DriverRepository

__all__ = ["DeliveryRepository", "TruckRepository", "DriverRepository"]
