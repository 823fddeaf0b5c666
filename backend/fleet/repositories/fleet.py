"""Truck and driver persistence"""
from typing import List, Optional

from sqlalchemy import select, update

from fleet.models.driver import Driver
from fleet.models.truck import Truck
from fleet.repositories.base import BaseRepository
from fleet.schemas.driver import DRIVER_SORT_FIELDS
from fleet.schemas.truck import TRUCK_SORT_FIELDS


class TruckRepository(BaseRepository[Truck]):
    model = Truck
    sort_fields = TRUCK_SORT_FIELDS

    async def ids_for_driver(self, driver_id: int) -> List[int]:
        result = await self.db.execute(select(Truck.id).where(Truck.driver_id == driver_id))
        return list(result.scalars().all())

    async def release_driver(self, driver_id: int) -> None:
        """Detach every truck from a driver that is being removed"""
        await self.db.execute(
            update(Truck).where(Truck.driver_id == driver_id).values(driver_id=None)
        )


class DriverRepository(BaseRepository[Driver]):
    model = Driver
    sort_fields = DRIVER_SORT_FIELDS

    async def find_by_license(self, license: str) -> Optional[Driver]:
        result = await self.db.execute(select(Driver).where(Driver.license == license))
        return result.scalar_one_or_none()
