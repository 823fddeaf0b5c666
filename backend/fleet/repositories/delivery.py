"""
Delivery persistence: aggregate counts used by admission, period scans and
the daily value total.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import select, func, delete

from fleet.models.delivery import Delivery
from fleet.repositories.base import BaseRepository
from fleet.schemas.common import PageParams
from fleet.schemas.delivery import DELIVERY_SORT_FIELDS


class DeliveryRepository(BaseRepository[Delivery]):
    model = Delivery
    sort_fields = DELIVERY_SORT_FIELDS

    async def _count(self, *conditions) -> int:
        result = await self.db.execute(select(func.count(Delivery.id)).where(*conditions))
        return result.scalar() or 0

    async def count_for_truck_between(self, truck_id: int, start: datetime, end: datetime) -> int:
        """Deliveries of a truck scheduled in [start, end]"""
        return await self._count(
            Delivery.truck_id == truck_id,
            Delivery.delivery_datetime.between(start, end),
        )

    async def count_for_driver_between(self, driver_id: int, start: datetime, end: datetime) -> int:
        """Deliveries of a driver scheduled in [start, end]"""
        return await self._count(
            Delivery.driver_id == driver_id,
            Delivery.delivery_datetime.between(start, end),
        )

    async def count_for_driver_to_destination(self, driver_id: int, destination: str) -> int:
        """All-time deliveries of a driver to a destination, case-insensitive"""
        return await self._count(
            Delivery.driver_id == driver_id,
            func.upper(func.trim(Delivery.destination)) == destination.strip().upper(),
        )

    async def list_between(self, start: datetime, end: datetime, params: PageParams) -> Tuple[List[Delivery], int]:
        return await self._page(params, Delivery.delivery_datetime.between(start, end))

    async def total_value_between(self, start: datetime, end: datetime) -> Decimal:
        """Sum of value for deliveries scheduled in [start, end]; 0.00 when none"""
        result = await self.db.execute(
            select(Delivery.value).where(Delivery.delivery_datetime.between(start, end))
        )
        # summed in Python so the addition stays in Decimal
        total = sum((Decimal(str(v)) for v in result.scalars().all()), Decimal("0"))
        return total.quantize(Decimal("0.01"))

    async def ids_for_truck(self, truck_id: int) -> List[int]:
        result = await self.db.execute(select(Delivery.id).where(Delivery.truck_id == truck_id))
        return list(result.scalars().all())

    async def ids_for_driver(self, driver_id: int) -> List[int]:
        result = await self.db.execute(select(Delivery.id).where(Delivery.driver_id == driver_id))
        return list(result.scalars().all())

    async def delete_for_truck(self, truck_id: int) -> None:
        await self.db.execute(delete(Delivery).where(Delivery.truck_id == truck_id))

    async def delete_for_driver(self, driver_id: int) -> None:
        await self.db.execute(delete(Delivery).where(Delivery.driver_id == driver_id))
