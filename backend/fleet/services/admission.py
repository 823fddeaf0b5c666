"""
Delivery admission.

Checks run in a fixed order and stop at the first failure:

1. truck monthly capacity
2. driver monthly capacity
3. restricted region (a driver serves it at most once, ever)
4. regional price adjustment (never fails)
5. derived flags
6. insert + commit

Steps 1-6 run while holding the truck lock and then the driver lock, so two
concurrent admissions for the same truck or driver cannot both pass a count
that is about to change.
"""
import calendar
from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from fleet.core.config import Settings, settings
from fleet.core.exceptions import CapacityExceeded, NotFound, RestrictedDestinationExceeded
from fleet.core.logging_config import get_logger
from fleet.models.delivery import Delivery
from fleet.repositories import DeliveryRepository, DriverRepository, TruckRepository
from fleet.schemas.delivery import DeliveryCreate
from fleet.services.locks import EntityLockRegistry
from fleet.services.pricing import apply_regional_adjustment, normalize_destination

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """First day 00:00:00 to last day 23:59:59 of the month containing now"""
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(day=last_day, hour=23, minute=59, second=59, microsecond=0)
    return start, end


def day_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """00:00:00 to 23:59:59 of the day containing now"""
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(hour=23, minute=59, second=59, microsecond=0)
    return start, end


class DeliveryAdmissionEngine:

    def __init__(
        self,
        db: AsyncSession,
        locks: EntityLockRegistry,
        clock: Clock = datetime.now,
        config: Optional[Settings] = None,
    ):
        self.db = db
        self.locks = locks
        self.clock = clock
        self.config = config or settings
        self.deliveries = DeliveryRepository(db)
        self.trucks = TruckRepository(db)
        self.drivers = DriverRepository(db)

    async def admit(self, draft: DeliveryCreate) -> Delivery:
        """
        Validate, price and persist a new delivery.

        Raises NotFound for a missing truck or driver, CapacityExceeded or
        RestrictedDestinationExceeded when a rule rejects the draft, and
        UnexpectedFailure when the entity locks cannot be obtained.
        Nothing is written unless every check passes.
        """
        async with self.locks.hold(
            ("truck", draft.truck_id),
            ("driver", draft.driver_id),
            timeout=self.config.ADMISSION_LOCK_TIMEOUT,
            retries=self.config.ADMISSION_LOCK_RETRIES,
        ):
            try:
                delivery = await self._admit_locked(draft)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        logger.info(
            f"Delivery {delivery.id} admitted: truck={delivery.truck_id} driver={delivery.driver_id} "
            f"destination={delivery.destination} value={delivery.value}"
        )
        return delivery

    async def _admit_locked(self, draft: DeliveryCreate) -> Delivery:
        if not await self.trucks.exists(draft.truck_id):
            raise NotFound("Truck", draft.truck_id)
        if not await self.drivers.exists(draft.driver_id):
            raise NotFound("Driver", draft.driver_id)

        start, end = month_bounds(self.clock())
        await self._check_truck_capacity(draft.truck_id, start, end)
        await self._check_driver_capacity(draft.driver_id, start, end)
        await self._check_restricted_destination(draft.driver_id, draft.destination)

        delivery = Delivery(
            destination=draft.destination,
            delivery_datetime=draft.delivery_datetime,
            cargo_type=draft.cargo_type,
            value=apply_regional_adjustment(draft.value, draft.destination),
            truck_id=draft.truck_id,
            driver_id=draft.driver_id,
        )
        delivery.high_value_threshold = self.config.HIGH_VALUE_THRESHOLD
        delivery.recalculate_flags()
        return await self.deliveries.add(delivery)

    async def _check_truck_capacity(self, truck_id: int, start: datetime, end: datetime):
        limit = self.config.TRUCK_MONTHLY_LIMIT
        count = await self.deliveries.count_for_truck_between(truck_id, start, end)
        if count >= limit:
            logger.info(f"Rejected: truck {truck_id} has {count} deliveries this month (limit {limit})")
            raise CapacityExceeded("truck", truck_id, limit)

    async def _check_driver_capacity(self, driver_id: int, start: datetime, end: datetime):
        limit = self.config.DRIVER_MONTHLY_LIMIT
        count = await self.deliveries.count_for_driver_between(driver_id, start, end)
        if count >= limit:
            logger.info(f"Rejected: driver {driver_id} has {count} deliveries this month (limit {limit})")
            raise CapacityExceeded("driver", driver_id, limit)

    async def _check_restricted_destination(self, driver_id: int, destination: str):
        region = normalize_destination(self.config.RESTRICTED_REGION)
        if normalize_destination(destination) != region:
            return
        count = await self.deliveries.count_for_driver_to_destination(driver_id, region)
        if count >= 1:
            logger.info(f"Rejected: driver {driver_id} already served {region}")
            raise RestrictedDestinationExceeded(driver_id, region)
