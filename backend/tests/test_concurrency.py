"""
Concurrent admissions against the same truck or driver.

Each admission gets its own session, like separate requests would. At most
one of the racing admissions may take the last free slot.
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import func, select

from fleet.core.exceptions import CapacityExceeded, RestrictedDestinationExceeded
from fleet.models import CargoType, Delivery
from fleet.schemas.delivery import DeliveryCreate
from fleet.services.admission import DeliveryAdmissionEngine

RACERS = 5


async def admit_in_own_session(session_factory, locks, clock, **fields):
    draft = DeliveryCreate(
        destination=fields.pop("destination", "SUDESTE"),
        delivery_datetime=fields.pop("when"),
        cargo_type=CargoType.GENERAL,
        value=Decimal("1000.00"),
        **fields,
    )
    async with session_factory() as session:
        return await DeliveryAdmissionEngine(session, locks, clock=clock).admit(draft)


def split(results):
    admitted = [r for r in results if isinstance(r, Delivery)]
    rejected = [r for r in results if isinstance(r, Exception)]
    return admitted, rejected


async def count_for(db, column, value) -> int:
    return (await db.execute(select(func.count(Delivery.id)).where(column == value))).scalar()


class TestConcurrentAdmission:

    async def test_last_truck_slot_goes_to_exactly_one(self, db, factory, session_factory, locks, clock, now):
        truck = await factory.truck()
        filler = await factory.driver()
        await factory.delivery(truck, filler, now)
        await factory.delivery(truck, filler, now)
        await factory.delivery(truck, await factory.driver(), now)
        drivers = [await factory.driver() for _ in range(RACERS)]

        results = await asyncio.gather(
            *[
                admit_in_own_session(
                    session_factory, locks, clock,
                    when=now + timedelta(days=1), truck_id=truck.id, driver_id=d.id,
                )
                for d in drivers
            ],
            return_exceptions=True,
        )

        admitted, rejected = split(results)
        assert len(admitted) == 1
        assert len(rejected) == RACERS - 1
        assert all(isinstance(e, CapacityExceeded) and e.kind == "truck" for e in rejected)
        assert await count_for(db, Delivery.truck_id, truck.id) == 4

    async def test_last_driver_slot_goes_to_exactly_one(self, db, factory, session_factory, locks, clock, now):
        driver = await factory.driver()
        await factory.delivery(await factory.truck(), driver, now)
        trucks = [await factory.truck() for _ in range(RACERS)]

        results = await asyncio.gather(
            *[
                admit_in_own_session(
                    session_factory, locks, clock,
                    when=now + timedelta(days=1), truck_id=t.id, driver_id=driver.id,
                )
                for t in trucks
            ],
            return_exceptions=True,
        )

        admitted, rejected = split(results)
        assert len(admitted) == 1
        assert all(isinstance(e, CapacityExceeded) and e.kind == "driver" for e in rejected)
        assert await count_for(db, Delivery.driver_id, driver.id) == 2

    async def test_restricted_region_goes_to_exactly_one(self, db, factory, session_factory, locks, clock, now):
        driver = await factory.driver()
        trucks = [await factory.truck() for _ in range(RACERS)]

        results = await asyncio.gather(
            *[
                admit_in_own_session(
                    session_factory, locks, clock,
                    when=now + timedelta(days=1), truck_id=t.id, driver_id=driver.id,
                    destination="nordeste" if i % 2 else "NORDESTE",
                )
                for i, t in enumerate(trucks)
            ],
            return_exceptions=True,
        )

        admitted, rejected = split(results)
        assert len(admitted) == 1
        assert len(rejected) == RACERS - 1
        assert all(isinstance(e, RestrictedDestinationExceeded) for e in rejected)
