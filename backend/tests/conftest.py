"""
Shared fixtures: a throw-away SQLite file per test, an in-process cache,
a fresh lock registry and a pinned clock.
"""

import os
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="fleet-logs-"))
os.environ.setdefault("CACHE_SWEEP_ENABLED", "false")

from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest

from fleet.cache import MemoryCache
from fleet.db.init_db import ensure_tables_exist
from fleet.db.session import build_engine, build_session_factory
from fleet.models import CargoType, Delivery, Driver, Truck
from fleet.services.locks import EntityLockRegistry

# mid-month and far enough in the future that
# every date used in the tests passes the "must be in the future" check
FIXED_NOW = datetime(2030, 3, 10, 9, 30)


class FleetFactory:
    """Inserts rows directly, bypassing admission, to set up state"""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def driver(self, name: Optional[str] = None, license: Optional[str] = None) -> Driver:
        n = self._next()
        driver = Driver(name=name or f"Driver {n:03d}", license=license or f"{n:011d}")
        self.db.add(driver)
        await self.db.commit()
        await self.db.refresh(driver)
        return driver

    async def truck(self, plate: str = "ABC1D23", model: str = "Volvo FH", driver_id: Optional[int] = None) -> Truck:
        truck = Truck(plate=plate, model=model, manufacturing_year=2020, driver_id=driver_id)
        self.db.add(truck)
        await self.db.commit()
        await self.db.refresh(truck)
        return truck

    async def delivery(
        self,
        truck: Truck,
        driver: Driver,
        when: datetime,
        destination: str = "SUDESTE",
        value: str = "1000.00",
        cargo_type: CargoType = CargoType.GENERAL,
    ) -> Delivery:
        delivery = Delivery(
            destination=destination,
            delivery_datetime=when,
            cargo_type=cargo_type,
            value=Decimal(value),
            truck_id=truck.id,
            driver_id=driver.id,
        )
        self.db.add(delivery)
        await self.db.commit()
        await self.db.refresh(delivery)
        return delivery


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
async def engine(tmp_path):
    async_engine = build_engine(f"sqlite:///{tmp_path / 'fleet_test.db'}")
    await ensure_tables_exist(async_engine)
    yield async_engine
    await async_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache():
    return MemoryCache(default_ttl=300)


@pytest.fixture
def locks():
    return EntityLockRegistry()


@pytest.fixture
def factory(db):
    return FleetFactory(db)
