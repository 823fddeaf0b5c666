"""
Tests for DeliveryService: read-through caching, write effects on the cache,
period listing and the daily total.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fleet.cache import CacheKey, MemoryCache
from fleet.core.exceptions import FieldValidationError, NotFound, UnexpectedFailure
from fleet.models import CargoType
from fleet.repositories import DeliveryRepository
from fleet.schemas.common import PageParams
from fleet.schemas.delivery import DeliveryCreate
from fleet.services.delivery_service import DeliveryService


@pytest.fixture
def service(db, cache, locks, clock):
    return DeliveryService(db, cache, locks, clock=clock)


def draft(truck, driver, when, destination="SUDESTE", value="1000.00"):
    return DeliveryCreate(
        destination=destination,
        delivery_datetime=when,
        cargo_type=CargoType.GENERAL,
        value=Decimal(value),
        truck_id=truck.id,
        driver_id=driver.id,
    )


class TestCreateAndGet:

    async def test_create_caches_the_new_delivery(self, service, factory, cache, now):
        created = await service.create(draft(await factory.truck(), await factory.driver(), now + timedelta(days=1),
                                             destination="NORDESTE"))

        cached = await cache.get(CacheKey.entity("deliveries", created.id))
        assert cached is not None
        assert cached["value"] == "1200.00"
        assert cached["destination"] == "NORDESTE"

    async def test_get_is_served_from_cache(self, service, factory, cache, now):
        delivery = await factory.delivery(await factory.truck(), await factory.driver(), now)

        first = await service.get(delivery.id)
        # a cached copy answers even if the row changes underneath
        await cache.set(CacheKey.entity("deliveries", delivery.id), {**first.model_dump(mode="json"), "destination": "CACHED"})
        second = await service.get(delivery.id)

        assert first.destination == "SUDESTE"
        assert second.destination == "CACHED"

    async def test_get_missing(self, service, cache):
        with pytest.raises(NotFound) as exc_info:
            await service.get(404)
        assert exc_info.value.message == "Delivery not found with id 404"
        assert await cache.get(CacheKey.entity("deliveries", 404)) is None


class TestListing:

    async def test_page_is_cached_and_can_lag_behind_writes(self, service, factory, now):
        truck = await factory.truck()
        await factory.delivery(truck, await factory.driver(), now)
        params = PageParams(page=0, size=10)

        before = await service.list(params)
        await service.create(draft(truck, await factory.driver(), now + timedelta(days=1)))
        after = await service.list(params)

        assert before.total == 1
        # page entries are not invalidated by writes; they expire on their own
        assert after.total == 1

    async def test_different_page_parameters_use_different_entries(self, service, factory, now):
        truck = await factory.truck()
        for _ in range(3):
            await factory.delivery(truck, await factory.driver(), now)

        first = await service.list(PageParams(page=0, size=2))
        second = await service.list(PageParams(page=1, size=2))
        descending = await service.list(PageParams(page=0, size=2, direction="desc"))

        assert [d.id for d in first.data] != [d.id for d in second.data]
        assert len(second.data) == 1
        assert descending.data[0].id > descending.data[1].id
        assert first.total == second.total == 3

    async def test_unknown_sort_field(self, service):
        with pytest.raises(FieldValidationError) as exc_info:
            await service.list(PageParams(sort="password"))
        assert "sort" in exc_info.value.errors

    async def test_period(self, service, factory):
        truck = await factory.truck()
        inside = await factory.delivery(truck, await factory.driver(), datetime(2030, 3, 12, 8, 0))
        edge = await factory.delivery(truck, await factory.driver(), datetime(2030, 3, 15, 23, 59, 59))
        await factory.delivery(truck, await factory.driver(), datetime(2030, 3, 16, 0, 0, 1))

        page = await service.list_by_period(
            datetime(2030, 3, 12), datetime(2030, 3, 15, 23, 59, 59), PageParams(sort="delivery_datetime")
        )

        assert page.total == 2
        assert [d.id for d in page.data] == [inside.id, edge.id]

    async def test_period_end_before_start(self, service):
        with pytest.raises(FieldValidationError) as exc_info:
            await service.list_by_period(datetime(2030, 3, 15), datetime(2030, 3, 1), PageParams())
        assert "end_date" in exc_info.value.errors

    async def test_period_bounds_with_offsets_match_local_times(self, service, factory, cache):
        truck = await factory.truck()
        inside = await factory.delivery(truck, await factory.driver(), datetime(2030, 3, 14, 8, 0))
        # the same instant as local 2030-03-12 00:00, expressed in UTC
        aware_start = datetime(2030, 3, 12).astimezone(timezone.utc)

        page = await service.list_by_period(aware_start, datetime(2030, 3, 15), PageParams())
        entries = len(cache)
        again = await service.list_by_period(datetime(2030, 3, 12), datetime(2030, 3, 15), PageParams())

        assert [d.id for d in page.data] == [inside.id]
        assert again.total == 1
        assert len(cache) == entries

    async def test_period_end_before_start_across_offsets(self, service):
        # local 2030-03-15 00:00 vs. the same day minus one hour, one of them aware
        end = (datetime(2030, 3, 15) - timedelta(hours=1)).astimezone(timezone.utc)
        with pytest.raises(FieldValidationError):
            await service.list_by_period(datetime(2030, 3, 15), end, PageParams())


class TestTodayTotal:

    async def test_sums_only_today(self, service, factory, now):
        truck = await factory.truck()
        today = now.replace(hour=0, minute=0, second=0)
        await factory.delivery(truck, await factory.driver(), today)
        await factory.delivery(truck, await factory.driver(), now)
        await factory.delivery(truck, await factory.driver(), today.replace(hour=23, minute=59, second=59))
        await factory.delivery(truck, await factory.driver(), today + timedelta(days=1))

        total = await service.today_total()

        assert total == Decimal("3000.00")
        assert str(total) == "3000.00"

    async def test_no_deliveries_is_zero(self, service):
        total = await service.today_total()
        assert str(total) == "0.00"

    async def test_total_is_cached_per_day(self, db, service, factory, cache, locks, now):
        truck = await factory.truck()
        await factory.delivery(truck, await factory.driver(), now)
        assert await service.today_total() == Decimal("1000.00")

        await factory.delivery(truck, await factory.driver(), now)
        assert await service.today_total() == Decimal("1000.00")

        tomorrow = DeliveryService(db, cache, locks, clock=lambda: now + timedelta(days=1))
        assert await tomorrow.today_total() == Decimal("0.00")


class FailingWritesCache(MemoryCache):
    async def set(self, key, value, ttl=None):
        raise UnexpectedFailure("cache write failed: connection reset")


class TestCacheWriteFailure:

    async def test_create_succeeds_when_cache_put_fails(self, db, factory, locks, clock, now):
        service = DeliveryService(db, FailingWritesCache(default_ttl=300), locks, clock=clock)

        created = await service.create(draft(await factory.truck(), await factory.driver(), now + timedelta(days=1)))

        stored = await DeliveryRepository(db).get(created.id)
        assert stored is not None
        assert stored.value == Decimal("1000.00")
