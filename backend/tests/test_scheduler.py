"""
Tests for the cache sweep job and the lock registry it shares the app with.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from fleet.cache import CacheKey, MemoryCache
from fleet.core.exceptions import UnexpectedFailure
from fleet.services import scheduler
from fleet.services.locks import EntityLockRegistry


class TestCacheSweep:

    async def test_sweep_drops_expired_entries(self):
        clock = [0.0]
        cache = MemoryCache(default_ttl=10, timer=lambda: clock[0])
        await cache.set(CacheKey.entity("trucks", 1), "a")
        await cache.set(CacheKey.entity("trucks", 2), "b", ttl=100)
        clock[0] = 50.0

        assert scheduler.sweep_cache(cache) == 1
        assert len(cache) == 1

    def test_sweep_failure_is_logged_not_raised(self):
        cache = MagicMock()
        cache.sweep.side_effect = RuntimeError("boom")

        assert scheduler.sweep_cache(cache) == 0

    def test_status_without_scheduler(self, monkeypatch):
        monkeypatch.setattr(scheduler, "scheduler", None)

        status = scheduler.get_scheduler_status()

        assert status["running"] is False
        assert status["jobs"] == []


class TestEntityLockRegistry:

    def test_same_entity_same_lock(self):
        locks = EntityLockRegistry()
        assert locks.lock_for("truck", 1) is locks.lock_for("truck", 1)
        assert locks.lock_for("truck", 1) is not locks.lock_for("driver", 1)

    async def test_hold_releases_in_reverse_order(self):
        locks = EntityLockRegistry()

        async with locks.hold(("truck", 1), ("driver", 2), timeout=1, retries=1):
            assert locks.is_locked("truck", 1)
            assert locks.is_locked("driver", 2)

        assert not locks.is_locked("truck", 1)
        assert not locks.is_locked("driver", 2)

    async def test_waiter_gets_the_lock_once_released(self):
        locks = EntityLockRegistry()
        order = []

        async def worker(name):
            async with locks.hold(("truck", 1), timeout=1, retries=3):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order == ["a-in", "a-out", "b-in", "b-out"]

    async def test_gives_up_after_retries(self):
        locks = EntityLockRegistry()
        held = locks.lock_for("driver", 9)
        await held.acquire()

        with pytest.raises(UnexpectedFailure):
            async with locks.hold(("driver", 9), timeout=0.01, retries=2):
                pass

        held.release()
