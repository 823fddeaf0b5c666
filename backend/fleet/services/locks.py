"""
Per-entity locks for admission.

One asyncio.Lock per (kind, id). Locks are created on demand and dropped
once nobody references them. They only serialize coroutines inside this
process.
"""
import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Tuple

from fleet.core.exceptions import UnexpectedFailure
from fleet.core.logging_config import get_logger

logger = get_logger(__name__)

LockKey = Tuple[str, int]


class EntityLockRegistry:

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[LockKey, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, kind: str, entity_id: int) -> asyncio.Lock:
        key = (kind, entity_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def is_locked(self, kind: str, entity_id: int) -> bool:
        lock = self._locks.get((kind, entity_id))
        return lock is not None and lock.locked()

    async def _acquire(self, key: LockKey, lock: asyncio.Lock, timeout: float, retries: int) -> None:
        for attempt in range(1, retries + 1):
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
                return
            except asyncio.TimeoutError:
                logger.warning(f"Lock {key[0]}:{key[1]} busy, attempt {attempt}/{retries}")
        raise UnexpectedFailure(f"could not lock {key[0]} {key[1]} after {retries} attempts")

    @asynccontextmanager
    async def hold(self, *keys: LockKey, timeout: float, retries: int) -> AsyncIterator[None]:
        """
        Acquire the locks in the order given and release them in reverse.
        Callers must always pass kinds in the same order (truck, then driver).
        """
        held: List[asyncio.Lock] = []
        try:
            for key in keys:
                lock = self.lock_for(*key)
                await self._acquire(key, lock, timeout, retries)
                held.append(lock)
            yield
        finally:
            for lock in reversed(held):
                lock.release()
