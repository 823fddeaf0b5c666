"""
Cache backends.

Values go through JSON on the way in and out, so the in-process backend
behaves like Redis: callers always get a fresh copy and never a live object.
"""

import json
import time
from typing import Any, Callable, Dict, Optional, Tuple

import redis.asyncio as redis

from fleet.cache.keys import CacheKey
from fleet.core.exceptions import UnexpectedFailure
from fleet.core.logging_config import get_logger

logger = get_logger(__name__)


class CacheBackend:
    """Key -> JSON value store with per-entry expiry"""

    def __init__(self, default_ttl: int):
        self.default_ttl = default_ttl

    async def get(self, key: CacheKey) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: CacheKey, value: Any, ttl: Optional[int] = None) -> None:
        raise NotImplementedError

    async def delete(self, key: CacheKey) -> bool:
        raise NotImplementedError

    async def clear(self) -> None:
        raise NotImplementedError

    def sweep(self) -> int:
        """Drop expired entries; backends with native expiry have nothing to do"""
        return 0

    async def close(self) -> None:
        pass


class MemoryCache(CacheBackend):
    """In-process cache for a single-node deployment"""

    def __init__(self, default_ttl: int, timer: Callable[[], float] = time.monotonic):
        super().__init__(default_ttl)
        self._timer = timer
        self._entries: Dict[str, Tuple[float, str]] = {}

    async def get(self, key: CacheKey) -> Optional[Any]:
        name = key.render()
        entry = self._entries.get(name)
        if entry is None:
            logger.debug(f"cache miss {name}")
            return None
        expires_at, payload = entry
        if expires_at <= self._timer():
            self._entries.pop(name, None)
            logger.debug(f"cache expired {name}")
            return None
        logger.debug(f"cache hit {name}")
        return json.loads(payload)

    async def set(self, key: CacheKey, value: Any, ttl: Optional[int] = None) -> None:
        expires_at = self._timer() + (ttl or self.default_ttl)
        self._entries[key.render()] = (expires_at, json.dumps(value))

    async def delete(self, key: CacheKey) -> bool:
        return self._entries.pop(key.render(), None) is not None

    async def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        now = self._timer()
        expired = [name for name, (expires_at, _) in self._entries.items() if expires_at <= now]
        for name in expired:
            self._entries.pop(name, None)
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache(CacheBackend):
    """Redis-backed cache; keys get a common prefix"""

    PREFIX = "fleet:"

    def __init__(self, redis_url: str, default_ttl: int, client: Optional[redis.Redis] = None):
        super().__init__(default_ttl)
        self.redis_url = redis_url
        self.redis = client or redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )

    def _name(self, key: CacheKey) -> str:
        return f"{self.PREFIX}{key.render()}"

    async def get(self, key: CacheKey) -> Optional[Any]:
        try:
            payload = await self.redis.get(self._name(key))
        except redis.RedisError as e:
            logger.error(f"Redis GET failed for {key}: {e}")
            raise UnexpectedFailure(f"cache read failed: {e}") from e
        if payload is None:
            logger.debug(f"cache miss {key}")
            return None
        logger.debug(f"cache hit {key}")
        return json.loads(payload)

    async def set(self, key: CacheKey, value: Any, ttl: Optional[int] = None) -> None:
        try:
            await self.redis.setex(self._name(key), ttl or self.default_ttl, json.dumps(value))
        except redis.RedisError as e:
            logger.error(f"Redis SETEX failed for {key}: {e}")
            raise UnexpectedFailure(f"cache write failed: {e}") from e

    async def delete(self, key: CacheKey) -> bool:
        try:
            return bool(await self.redis.delete(self._name(key)))
        except redis.RedisError as e:
            logger.error(f"Redis DEL failed for {key}: {e}")
            raise UnexpectedFailure(f"cache evict failed: {e}") from e

    async def clear(self) -> None:
        keys = [k async for k in self.redis.scan_iter(match=f"{self.PREFIX}*")]
        if keys:
            await self.redis.delete(*keys)

    async def close(self) -> None:
        await self.redis.aclose()
        logger.info("Redis cache closed")
