from fleet.cache.backends import CacheBackend, MemoryCache, RedisCache
from fleet.cache.keys import CacheKey


def build_cache(cache_url: str, default_ttl: int) -> CacheBackend:
    """Pick a backend from CACHE_URL (memory:// or redis://...)"""
    if cache_url.startswith("memory://"):
        return MemoryCache(default_ttl)
    if cache_url.startswith(("redis://", "rediss://", "unix://")):
        return RedisCache(cache_url, default_ttl)
    raise ValueError(f"Unsupported CACHE_URL: {cache_url}")


__all__ = ["CacheBackend", "MemoryCache", "RedisCache", "CacheKey", "build_cache"]
