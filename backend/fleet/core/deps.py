"""Dependency injection (no authentication)"""
from datetime import datetime
from typing import AsyncGenerator, Callable

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.cache import CacheBackend
from fleet.db.session import SessionLocal
from fleet.schemas.common import PageParams
from fleet.services.delivery_service import DeliveryService
from fleet.services.fleet_service import DriverService, TruckService
from fleet.services.locks import EntityLockRegistry


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped database session"""
    async with SessionLocal() as session:
        yield session


def get_cache(request: Request) -> CacheBackend:
    return request.app.state.cache


def get_locks(request: Request) -> EntityLockRegistry:
    return request.app.state.locks


def get_clock() -> Callable[[], datetime]:
    return datetime.now


def page_params(default_sort: str = "id") -> Callable[..., PageParams]:
    """Build a dependency reading page/size/sort/direction from the query string"""

    def dependency(
        page: int = Query(0, ge=0, description="Page number (starts at 0)"),
        size: int = Query(10, ge=1, le=100, description="Page size"),
        sort: str = Query(default_sort, min_length=1, description="Sort field"),
        direction: str = Query("ASC", pattern=r"(?i)^(asc|desc)$", description="ASC or DESC")) -> PageParams:
        return PageParams(page=page, size=size, sort=sort, direction=direction)

    return dependency


def get_delivery_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
    locks: EntityLockRegistry = Depends(get_locks),
    clock: Callable[[], datetime] = Depends(get_clock)) -> DeliveryService:
    return DeliveryService(db, cache, locks, clock=clock)


def get_truck_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
    locks: EntityLockRegistry = Depends(get_locks)) -> TruckService:
    return TruckService(db, cache, locks)


def get_driver_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
    locks: EntityLockRegistry = Depends(get_locks)) -> DriverService:
    return DriverService(db, cache, locks)
