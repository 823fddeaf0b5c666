"""
Truck and driver CRUD behind the cache.

Same contract as DeliveryService: create/update write the single-entity
key, delete evicts it, page entries are left to expire. Deletes cascade to
the entity's deliveries and evict their keys too.
"""
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.cache import CacheBackend, CacheKey
from fleet.core.config import Settings, settings
from fleet.core.exceptions import FieldValidationError, NotFound, UnexpectedFailure
from fleet.core.logging_config import get_logger
from fleet.repositories import DeliveryRepository, DriverRepository, TruckRepository
from fleet.repositories.base import BaseRepository
from fleet.schemas.common import PageParams, PageResponse
from fleet.schemas.driver import DriverBase, DriverListResponse, DriverResponse
from fleet.schemas.truck import TruckBase, TruckListResponse, TruckResponse
from fleet.services.delivery_service import delivery_cache_keys
from fleet.services.locks import EntityLockRegistry

logger = get_logger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class CachedCrudService(Generic[ResponseT]):
    namespace: str
    label: str
    lock_kind: str
    response_schema: Type[ResponseT]
    list_schema: Type[PageResponse]

    def __init__(self, db: AsyncSession, cache: CacheBackend, locks: EntityLockRegistry,
                 config: Optional[Settings] = None):
        self.db = db
        self.cache = cache
        self.locks = locks
        self.config = config or settings
        self.deliveries = DeliveryRepository(db)
        self.repository: BaseRepository = self._build_repository(db)

    def _build_repository(self, db: AsyncSession) -> BaseRepository:
        raise NotImplementedError

    async def _validate(self, payload: BaseModel, entity_id: Optional[int] = None) -> None:
        """Cross-record checks run before create and update"""

    async def _delete_dependents(self, entity_id: int) -> List[CacheKey]:
        """Remove or detach dependent rows; returns the cache keys they occupied"""
        return []

    def _key(self, entity_id: int) -> CacheKey:
        return CacheKey.entity(self.namespace, entity_id)

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(f"{self.label} write rejected by constraint: {e.orig}")
            self._translate_integrity_error(e)
            raise

    def _translate_integrity_error(self, error: IntegrityError) -> None:
        """Raise a domain error for constraint violations the caller can fix"""

    async def _put(self, instance: Any) -> ResponseT:
        """Cache the committed instance; a failed put is logged, the write still stands"""
        response = self.response_schema.model_validate(instance)
        try:
            await self.cache.set(self._key(response.id), response.model_dump(mode="json"))
        except UnexpectedFailure as e:
            logger.error(f"{self.label} {response.id} saved but not cached: {e.message}")
        return response

    async def create(self, payload: BaseModel) -> ResponseT:
        await self._validate(payload)
        instance = self.repository.model(**payload.model_dump())
        self.db.add(instance)
        await self._commit()
        await self.db.refresh(instance)
        logger.info(f"{self.label} {instance.id} created")
        return await self._put(instance)

    async def get(self, entity_id: int) -> ResponseT:
        key = self._key(entity_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return self.response_schema.model_validate(cached)

        instance = await self.repository.get(entity_id)
        if not instance:
            raise NotFound(self.label, entity_id)
        response = self.response_schema.model_validate(instance)
        await self.cache.set(key, response.model_dump(mode="json"))
        return response

    async def list(self, params: PageParams) -> PageResponse:
        """Paged listing; may be stale until the entry expires"""
        key = CacheKey.of(
            self.namespace, "page",
            page=params.page, size=params.size, sort=params.sort, direction=params.direction,
        )
        cached = await self.cache.get(key)
        if cached is not None:
            return self.list_schema.model_validate(cached)

        items, total = await self.repository.list_page(params)
        response = self.list_schema(
            data=[self.response_schema.model_validate(i) for i in items],
            total=total,
            page=params.page,
            size=params.size,
        )
        await self.cache.set(key, response.model_dump(mode="json"))
        return response

    async def update(self, entity_id: int, payload: BaseModel) -> ResponseT:
        instance = await self.repository.get(entity_id)
        if not instance:
            raise NotFound(self.label, entity_id)
        await self._validate(payload, entity_id)

        for field, value in payload.model_dump().items():
            setattr(instance, field, value)
        await self._commit()
        await self.db.refresh(instance)
        logger.info(f"{self.label} {entity_id} updated")
        return await self._put(instance)

    async def delete(self, entity_id: int) -> None:
        """Delete the entity and its deliveries; admissions for it are held off meanwhile"""
        async with self.locks.hold(
            (self.lock_kind, entity_id),
            timeout=self.config.ADMISSION_LOCK_TIMEOUT,
            retries=self.config.ADMISSION_LOCK_RETRIES,
        ):
            if not await self.repository.exists(entity_id):
                raise NotFound(self.label, entity_id)
            try:
                dependent_keys = await self._delete_dependents(entity_id)
                await self.repository.delete_by_id(entity_id)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

            # evict right after the commit, still under the entity lock
            await self.cache.delete(self._key(entity_id))
            for key in dependent_keys:
                await self.cache.delete(key)

        logger.info(f"{self.label} {entity_id} deleted ({len(dependent_keys)} dependent cache keys evicted)")


class TruckService(CachedCrudService[TruckResponse]):
    namespace = "trucks"
    label = "Truck"
    lock_kind = "truck"
    response_schema = TruckResponse
    list_schema = TruckListResponse

    def _build_repository(self, db: AsyncSession) -> TruckRepository:
        return TruckRepository(db)

    async def _validate(self, payload: TruckBase, entity_id: Optional[int] = None) -> None:
        if payload.driver_id is not None and not await DriverRepository(self.db).exists(payload.driver_id):
            raise NotFound("Driver", payload.driver_id)

    async def _delete_dependents(self, entity_id: int) -> List[CacheKey]:
        delivery_ids = await self.deliveries.ids_for_truck(entity_id)
        await self.deliveries.delete_for_truck(entity_id)
        return delivery_cache_keys(delivery_ids)


class DriverService(CachedCrudService[DriverResponse]):
    namespace = "drivers"
    label = "Driver"
    lock_kind = "driver"
    response_schema = DriverResponse
    list_schema = DriverListResponse

    def _build_repository(self, db: AsyncSession) -> DriverRepository:
        return DriverRepository(db)

    async def _validate(self, payload: DriverBase, entity_id: Optional[int] = None) -> None:
        existing = await self.repository.find_by_license(payload.license)
        if existing is not None and existing.id != entity_id:
            raise FieldValidationError({"license": "A driver with this licence already exists"})

    def _translate_integrity_error(self, error: IntegrityError) -> None:
        # two concurrent creates with the same licence both pass _validate
        raise FieldValidationError({"license": "A driver with this licence already exists"}) from error

    async def _delete_dependents(self, entity_id: int) -> List[CacheKey]:
        trucks = TruckRepository(self.db)
        truck_ids = await trucks.ids_for_driver(entity_id)
        delivery_ids = await self.deliveries.ids_for_driver(entity_id)
        await self.deliveries.delete_for_driver(entity_id)
        await trucks.release_driver(entity_id)
        # released trucks changed driver_id, so their cached copies go too
        return (
            delivery_cache_keys(delivery_ids)
            + [CacheKey.entity("trucks", i) for i in truck_ids]
        )
