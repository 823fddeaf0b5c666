"""
Delivery reads and writes behind the cache.

Consistency contract
--------------------
Reads check the cache first under a CacheKey built from the operation and
its parameters, and fill it on a miss.

Writes touch only single-delivery keys:
- create puts ``deliveries:id:id=<new id>``; a failed put after the commit
  is logged and the create still succeeds (the next get refills the entry);
- a cascading truck/driver delete evicts the keys of the removed deliveries
  (see delivery_cache_keys).

Page, period and daily-total entries are never invalidated by writes. They
can lag behind the database until they expire (CACHE_TTL_SECONDS). This
staleness window is accepted; callers that need fresh aggregates must not
read them through this service.
"""
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fleet.cache import CacheBackend, CacheKey
from fleet.core.config import Settings
from fleet.core.exceptions import FieldValidationError, NotFound, UnexpectedFailure
from fleet.core.logging_config import get_logger
from fleet.repositories import DeliveryRepository
from fleet.schemas.common import PageParams, to_local_naive
from fleet.schemas.delivery import DeliveryCreate, DeliveryListResponse, DeliveryResponse
from fleet.services.admission import Clock, DeliveryAdmissionEngine, day_bounds
from fleet.services.locks import EntityLockRegistry

logger = get_logger(__name__)

NAMESPACE = "deliveries"


def delivery_cache_keys(delivery_ids: Iterable[int]) -> List[CacheKey]:
    return [CacheKey.entity(NAMESPACE, delivery_id) for delivery_id in delivery_ids]


class DeliveryService:

    def __init__(
        self,
        db: AsyncSession,
        cache: CacheBackend,
        locks: EntityLockRegistry,
        clock: Clock = datetime.now,
        config: Optional[Settings] = None,
    ):
        self.cache = cache
        self.clock = clock
        self.repository = DeliveryRepository(db)
        self.engine = DeliveryAdmissionEngine(db, locks, clock=clock, config=config)

    async def create(self, draft: DeliveryCreate) -> DeliveryResponse:
        """Admit the draft, then cache the stored delivery under its id"""
        delivery = await self.engine.admit(draft)
        response = DeliveryResponse.model_validate(delivery)
        key = CacheKey.entity(NAMESPACE, response.id)
        try:
            await self.cache.set(key, response.model_dump(mode="json"))
        except UnexpectedFailure as e:
            # the delivery is committed, so the create still succeeds
            logger.error(f"Delivery {response.id} saved but not cached: {e.message}")
        return response

    async def get(self, delivery_id: int) -> DeliveryResponse:
        key = CacheKey.entity(NAMESPACE, delivery_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return DeliveryResponse.model_validate(cached)

        delivery = await self.repository.get(delivery_id)
        if not delivery:
            raise NotFound("Delivery", delivery_id)
        response = DeliveryResponse.model_validate(delivery)
        await self.cache.set(key, response.model_dump(mode="json"))
        return response

    async def list(self, params: PageParams) -> DeliveryListResponse:
        """Paged listing; may be stale until the entry expires"""
        key = CacheKey.of(
            NAMESPACE, "page",
            page=params.page, size=params.size, sort=params.sort, direction=params.direction,
        )
        cached = await self.cache.get(key)
        if cached is not None:
            return DeliveryListResponse.model_validate(cached)

        items, total = await self.repository.list_page(params)
        response = DeliveryListResponse(
            data=[DeliveryResponse.model_validate(d) for d in items],
            total=total,
            page=params.page,
            size=params.size,
        )
        await self.cache.set(key, response.model_dump(mode="json"))
        return response

    async def list_by_period(self, start: datetime, end: datetime, params: PageParams) -> DeliveryListResponse:
        """Deliveries scheduled in [start, end]; may be stale until the entry expires"""
        start, end = to_local_naive(start), to_local_naive(end)
        if end < start:
            raise FieldValidationError({"end_date": "end_date must not be before start_date"})

        key = CacheKey.of(
            NAMESPACE, "period",
            start=start, end=end,
            page=params.page, size=params.size, sort=params.sort, direction=params.direction,
        )
        cached = await self.cache.get(key)
        if cached is not None:
            return DeliveryListResponse.model_validate(cached)

        items, total = await self.repository.list_between(start, end, params)
        response = DeliveryListResponse(
            data=[DeliveryResponse.model_validate(d) for d in items],
            total=total,
            page=params.page,
            size=params.size,
        )
        await self.cache.set(key, response.model_dump(mode="json"))
        return response

    async def today_total(self) -> Decimal:
        """Value of the deliveries scheduled today; may be stale until the entry expires"""
        now = self.clock()
        key = CacheKey.of(NAMESPACE, "total", date=now.date())
        cached = await self.cache.get(key)
        if cached is not None:
            return Decimal(cached)

        start, end = day_bounds(now)
        total = await self.repository.total_value_between(start, end)
        await self.cache.set(key, str(total))
        return total
