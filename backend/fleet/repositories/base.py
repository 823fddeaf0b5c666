"""
Generic persistence for one model: point lookups, paged scans, writes.
Writes only flush; the caller owns the transaction and commits.
"""
from typing import Any, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.db.base import Base
from fleet.schemas.common import PageParams

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    model: Type[ModelT]
    sort_fields: Sequence[str] = ("id",)

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, entity_id: int) -> Optional[ModelT]:
        return await self.db.get(self.model, entity_id)

    async def exists(self, entity_id: int) -> bool:
        result = await self.db.execute(
            select(func.count(self.model.id)).where(self.model.id == entity_id)
        )
        return (result.scalar() or 0) > 0

    def _ordering(self, params: PageParams) -> List[Any]:
        params.ensure_sortable(self.sort_fields)
        column = getattr(self.model, params.sort)
        primary = column.desc() if params.descending else column.asc()
        # id as tie-breaker keeps pages stable
        if params.sort == "id":
            return [primary]
        return [primary, self.model.id.asc()]

    async def _page(self, params: PageParams, *conditions) -> Tuple[List[ModelT], int]:
        ordering = self._ordering(params)

        query = select(self.model)
        count_query = select(func.count(self.model.id))
        if conditions:
            query = query.where(*conditions)
            count_query = count_query.where(*conditions)

        query = query.order_by(*ordering).offset(params.offset).limit(params.size)

        result = await self.db.execute(query)
        items = list(result.scalars().all())

        count_result = await self.db.execute(count_query)
        total = count_result.scalar() or 0
        return items, total

    async def list_page(self, params: PageParams) -> Tuple[List[ModelT], int]:
        return await self._page(params)

    async def add(self, instance: ModelT) -> ModelT:
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def delete_by_id(self, entity_id: int) -> None:
        await self.db.execute(delete(self.model).where(self.model.id == entity_id))
