import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from fleet.db.session import engine
from fleet.db.base import Base

# register every model on Base.metadata
from fleet.models import Truck, Driver, Delivery  # noqa: F401


async def ensure_tables_exist(bind: Optional[AsyncEngine] = None) -> None:
    """
    Create missing tables (called at application startup)
    """
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    asyncio.run(ensure_tables_exist())
