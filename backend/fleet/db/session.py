import os
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from fleet.core.config import settings


def build_engine(database_uri: str) -> AsyncEngine:
    """
    Create an async engine for a sqlite URI.
    Foreign keys are switched on for every new connection so that
    ON DELETE rules are enforced.
    """
    async_engine = create_async_engine(
        database_uri.replace("sqlite:///", "sqlite+aiosqlite:///"),
        echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
        future=True,
    )

    @event.listens_for(async_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return async_engine


def build_session_factory(async_engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine(settings.SQLITE_DATABASE_URI)
SessionLocal = build_session_factory(engine)
