import logging
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from team_service.core.config import Settings
from team_service.core.errors import StoreError, raises_store_error

# Table models must be imported before create_all
from team_service.models import Metric, Task  # noqa: F401

logger = logging.getLogger(__name__)


class Store:
    """
    Persistent store adapter over an async SQLAlchemy engine.

    The engine owns a bounded connection pool; callers beyond its capacity
    wait up to the pool timeout for a connection, then fail with a StoreError.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        # Create async session factory using async_sessionmaker
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Store":
        engine = create_async_engine(
            settings.async_database_url,
            echo=False,
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
        )
        return cls(engine)

    @raises_store_error("Failed to initialize database")
    async def ensure_schema(self) -> None:
        """Create the tasks and metrics tables if they do not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database tables initialized")

    @raises_store_error("Database query failed")
    async def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict]:
        """
        Execute a parameterized statement and return its rows as mappings.

        Values are always passed as bound parameters (``:name`` placeholders).
        """
        async with self.engine.begin() as conn:
            result = await conn.execute(text(sql), params or {})
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings().all()]

    async def ping(self) -> bool:
        try:
            await self.query("SELECT 1")
        except StoreError as e:
            logger.warning(f"Database ping failed: {e.__cause__!r}")
            return False
        return True

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection pool closed")


# Dependency for getting DB session
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    store: Store = request.app.state.store
    async with store.session() as session:
        yield session
