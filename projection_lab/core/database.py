"""Database connection, session management and round-trip accounting."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from projection_lab.core.config import get_settings
from projection_lab.core.request_context import current_round_trip_counter
from projection_lab.core.structured_logging import log_json

settings = get_settings()
logger = logging.getLogger(__name__)


def install_round_trip_counter(engine: AsyncEngine) -> None:
    """Count every statement the engine sends to the database.

    Each ``before_cursor_execute`` is one round trip; it is credited to the
    counter opened by ``count_round_trips()`` in the calling context.
    """

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _count_round_trip(
        conn, cursor, statement, parameters, context, executemany
    ) -> None:
        counter = current_round_trip_counter()
        if counter is not None:
            counter.increment()


def install_slow_query_log(engine: AsyncEngine, threshold_ms: float) -> None:
    """Log statements slower than ``threshold_ms`` as ``slow_query`` events."""

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _before_cursor_execute(
        conn, cursor, statement, parameters, context, executemany
    ) -> None:
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def _after_cursor_execute(
        conn, cursor, statement, parameters, context, executemany
    ) -> None:
        start = getattr(context, "_query_start_time", None)
        if start is None:
            return

        duration_ms = (time.perf_counter() - start) * 1000
        if duration_ms < threshold_ms:
            return

        max_len = 2000
        stmt = str(statement)
        if len(stmt) > max_len:
            stmt = stmt[: max_len - 3] + "..."

        log_json(
            logger,
            logging.WARNING,
            "slow_query",
            duration_ms=round(duration_ms, 2),
            statement=stmt,
        )


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create an async engine with round-trip counting installed."""
    new_engine = create_async_engine(database_url, echo=False, **kwargs)
    install_round_trip_counter(new_engine)
    if settings.slow_query_ms > 0:
        install_slow_query_log(new_engine, settings.slow_query_ms)
    return new_engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# Use NullPool for testing environments to avoid connection pool issues
engine = build_engine(
    settings.async_database_url,
    poolclass=NullPool if "test" in settings.database_url else None,
)

AsyncSessionLocal = build_session_factory(engine)


async def init_schema(bind: AsyncEngine) -> None:
    """Create any missing tables for the mapped models."""
    from projection_lab.models import Base

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Yields:
        AsyncSession: Database session

    Usage:
        @app.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            # Use db session
            pass
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
