"""
MovieGo API: Database Session Management
========================================

What:  Async SQLAlchemy engine, session factory, session scope and the
       per-call timeout wrapper used by every SQL store operation.
Why:   Centralizes all database connection logic in one place.
How:   `create_engine()` builds a pooled asyncpg engine from Settings;
       `session_scope()` commits on success and rolls back on error;
       `bounded()` enforces the store call timeout.
Who:   Used by `moviego.store.sql` and the application lifespan.
When:  The engine is created by `create_app()` (not at import time) so tests
       and the in-memory backend never open a connection pool.

Connection Pooling Strategy:
    pool_size=25:      Persistent connections for normal load
    max_overflow=0:    Never open more than the configured pool
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle=900:  Idle connections are recycled after `db_max_idle_time`

Failure mapping:
    asyncio.TimeoutError         → TransientStoreError (503)
    OperationalError / OSError   → TransientStoreError (503)
    Everything else propagates unchanged; callers decide whether it is a
    NotFound, a conflict or an internal fault.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from moviego.config import Settings
from moviego.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they share one metadata object,
    which Alembic reads for autogenerate and migrations.
    """

    pass


# ── Engine / Session Factory ──────────────────────────────────────────────
def create_engine(settings: Settings) -> AsyncEngine:
    """Build the pooled async engine described by `settings`."""
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=settings.db_max_idle_time,
        # SQL logging is noisy; only useful during development
        echo=settings.log_level == "DEBUG",
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Creates new AsyncSession instances with consistent configuration.

    expire_on_commit=False: rows returned by a store stay readable after the
    transaction has committed and the session is closed.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Provide one transactional session for a single store operation.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the store method (which performs queries)
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)

    Example:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
    """
    session = factory()
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
    finally:
        await session.close()


# ── Timeout / transient failure mapping ───────────────────────────────────
async def bounded(awaitable: Awaitable[T], timeout: float, operation: str = "") -> T:
    """
    Await `awaitable` for at most `timeout` seconds.

    A timeout or a lost connection is reported as TransientStoreError so the
    handler answers 503 instead of misreporting a NotFound or a 500. The
    operation may or may not have been applied by the database.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("Store call %s timed out after %.1fs", operation or "?", timeout)
        raise TransientStoreError(
            message="the database did not respond in time, please try again",
            context={"operation": operation, "timeout": timeout},
        ) from exc
    except (OperationalError, ConnectionError, OSError) as exc:
        logger.warning("Store call %s lost its connection: %s", operation or "?", type(exc).__name__)
        raise TransientStoreError(context={"operation": operation, "error_type": type(exc).__name__}) from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise TransientStoreError(context={"operation": operation, "error_type": "connection_invalidated"}) from exc
        raise


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
