"""
MovieGo API: Record Stores
==========================

`create_stores()` picks the backend named by `Settings.store_backend`.
"""

from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncEngine

from moviego.config import Settings
from moviego.database import create_engine, create_session_factory
from moviego.store.base import (
    MovieStore,
    PermissionStore,
    Stores,
    TokenStore,
    UserStore,
)
from moviego.store.memory import create_memory_stores
from moviego.store.sql import create_sql_stores

__all__ = [
    "MovieStore",
    "PermissionStore",
    "Stores",
    "TokenStore",
    "UserStore",
    "create_memory_stores",
    "create_sql_stores",
    "create_stores",
]


def create_stores(settings: Settings) -> Tuple[Stores, Optional[AsyncEngine]]:
    """
    Returns the stores plus the engine backing them (None for "memory"),
    so the lifespan can dispose of the pool at shutdown.
    """
    if settings.store_backend == "memory":
        return create_memory_stores(), None
    engine = create_engine(settings)
    factory = create_session_factory(engine)
    return create_sql_stores(factory, timeout=settings.db_query_timeout), engine
