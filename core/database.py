"""
Async database access.

The engine is created lazily on first use from DATABASE_URL and shared by
the process. Call close_engine() on shutdown (and between tests).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .config import get_database_url

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None


class DatabaseNotConfiguredError(RuntimeError):
    """Raised when a connection is requested without DATABASE_URL set."""
    pass


def get_engine() -> AsyncEngine:
    global _engine

    if _engine is None:
        database_url = get_database_url()
        if not database_url:
            raise DatabaseNotConfiguredError("DATABASE_URL is not set")
        _engine = create_async_engine(database_url, pool_pre_ping=True)
        logger.info("Database engine created")

    return _engine


@asynccontextmanager
async def get_connection() -> AsyncIterator[AsyncConnection]:
    """Connection for reads. Writes made here are not committed."""
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[AsyncConnection]:
    """Connection inside a transaction, committed on success and rolled back on error."""
    async with get_engine().begin() as conn:
        yield conn


async def close_engine() -> None:
    global _engine

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("Database engine disposed")
