"""Database connection, session management and transactional boundaries."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from paycycle.config import get_settings
from paycycle.errors import DependencyError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Create async database engine."""
    url = database_url or get_settings().database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )

def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the engine's standard session options."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

@asynccontextmanager
async def unit_of_work(
    session: AsyncSession, operation: str
) -> AsyncGenerator[AsyncSession, None]:
    """Run one engine operation as a single transaction.

    Commits when the block succeeds and rolls back on any exception, so no
    operation leaves partial writes behind. Storage failures surface as
    DependencyError; the caller may retry the whole operation.
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Storage failure during %s", operation)
        raise DependencyError(operation, str(exc)) from exc
    except Exception:
        await session.rollback()
        raise


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncGenerator[None, None]:
    """Surface storage failures of a read-only operation as DependencyError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage failure during %s", operation)
        raise DependencyError(operation, str(exc)) from exc
