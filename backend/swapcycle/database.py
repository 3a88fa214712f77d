"""
SwapCycle Backend — Database Client & Session Management
==========================================================

What:  Async SQLAlchemy engine + session factory wrapped in an explicit
       `Database` client, plus the FastAPI session dependency.
Why:   The store client is constructed once per application and injected
       (app.state.database) instead of living in a module global, so tests can
       point an app at a throwaway SQLite file and shutdown can release it.
How:   `create_app()` builds the client (no I/O happens at construction),
       the lifespan disposes it, and `get_db_session` hands each request its
       own AsyncSession that commits on success and rolls back on error.

Connection Pooling Strategy (server databases only):
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600.
    SQLite gets SQLAlchemy's default pool; the sizing knobs do not apply there.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from swapcycle.config import Settings
from swapcycle.exceptions import InternalError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic and `Database.create_all()`
    both read.
    """
    pass


class Database:
    """
    Durable-store client: one engine and one session factory per process.

    Attributes:
        url:             Connection URL the engine was built from
        engine:          AsyncEngine owning the connection pool
        session_factory: async_sessionmaker producing per-request sessions
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
    ):
        self.url = url
        engine_kwargs = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)

        # expire_on_commit=False: response models are built from ORM objects
        # after the flush; expiring them would trigger lazy loads outside the
        # session's greenlet context
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.store_url,
            echo=settings.log_level == "DEBUG",
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Unit of work: commit if the body completes, roll back if it raises.

        Exceptions from the body are re-raised unchanged so the global handlers
        can map them to a response. A failed commit becomes InternalError.
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Commit failed: %s", type(e).__name__)
                raise InternalError(
                    context={"operation": "commit", "error_type": type(e).__name__}
                ) from e

    async def create_all(self) -> None:
        """Create any missing tables from the ORM metadata."""
        # Importing the package registers every model with Base.metadata
        import swapcycle.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Round-trip `SELECT 1`; raises if the store is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close every pooled connection. Called on application shutdown."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Declare it with scope="function" so the commit runs before the response
    is sent; a commit failure then reaches the client as a 500.

    Example usage in a route:
        @router.get("/listings")
        async def browse(db: AsyncSession = Depends(get_db_session, scope="function")):
            ...
    """
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Application has no database client configured")
    async with database.session() as session:
        yield session
