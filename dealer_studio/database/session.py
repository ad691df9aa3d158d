"""Database session management for the Dealer Studio application.

This module handles database connection management including:
- Async SQLAlchemy engine and session factory
- Transaction handling
- Slow query logging
- Schema creation at startup
- Tracing spans around data access

The implementation uses SQLAlchemy 2.0 async patterns. SQLite (through
aiosqlite) is the default backend; any async driver URL works.
"""

import time
from contextlib import asynccontextmanager
from functools import wraps
from typing import AsyncGenerator, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)

from dealer_studio.core.config import Settings, get_settings
from dealer_studio.core.logging import get_logger
from dealer_studio.models.database.base import Base

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


class SessionManager:
    """Manage database sessions and connections."""

    slow_query_threshold = 1.0  # seconds

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize session manager with configuration."""
        self.settings = settings or get_settings()
        self.engine = self._create_engine()
        self.session_factory = self._create_session_factory()

        self._setup_engine_events()

    def _create_engine(self) -> AsyncEngine:
        """Create SQLAlchemy engine with proper configuration."""
        options = {"echo": self.settings.SQL_ECHO}
        if not self.settings.is_sqlite:
            options.update(
                pool_size=self.settings.DB_POOL_SIZE,
                max_overflow=self.settings.DB_MAX_OVERFLOW,
                pool_timeout=self.settings.DB_POOL_TIMEOUT,
                pool_recycle=self.settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,
            )
        return create_async_engine(self.settings.DATABASE_URL, **options)

    def _create_session_factory(self) -> async_sessionmaker:
        """Create session factory with proper configuration."""
        return async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

    def _setup_engine_events(self):
        """Set up SQLAlchemy engine event listeners."""
        sync_engine = self.engine.sync_engine

        @event.listens_for(sync_engine, 'before_cursor_execute')
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault('query_start_time', []).append(time.time())

        @event.listens_for(sync_engine, 'after_cursor_execute')
        def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            start_time = conn.info['query_start_time'].pop()
            duration = time.time() - start_time

            if duration > self.slow_query_threshold:
                logger.warning(
                    "Slow query detected",
                    duration=duration,
                    statement=statement
                )

    async def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get database session with automatic cleanup."""
        session: AsyncSession = self.session_factory()
        try:
            yield session
        except Exception as e:
            logger.error("Session error", error=e)
            await session.rollback()
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Get database session with transaction management."""
        async with self.session() as session:
            async with session.begin():
                yield session

    async def healthcheck(self) -> bool:
        """Perform database health check."""
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed", error=e)
            return False

    async def close(self) -> None:
        await self.engine.dispose()


def with_tracing(func):
    """Decorator for database operation tracing."""
    @wraps(func)
    async def wrapper(*args, **kwargs):
        with tracer.start_as_current_span(
            f"db_{func.__name__}",
            kind=trace.SpanKind.CLIENT
        ) as span:
            try:
                result = await func(*args, **kwargs)
                span.set_status(Status(StatusCode.OK))
                return result
            except Exception as e:
                span.set_status(
                    Status(StatusCode.ERROR, str(e))
                )
                raise
    return wrapper
