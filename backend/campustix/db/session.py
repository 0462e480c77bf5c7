"""
Async engine, session factory and storage-failure translation.

Every core operation runs under a bounded wait (DB_OPERATION_TIMEOUT) and
driver failures are mapped onto the retryable StorageTimeout /
StorageUnavailable errors. The drivers also get their own lock/statement
timeouts so a blocked row lock surfaces as an error instead of a hang.
"""

import asyncio
from contextlib import contextmanager
from typing import Any, AsyncGenerator, Awaitable, Iterator, Optional, TypeVar

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from campustix.core.config import get_settings
from campustix.core.exceptions import StorageError, StorageTimeout, StorageUnavailable
from campustix.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

T = TypeVar("T")

# lock_not_available, query_canceled (statement_timeout)
_TIMEOUT_SQLSTATES = {"55P03", "57014"}
_TIMEOUT_MARKERS = ("database is locked", "timeout", "timed out")


def engine_options(url: str) -> dict[str, Any]:
    """Pool and driver options for the given database URL."""
    timeout = settings.DB_OPERATION_TIMEOUT
    backend = make_url(url).get_backend_name()

    if backend == "sqlite":
        # Busy timeout: writers queue on the database lock instead of failing
        return {"connect_args": {"timeout": timeout}}

    timeout_ms = str(int(timeout * 1000))
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
        "connect_args": {
            "command_timeout": timeout,
            "server_settings": {
                "lock_timeout": timeout_ms,
                "statement_timeout": timeout_ms,
            },
        },
    }


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite leaves FK enforcement off per connection unless asked."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str) -> AsyncEngine:
    engine = create_async_engine(url, echo=settings.DEBUG, **engine_options(url))
    enable_sqlite_foreign_keys(engine)
    return engine


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request. Services commit their own units of work."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def _is_timeout(exc: Exception) -> bool:
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _TIMEOUT_SQLSTATES:
        return True
    text = str(orig if orig is not None else exc).lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Translate driver and timeout failures into retryable storage errors."""
    try:
        yield
    except (asyncio.TimeoutError, PoolTimeoutError) as exc:
        logger.warning("storage_timeout", operation=operation, error=str(exc))
        raise StorageTimeout(operation) from exc
    except (OperationalError, InterfaceError) as exc:
        if _is_timeout(exc):
            logger.warning("storage_timeout", operation=operation, error=str(exc))
            raise StorageTimeout(operation) from exc
        logger.error("storage_unavailable", operation=operation, error=str(exc))
        raise StorageUnavailable(operation) from exc
    except (DisconnectionError, ConnectionError) as exc:
        logger.error("storage_unavailable", operation=operation, error=str(exc))
        raise StorageUnavailable(operation) from exc


async def discard_unit(db: AsyncSession, operation: str) -> None:
    """Roll back whatever an interrupted unit of work left on the session."""
    if not db.in_transaction():
        return
    try:
        await db.rollback()
    except Exception as exc:
        # Connection is unusable; keep it out of the pool
        logger.error("storage_rollback_failed", operation=operation, error=str(exc))
        await db.invalidate()


async def run_bounded(
    operation: str,
    work: Awaitable[T],
    db: Optional[AsyncSession] = None,
) -> T:
    """
    Await `work` with the configured deadline, translating storage failures.

    A deadline cancels `work` mid-flight, so the service's own rollback never
    runs. When `db` is given, any storage failure rolls it back here and the
    session is left outside a transaction, holding no locks.
    """
    try:
        with storage_guard(operation):
            return await asyncio.wait_for(work, timeout=settings.DB_OPERATION_TIMEOUT)
    except StorageError:
        if db is not None:
            await discard_unit(db, operation)
        raise
