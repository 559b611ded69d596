"""Database Session Manager — one async engine per process, sessions that roll back on failure.

Invariants:
    - A session that sees an exception is rolled back before the exception leaves the manager
    - Callers commit explicitly; the manager never commits on their behalf
    - Unique/foreign-key violations surface as ConflictError (409); every other
      SQLAlchemy failure surfaces as DatabaseError (503)

Design Decisions:
    - Singleton db_manager created in the FastAPI lifespan (ADR: no global import side effects)
    - expire_on_commit=False: report services read attributes after commit without lazy loads
    - Pool sizing only for server databases; sqlite URLs (tests, local dev) keep driver defaults
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from app.core.errors import ConflictError, DatabaseError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError both subclass DBAPIError
_OPERATION_BY_ERROR = (
    (OperationalError, "execute", "Connection or operational error"),
    (DBAPIError, "query", "Database driver error"),
    (SQLAlchemyError, "unknown", "Database operation failed"),
)


def engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict:
    options = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        return options
    options.update(pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600)
    return options


def translate_error(e: SQLAlchemyError) -> ConflictError | DatabaseError:
    """Map a SQLAlchemy exception onto the API error hierarchy."""
    if isinstance(e, IntegrityError):
        return ConflictError("Record conflicts with existing data")
    for error_type, operation, message in _OPERATION_BY_ERROR:
        if isinstance(e, error_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url, **engine_options(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"DB error ({type(e).__name__}): {e}")
            raise translate_error(e) from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """SELECT 1 through a fresh session, used by the readiness probe."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except (DatabaseError, ConflictError) as e:
            logger.error(f"DB health check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> None:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    logger.info(
        "Database engine created",
        extra={"driver": database_url.split("://", 1)[0]},
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    if db_manager is None:
        raise DatabaseError("Session manager not initialized", "connect")
    async with db_manager.session() as session:
        yield session
