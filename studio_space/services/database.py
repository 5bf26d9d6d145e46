"""Async database engine, sessions and the FastAPI session dependency."""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from studio_space.models.base import Base

logger = structlog.get_logger(__name__)


def to_async_url(database_url: str) -> str:
    """Ensure a database URL names an async driver.

    ``postgres://`` and ``postgresql://`` become ``postgresql+asyncpg://``;
    SQLite URLs are expected to already use ``sqlite+aiosqlite://``.
    """
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    # SQLite ignores REFERENCES ... ON DELETE CASCADE unless asked per connection
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Owns the async engine and hands out sessions.

    One instance lives for the whole application (see ``initialize_database``);
    tests build their own against a throwaway SQLite file.
    """

    def __init__(self, database_url: str, pool_size: int = 20, max_overflow: int = 10):
        """Initialize database manager.

        Args:
            database_url: PostgreSQL or SQLite URL; sync PostgreSQL URLs are
                rewritten to asyncpg
            pool_size: Persistent connections kept in the pool
            max_overflow: Extra connections allowed under load
        """
        self.database_url = to_async_url(database_url)
        self.pool_size = pool_size
        self.max_overflow = max_overflow

        self._async_engine = None
        self._async_session_factory = None

    @property
    def engine(self):
        return self._async_engine

    def _pool_options(self) -> dict:
        if self.database_url.startswith("sqlite") and ":memory:" in self.database_url:
            return {"poolclass": NullPool}
        return {
            "poolclass": AsyncAdaptedQueuePool,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
        }

    async def initialize_async(self) -> None:
        """Create the engine and session factory. Safe to call twice."""
        if self._async_engine is not None:
            return

        self._async_engine = create_async_engine(
            self.database_url,
            pool_pre_ping=True,
            echo=False,
            **self._pool_options(),
        )
        if self._async_engine.dialect.name == "sqlite":
            event.listen(self._async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._async_session_factory = async_sessionmaker(
            bind=self._async_engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("database_initialized", dialect=self._async_engine.dialect.name)

    @asynccontextmanager
    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scoped to a unit of work.

        Commits when the block exits cleanly, rolls back on error.

        Raises:
            RuntimeError: If ``initialize_async`` has not run
        """
        if self._async_session_factory is None:
            raise RuntimeError("Async database not initialized. Call initialize_async() first.")

        session = self._async_session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def _run_metadata(self, operation) -> None:
        if self._async_engine is None:
            await self.initialize_async()

        # Table classes register themselves on import
        from studio_space.models import board, image, user  # noqa: F401

        async with self._async_engine.begin() as conn:
            await conn.run_sync(operation)

    async def create_tables(self) -> None:
        """Create every table. Development and tests only; deployments use Alembic."""
        await self._run_metadata(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop every table, data included."""
        await self._run_metadata(Base.metadata.drop_all)

    async def health_check(self) -> bool:
        """Whether a trivial query succeeds."""
        try:
            if self._async_engine is None:
                await self.initialize_async()

            async with self.get_async_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as exc:
            logger.warning("database_health_check_failed", error=str(exc))
            return False

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._async_engine is not None:
            await self._async_engine.dispose()
            self._async_engine = None
            self._async_session_factory = None


# Application-wide manager, set up by the FastAPI lifespan
_db_manager: DatabaseManager | None = None


def initialize_database(database_url: str | None = None) -> DatabaseManager:
    """Create the application-wide database manager.

    Args:
        database_url: Connection URL, DATABASE_URL when omitted

    Raises:
        ValueError: If no URL is given or configured
    """
    global _db_manager

    database_url = database_url or os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable not set")

    _db_manager = DatabaseManager(database_url)
    return _db_manager


def get_database_manager() -> DatabaseManager | None:
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    Example:
        @router.get("/boards")
        async def list_boards(db_session: AsyncSession = Depends(get_db_session)):
            return await BoardManager(db_session).list_user_boards(user.id)
    """
    if _db_manager is None:
        raise RuntimeError("Database not initialized. Call initialize_database() first.")

    async with _db_manager.get_async_session() as session:
        yield session


async def shutdown_database() -> None:
    """Close the application-wide manager, if any."""
    global _db_manager
    if _db_manager is not None:
        await _db_manager.close()
        _db_manager = None
