"""Unit tests for the database manager."""

import pytest
from sqlalchemy import text

from studio_space.services.database import DatabaseManager, to_async_url


@pytest.mark.unit
class TestAsyncUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgres://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
            ("postgresql://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
            ("postgresql+asyncpg://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
            ("sqlite+aiosqlite:///tmp/x.db", "sqlite+aiosqlite:///tmp/x.db"),
        ],
    )
    def test_to_async_url(self, url: str, expected: str) -> None:
        assert to_async_url(url) == expected


@pytest.mark.unit
class TestDatabaseManager:
    """Unit tests for DatabaseManager lifecycle."""

    @pytest.mark.asyncio
    async def test_health_check(self, db_manager: DatabaseManager) -> None:
        assert await db_manager.health_check() is True

    @pytest.mark.asyncio
    async def test_sqlite_enforces_foreign_keys(self, db_manager: DatabaseManager) -> None:
        if db_manager.engine.dialect.name != "sqlite":
            pytest.skip("SQLite only")

        async with db_manager.get_async_session() as session:
            result = await session.execute(text("PRAGMA foreign_keys"))
            assert result.scalar() == 1

    @pytest.mark.asyncio
    async def test_session_requires_initialization(self) -> None:
        manager = DatabaseManager("sqlite+aiosqlite:///:memory:")

        with pytest.raises(RuntimeError):
            async with manager.get_async_session():
                pass
