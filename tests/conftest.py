"""Shared pytest fixtures and configuration.

This module provides common fixtures used across all test types.
"""

import io
import os
import tempfile
from collections.abc import AsyncGenerator

# Cheap hashing and a fixed secret; media must not land in the working tree
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="studio_space_media_"))

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from studio_space.api.main import app  # noqa: E402
from studio_space.api.middleware.rate_limiter import check_rate_limit  # noqa: E402
from studio_space.services.database import DatabaseManager, get_db_session  # noqa: E402
from studio_space.services.google_auth import get_google_verifier  # noqa: E402
from studio_space.services.storage import LocalImageStorage, get_image_storage  # noqa: E402


class FakeGoogleVerifier:
    """Stands in for Google's tokeninfo endpoint."""

    def __init__(self):
        self.identities: dict[str, dict] = {}

    async def verify(self, id_token: str) -> dict | None:
        return self.identities.get(id_token)


@pytest.fixture
def test_database_url(tmp_path) -> str:
    """Provide test database URL.

    Uses file-based SQLite for testing to avoid in-memory connection issues,
    or PostgreSQL if configured.
    """
    db_url = os.getenv("TEST_DATABASE_URL")
    if db_url:
        return db_url
    return f"sqlite+aiosqlite:///{tmp_path}/test_studio_space.db"


@pytest.fixture
async def db_manager(test_database_url: str) -> AsyncGenerator[DatabaseManager, None]:
    """Database manager with a fresh schema per test."""
    manager = DatabaseManager(test_database_url, pool_size=5, max_overflow=0)
    await manager.initialize_async()
    await manager.create_tables()

    yield manager

    await manager.drop_tables()
    await manager.close()


@pytest.fixture
async def async_db_session(db_manager: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session for testing."""
    async with db_manager.get_async_session() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> LocalImageStorage:
    """Media storage writing into the test's temp directory."""
    return LocalImageStorage(root=tmp_path / "media", base_url="/media")


@pytest.fixture
def google_verifier() -> FakeGoogleVerifier:
    return FakeGoogleVerifier()


@pytest.fixture
async def client(
    db_manager: DatabaseManager,
    storage: LocalImageStorage,
    google_verifier: FakeGoogleVerifier,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with test dependencies swapped in."""

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_manager.get_async_session() as session:
            yield session

    async def no_rate_limit() -> None:
        return None

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_image_storage] = lambda: storage
    app.dependency_overrides[get_google_verifier] = lambda: google_verifier
    app.dependency_overrides[check_rate_limit] = no_rate_limit

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()


@pytest.fixture
def signup(client: AsyncClient):
    """Factory registering a user through the API.

    Returns (auth headers, user json).
    """

    async def _signup(
        name: str = "Ada Lovelace",
        email: str = "ada@example.com",
        password: str = "secret123",
    ) -> tuple[dict, dict]:
        response = await client.post(
            "/api/auth/signup",
            json={
                "name": name,
                "email": email,
                "password": password,
                "birthDate": "1990-12-10",
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _signup


@pytest.fixture
def make_board(client: AsyncClient):
    """Factory creating a board through the API. Returns the board json."""

    async def _make_board(headers: dict, **fields) -> dict:
        payload = {"title": "Moodboard", **fields}
        response = await client.post("/api/boards", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["board"]

    return _make_board


def make_png(width: int = 64, height: int = 32, color: tuple = (200, 40, 40)) -> bytes:
    """Encode a solid-color PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture(scope="session")
def oversized_png() -> bytes:
    """A few KB of 1-bit PNG describing 48 megapixels."""
    buffer = io.BytesIO()
    Image.new("1", (8000, 6000)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def upload_image(client: AsyncClient, png_bytes: bytes):
    """Factory uploading an image onto a board. Returns the image json."""

    async def _upload(headers: dict, board_id: str, data: bytes | None = None, **form) -> dict:
        response = await client.post(
            "/api/images/upload",
            headers=headers,
            data={"boardId": board_id, **{k: str(v) for k, v in form.items()}},
            files={"image": ("photo.png", data or png_bytes, "image/png")},
        )
        assert response.status_code == 201, response.text
        return response.json()["image"]

    return _upload
