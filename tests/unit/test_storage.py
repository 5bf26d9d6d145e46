"""Unit tests for local image storage."""

import io

import pytest
from PIL import Image

from studio_space.services.exceptions import InvalidInputError
from studio_space.services.storage import LocalImageStorage


def _encode(size: tuple[int, int], fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (10, 120, 90)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.mark.unit
class TestLocalImageStorage:
    """Unit tests for LocalImageStorage."""

    @pytest.mark.asyncio
    async def test_save_writes_file_and_reports_size(self, tmp_path) -> None:
        storage = LocalImageStorage(root=tmp_path, base_url="/media/")

        stored = await storage.save(_encode((80, 40)))

        assert (tmp_path / stored.key).exists()
        assert stored.url == f"/media/{stored.key}"
        assert (stored.width, stored.height) == (80, 40)
        assert stored.key.endswith(".png")

    @pytest.mark.asyncio
    async def test_large_images_are_downscaled(self, tmp_path) -> None:
        storage = LocalImageStorage(root=tmp_path)

        stored = await storage.save(_encode((2400, 1200), fmt="JPEG"))

        assert (stored.width, stored.height) == (1200, 600)
        assert stored.key.endswith(".jpg")
        with Image.open(tmp_path / stored.key) as img:
            assert img.size == (1200, 600)

    @pytest.mark.asyncio
    async def test_rejects_non_images(self, tmp_path) -> None:
        storage = LocalImageStorage(root=tmp_path)

        with pytest.raises(InvalidInputError):
            await storage.save(b"%PDF-1.4 not an image")

    @pytest.mark.asyncio
    async def test_delete(self, tmp_path) -> None:
        storage = LocalImageStorage(root=tmp_path)
        stored = await storage.save(_encode((10, 10)))

        assert await storage.delete(stored.key) is True
        assert not (tmp_path / stored.key).exists()
        assert await storage.delete(stored.key) is False

    @pytest.mark.asyncio
    async def test_delete_refuses_path_traversal(self, tmp_path) -> None:
        storage = LocalImageStorage(root=tmp_path)

        with pytest.raises(InvalidInputError):
            await storage.delete("../outside.png")
