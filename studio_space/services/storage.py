"""Local media storage for uploaded board images."""

import asyncio
import io
import os
import uuid
from pathlib import Path

import structlog
from PIL import Image, ImageOps, UnidentifiedImageError
from pydantic import BaseModel

from studio_space.services.exceptions import InvalidInputError

logger = structlog.get_logger(__name__)

MAX_DIMENSION = 1200
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
# Pillow does not start warning until ~89M pixels
DEFAULT_MAX_IMAGE_PIXELS = 40_000_000

_FORMAT_EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "WEBP": ".webp",
    "GIF": ".gif",
}


def max_upload_bytes() -> int:
    return int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES)))


def max_image_pixels() -> int:
    return int(os.getenv("MAX_IMAGE_PIXELS", str(DEFAULT_MAX_IMAGE_PIXELS)))


def check_pixel_count(img: Image.Image) -> None:
    """Refuse images whose decoded size exceeds the pixel cap.

    Only the header has been read at this point, so a few kilobytes of
    compressed data cannot make us allocate hundreds of megabytes.

    Raises:
        InvalidInputError: If width x height is over the cap
    """
    if img.width * img.height > max_image_pixels():
        raise InvalidInputError(
            "Image dimensions are too large",
            details={"max_pixels": max_image_pixels()},
        )


class StoredImage(BaseModel):
    """Result of persisting an uploaded image."""

    key: str
    url: str
    width: int
    height: int


class LocalImageStorage:
    """Stores uploaded images on the local filesystem.

    Images are normalised on the way in: EXIF orientation applied and
    downscaled to fit within MAX_DIMENSION x MAX_DIMENSION.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        base_url: str | None = None,
        max_dimension: int = MAX_DIMENSION,
    ):
        """Initialize storage.

        Args:
            root: Directory files are written to (MEDIA_ROOT, default ./media)
            base_url: URL prefix the directory is served under (MEDIA_URL)
            max_dimension: Longest allowed side in pixels
        """
        self.root = Path(root or os.getenv("MEDIA_ROOT", "media"))
        self.base_url = (base_url or os.getenv("MEDIA_URL", "/media")).rstrip("/")
        self.max_dimension = max_dimension

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def _path_for(self, key: str) -> Path:
        if not key or Path(key).name != key:
            raise InvalidInputError(f"Invalid storage key: {key!r}")
        return self.root / key

    def _process_and_write(self, data: bytes) -> StoredImage:
        try:
            with Image.open(io.BytesIO(data)) as img:
                check_pixel_count(img)
                img.load()
                fmt = img.format if img.format in _FORMAT_EXTENSIONS else "PNG"
                processed = ImageOps.exif_transpose(img)
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise InvalidInputError("Uploaded file is not a valid image") from exc

        processed.thumbnail((self.max_dimension, self.max_dimension))
        if fmt == "JPEG" and processed.mode not in ("RGB", "L"):
            processed = processed.convert("RGB")

        key = f"{uuid.uuid4().hex}{_FORMAT_EXTENSIONS[fmt]}"
        self.root.mkdir(parents=True, exist_ok=True)
        processed.save(self._path_for(key), format=fmt)

        return StoredImage(
            key=key,
            url=self.url_for(key),
            width=processed.width,
            height=processed.height,
        )

    async def save(self, data: bytes) -> StoredImage:
        """Validate, normalise and persist an uploaded image.

        Args:
            data: Raw uploaded bytes

        Returns:
            Storage key, public URL and stored dimensions

        Raises:
            InvalidInputError: If the bytes do not decode as an image
        """
        stored = await asyncio.to_thread(self._process_and_write, data)
        logger.info("image_stored", key=stored.key, width=stored.width, height=stored.height)
        return stored

    async def delete(self, key: str) -> bool:
        """Remove a stored file.

        Returns:
            True if a file was removed, False if it did not exist
        """
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        logger.info("image_deleted", key=key)
        return True


def get_image_storage() -> LocalImageStorage:
    """FastAPI dependency for media storage."""
    return LocalImageStorage()
