"""Image management for board canvases."""

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.models.base import utcnow
from studio_space.models.board import BoardDB
from studio_space.models.image import ImageDB
from studio_space.services.canvas import (
    bring_to_front_z,
    normalize_rotation,
    offset_position,
    resize_keep_aspect,
)
from studio_space.services.exceptions import InvalidInputError, NotFoundError
from studio_space.services.storage import LocalImageStorage

logger = structlog.get_logger(__name__)

_PLACEMENT_FIELDS = ("position_x", "position_y", "width", "height", "rotation", "z_index")


async def purge_unreferenced_files(
    db_session: AsyncSession, storage: LocalImageStorage, keys: list[str]
) -> int:
    """Delete stored files no image row points at any more.

    Duplicated images share storage keys, so a file is only removed once the
    last row using it is gone. Storage failures are logged, not raised.

    Returns:
        Number of files removed
    """
    removed = 0
    for key in keys:
        still_used = await db_session.scalar(
            select(func.count(ImageDB.id)).where(ImageDB.public_id == key)
        )
        if still_used:
            continue
        try:
            if await storage.delete(key):
                removed += 1
        except (OSError, InvalidInputError) as exc:
            logger.warning("image_file_delete_failed", key=key, error=str(exc))
    return removed


class ImageManager:
    """Places, moves and removes images on boards the caller owns."""

    def __init__(self, db_session: AsyncSession, storage: LocalImageStorage):
        """Initialize image manager.

        Args:
            db_session: Database session for persistence
            storage: Media storage for uploaded files
        """
        self.db_session = db_session
        self.storage = storage

    async def get_owned_image(self, image_id: uuid.UUID, user_id: uuid.UUID) -> ImageDB:
        """Fetch an image on one of the caller's boards.

        Raises:
            NotFoundError: If the image is missing or on someone else's board
        """
        result = await self.db_session.execute(
            select(ImageDB)
            .join(BoardDB, ImageDB.board_id == BoardDB.id)
            .where(ImageDB.id == image_id, BoardDB.user_id == user_id)
        )
        image = result.scalar_one_or_none()
        if image is None:
            raise NotFoundError("Image not found or access denied")
        return image

    async def _require_owned_board(self, board_id: uuid.UUID, user_id: uuid.UUID) -> BoardDB:
        result = await self.db_session.execute(
            select(BoardDB).where(BoardDB.id == board_id, BoardDB.user_id == user_id)
        )
        board = result.scalar_one_or_none()
        if board is None:
            raise NotFoundError("Board not found or access denied")
        return board

    async def _board_z_indexes(self, board_id: uuid.UUID) -> list[int]:
        result = await self.db_session.execute(
            select(ImageDB.z_index).where(ImageDB.board_id == board_id)
        )
        return list(result.scalars().all())

    async def upload(
        self,
        user_id: uuid.UUID,
        board_id: uuid.UUID,
        data: bytes,
        placement: dict | None = None,
    ) -> ImageDB:
        """Store an uploaded file and place it on a board.

        Args:
            user_id: Caller, must own the board
            board_id: Target board
            data: Raw image bytes
            placement: Optional position_x, position_y, width, height,
                rotation, z_index; stored dimensions fill in missing size

        Returns:
            The new image row

        Raises:
            NotFoundError: If the board is missing or not the caller's
            InvalidInputError: If the bytes are not an image
        """
        board = await self._require_owned_board(board_id, user_id)
        placement = {k: v for k, v in (placement or {}).items() if v is not None}

        stored = await self.storage.save(data)

        image = ImageDB(
            id=uuid.uuid4(),
            url=stored.url,
            public_id=stored.key,
            position_x=placement.get("position_x", 0),
            position_y=placement.get("position_y", 0),
            width=placement.get("width", stored.width),
            height=placement.get("height", stored.height),
            rotation=normalize_rotation(placement.get("rotation", 0)),
            z_index=placement.get("z_index", 0),
            board_id=board.id,
        )
        self.db_session.add(image)
        board.updated_at = utcnow()

        try:
            await self.db_session.commit()
        except SQLAlchemyError:
            # The row never landed, so nothing else can reference the file
            await self.db_session.rollback()
            await self.storage.delete(stored.key)
            logger.warning("image_upload_rolled_back", board_id=str(board_id), key=stored.key)
            raise
        await self.db_session.refresh(image)
        logger.info("image_uploaded", image_id=str(image.id), board_id=str(board_id))
        return image

    async def update(self, image_id: uuid.UUID, user_id: uuid.UUID, changes: dict) -> ImageDB:
        """Apply a partial placement update.

        Raises:
            InvalidInputError: If no placement field is given
        """
        fields = {k: v for k, v in changes.items() if k in _PLACEMENT_FIELDS and v is not None}
        if not fields:
            raise InvalidInputError("No valid updates provided")

        image = await self.get_owned_image(image_id, user_id)
        for field, value in fields.items():
            setattr(image, field, value)

        await self.db_session.commit()
        return image

    async def delete(self, image_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Remove an image, and its file once nothing else references it."""
        image = await self.get_owned_image(image_id, user_id)
        key = image.public_id

        await self.db_session.delete(image)
        await self.db_session.commit()

        if key:
            await purge_unreferenced_files(self.db_session, self.storage, [key])
        logger.info("image_deleted_from_board", image_id=str(image_id))

    async def duplicate(
        self, image_id: uuid.UUID, user_id: uuid.UUID, offset_x: int = 20, offset_y: int = 20
    ) -> ImageDB:
        """Copy an image one step above the original, shifted by the offset."""
        source = await self.get_owned_image(image_id, user_id)
        x, y = offset_position(source.position_x, source.position_y, offset_x, offset_y)

        copy = ImageDB(
            id=uuid.uuid4(),
            url=source.url,
            public_id=source.public_id,
            position_x=x,
            position_y=y,
            width=source.width,
            height=source.height,
            rotation=source.rotation,
            z_index=source.z_index + 1,
            board_id=source.board_id,
        )
        self.db_session.add(copy)
        await self.db_session.commit()
        await self.db_session.refresh(copy)
        return copy

    async def reorder(self, image_ids: list[uuid.UUID], user_id: uuid.UUID) -> None:
        """Restack images so each one's z-index is its position in the list.

        All or nothing: if any image is missing or foreign, no z-index changes.

        Raises:
            NotFoundError: Naming the first image that failed the check
        """
        try:
            for position, image_id in enumerate(image_ids):
                result = await self.db_session.execute(
                    select(ImageDB)
                    .join(BoardDB, ImageDB.board_id == BoardDB.id)
                    .where(ImageDB.id == image_id, BoardDB.user_id == user_id)
                )
                image = result.scalar_one_or_none()
                if image is None:
                    raise NotFoundError(f"Image {image_id} not found or access denied")
                image.z_index = position
            await self.db_session.commit()
        except Exception:
            await self.db_session.rollback()
            raise

        logger.info("images_reordered", count=len(image_ids))

    async def bring_to_front(self, image_id: uuid.UUID, user_id: uuid.UUID) -> ImageDB:
        image = await self.get_owned_image(image_id, user_id)
        image.z_index = bring_to_front_z(await self._board_z_indexes(image.board_id))
        await self.db_session.commit()
        return image

    async def resize(self, image_id: uuid.UUID, user_id: uuid.UUID, delta: int) -> ImageDB:
        """Change the width by ``delta``, keeping the aspect ratio."""
        image = await self.get_owned_image(image_id, user_id)
        image.width, image.height = resize_keep_aspect(image.width, image.height, delta)
        await self.db_session.commit()
        return image

    async def rotate(self, image_id: uuid.UUID, user_id: uuid.UUID, degrees: int) -> ImageDB:
        image = await self.get_owned_image(image_id, user_id)
        image.rotation = normalize_rotation(image.rotation + degrees)
        await self.db_session.commit()
        return image
