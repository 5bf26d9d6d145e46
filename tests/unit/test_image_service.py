"""Unit tests for the image manager."""

import io
import uuid
from unittest.mock import AsyncMock

import pytest
from PIL import Image
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.models.board import BoardDB
from studio_space.models.image import ImageDB
from studio_space.models.user import UserDB
from studio_space.services.exceptions import InvalidInputError, NotFoundError
from studio_space.services.image_service import ImageManager, purge_unreferenced_files
from studio_space.services.storage import LocalImageStorage


def make_png(width: int = 64, height: int = 32) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (90, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


async def _board(session: AsyncSession, name: str = "Owner") -> BoardDB:
    user = UserDB(id=uuid.uuid4(), name=name, email=f"{uuid.uuid4().hex}@example.com")
    board = BoardDB(id=uuid.uuid4(), title="Canvas", user_id=user.id)
    session.add(user)
    await session.flush()
    session.add(board)
    await session.commit()
    return board


@pytest.mark.unit
class TestUpload:
    """Unit tests for placing uploaded images."""

    @pytest.mark.asyncio
    async def test_upload_uses_stored_dimensions(
        self, async_db_session: AsyncSession, storage: LocalImageStorage
    ) -> None:
        board = await _board(async_db_session)
        before = board.updated_at
        images = ImageManager(async_db_session, storage)

        image = await images.upload(
            board.user_id, board.id, make_png(80, 40), {"position_x": 15, "width": None}
        )

        assert (image.width, image.height) == (80, 40)
        assert (image.position_x, image.position_y) == (15, 0)
        assert image.url == f"/media/{image.public_id}"
        assert (storage.root / image.public_id).exists()
        assert board.updated_at > before

    @pytest.mark.asyncio
    async def test_upload_explicit_placement(
        self, async_db_session: AsyncSession, storage: LocalImageStorage
    ) -> None:
        board = await _board(async_db_session)

        image = await ImageManager(async_db_session, storage).upload(
            board.user_id,
            board.id,
            make_png(),
            {"width": 300, "height": 150, "rotation": 450, "z_index": 7},
        )

        assert (image.width, image.height) == (300, 150)
        assert image.rotation == 90
        assert image.z_index == 7

    @pytest.mark.asyncio
    async def test_upload_to_foreign_board(
        self, async_db_session: AsyncSession, storage: LocalImageStorage
    ) -> None:
        board = await _board(async_db_session)

        with pytest.raises(NotFoundError):
            await ImageManager(async_db_session, storage).upload(
                uuid.uuid4(), board.id, make_png()
            )
        assert not storage.root.exists() or not any(storage.root.iterdir())

    @pytest.mark.asyncio
    async def test_failed_commit_removes_stored_file(
        self, async_db_session: AsyncSession, storage: LocalImageStorage, monkeypatch
    ) -> None:
        board = await _board(async_db_session)
        fk_error = IntegrityError(
            "INSERT INTO images", {}, Exception("FOREIGN KEY constraint failed")
        )
        monkeypatch.setattr(
            async_db_session, "commit", AsyncMock(side_effect=[fk_error, None, None])
        )

        with pytest.raises(IntegrityError):
            await ImageManager(async_db_session, storage).upload(
                board.user_id, board.id, make_png()
            )

        assert list(storage.root.iterdir()) == []
        remaining = await async_db_session.execute(select(ImageDB.id))
        assert remaining.scalars().all() == []

    @pytest.mark.asyncio
    async def test_upload_rejects_non_image(
        self, async_db_session: AsyncSession, storage: LocalImageStorage
    ) -> None:
        board = await _board(async_db_session)

        with pytest.raises(InvalidInputError):
            await ImageManager(async_db_session, storage).upload(
                board.user_id, board.id, b"plain text"
            )


@pytest.mark.unit
class TestPlacement:
    """Unit tests for moving, stacking and resizing images."""

    @pytest.fixture
    async def placed(self, async_db_session: AsyncSession, storage: LocalImageStorage):
        board = await _board(async_db_session)
        images = ImageManager(async_db_session, storage)
        first = await images.upload(board.user_id, board.id, make_png(200, 100))
        second = await images.upload(board.user_id, board.id, make_png(), {"z_index": 4})
        return images, board, first, second

    @pytest.mark.asyncio
    async def test_update_partial(self, placed) -> None:
        images, board, first, _ = placed

        image = await images.update(
            first.id, board.user_id, {"position_x": 120, "position_y": None, "url": "x"}
        )

        assert image.position_x == 120
        assert image.position_y == 0
        assert image.url != "x"

    @pytest.mark.asyncio
    async def test_update_without_fields(self, placed) -> None:
        images, board, first, _ = placed

        with pytest.raises(InvalidInputError):
            await images.update(first.id, board.user_id, {"position_x": None})

    @pytest.mark.asyncio
    async def test_foreign_image_is_not_found(self, placed) -> None:
        images, _, first, _ = placed

        with pytest.raises(NotFoundError):
            await images.rotate(first.id, uuid.uuid4(), 90)

    @pytest.mark.asyncio
    async def test_bring_to_front(self, placed) -> None:
        images, board, first, _ = placed

        image = await images.bring_to_front(first.id, board.user_id)

        assert image.z_index == 5

    @pytest.mark.asyncio
    async def test_resize_keeps_aspect_and_clamps(self, placed) -> None:
        images, board, first, _ = placed

        grown = await images.resize(first.id, board.user_id, 100)
        assert (grown.width, grown.height) == (300, 150)

        clamped = await images.resize(first.id, board.user_id, 1000)
        assert (clamped.width, clamped.height) == (500, 250)

    @pytest.mark.asyncio
    async def test_rotate_folds_full_turns(self, placed) -> None:
        images, board, first, _ = placed

        await images.rotate(first.id, board.user_id, 270)
        image = await images.rotate(first.id, board.user_id, 180)

        assert image.rotation == 90

    @pytest.mark.asyncio
    async def test_duplicate_offsets_and_stacks(self, placed) -> None:
        images, board, _, second = placed
        await images.update(second.id, board.user_id, {"position_x": 10, "position_y": 30})

        copy = await images.duplicate(second.id, board.user_id)

        assert (copy.position_x, copy.position_y) == (30, 50)
        assert copy.z_index == 5
        assert copy.public_id == second.public_id

    @pytest.mark.asyncio
    async def test_reorder(self, placed) -> None:
        images, board, first, second = placed

        await images.reorder([second.id, first.id], board.user_id)

        assert (second.z_index, first.z_index) == (0, 1)

    @pytest.mark.asyncio
    async def test_reorder_is_all_or_nothing(
        self, placed, async_db_session: AsyncSession
    ) -> None:
        images, board, first, second = placed
        missing = uuid.uuid4()

        with pytest.raises(NotFoundError, match=str(missing)):
            await images.reorder([second.id, missing, first.id], board.user_id)

        z_indexes = await async_db_session.execute(
            select(ImageDB.id, ImageDB.z_index).where(ImageDB.board_id == board.id)
        )
        assert dict(z_indexes.all()) == {first.id: 0, second.id: 4}


@pytest.mark.unit
class TestDeletion:
    """Unit tests for removing images and their files."""

    @pytest.mark.asyncio
    async def test_file_kept_while_shared(
        self, async_db_session: AsyncSession, storage: LocalImageStorage
    ) -> None:
        board = await _board(async_db_session)
        images = ImageManager(async_db_session, storage)
        original = await images.upload(board.user_id, board.id, make_png())
        copy = await images.duplicate(original.id, board.user_id)
        path = storage.root / original.public_id

        await images.delete(original.id, board.user_id)
        assert path.exists()

        await images.delete(copy.id, board.user_id)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_purge_skips_missing_files(
        self, async_db_session: AsyncSession, storage: LocalImageStorage
    ) -> None:
        removed = await purge_unreferenced_files(
            async_db_session, storage, ["gone.png", "../escape.png"]
        )

        assert removed == 0
