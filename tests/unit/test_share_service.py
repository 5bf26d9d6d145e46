"""Unit tests for share links."""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.models.base import utcnow
from studio_space.models.board import ShareLinkDB
from studio_space.models.user import UserDB
from studio_space.services.board_service import BoardManager
from studio_space.services.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    GoneError,
    NotFoundError,
)
from studio_space.services.share_service import ShareManager, share_path


@pytest.fixture
async def owner(async_db_session: AsyncSession) -> UserDB:
    user = UserDB(id=uuid.uuid4(), name="Owner", email="owner@example.com")
    async_db_session.add(user)
    await async_db_session.commit()
    return user


@pytest.fixture
async def private_board(async_db_session: AsyncSession, owner: UserDB) -> dict:
    return await BoardManager(async_db_session).create_board(
        owner.id, {"title": "Private", "tags": ["draft"]}
    )


@pytest.mark.unit
class TestShareLinks:
    """Unit tests for issuing and revoking links."""

    @pytest.mark.asyncio
    async def test_create_and_list(
        self, async_db_session: AsyncSession, owner: UserDB, private_board: dict
    ) -> None:
        shares = ShareManager(async_db_session)

        first = await shares.create_link(private_board["id"], owner.id)
        second = await shares.create_link(
            private_board["id"], owner.id, password="hunter2", expires_in_hours=24
        )

        assert first["path"] == share_path(first["token"])
        assert first["password_protected"] is False
        assert first["expires_at"] is None
        assert second["password_protected"] is True
        assert second["expires_at"] is not None

        links = await shares.list_links(private_board["id"], owner.id)
        assert [link["token"] for link in links] == [second["token"], first["token"]]

    @pytest.mark.asyncio
    async def test_only_owner_manages_links(
        self, async_db_session: AsyncSession, owner: UserDB, private_board: dict
    ) -> None:
        shares = ShareManager(async_db_session)
        link = await shares.create_link(private_board["id"], owner.id)
        stranger = uuid.uuid4()

        with pytest.raises(AccessDeniedError):
            await shares.create_link(private_board["id"], stranger)
        with pytest.raises(AccessDeniedError):
            await shares.list_links(private_board["id"], stranger)
        with pytest.raises(AccessDeniedError):
            await shares.revoke_link(link["token"], stranger)

    @pytest.mark.asyncio
    async def test_revoke(
        self, async_db_session: AsyncSession, owner: UserDB, private_board: dict
    ) -> None:
        shares = ShareManager(async_db_session)
        link = await shares.create_link(private_board["id"], owner.id)

        await shares.revoke_link(link["token"], owner.id)

        with pytest.raises(NotFoundError):
            await shares.open_shared(link["token"])
        with pytest.raises(NotFoundError):
            await shares.revoke_link(link["token"], owner.id)


@pytest.mark.unit
class TestOpeningShares:
    """Unit tests for resolving tokens to board views."""

    @pytest.mark.asyncio
    async def test_link_opens_private_board(
        self, async_db_session: AsyncSession, owner: UserDB, private_board: dict
    ) -> None:
        shares = ShareManager(async_db_session)
        link = await shares.create_link(private_board["id"], owner.id)

        view = await shares.open_shared(link["token"])

        assert view["title"] == "Private"
        assert view["author_name"] == "Owner"
        assert view["tags"] == ["#draft"]
        assert view["images"] == []

    @pytest.mark.asyncio
    async def test_expired_link(
        self, async_db_session: AsyncSession, private_board: dict
    ) -> None:
        async_db_session.add(
            ShareLinkDB(
                id=uuid.uuid4(),
                token="expired-token",
                board_id=private_board["id"],
                expires_at=utcnow() - timedelta(minutes=1),
            )
        )
        await async_db_session.commit()

        with pytest.raises(GoneError):
            await ShareManager(async_db_session).open_shared("expired-token")

    @pytest.mark.asyncio
    async def test_password_protected_link(
        self, async_db_session: AsyncSession, owner: UserDB, private_board: dict
    ) -> None:
        shares = ShareManager(async_db_session)
        link = await shares.create_link(private_board["id"], owner.id, password="hunter2")

        with pytest.raises(AuthenticationError) as exc_info:
            await shares.open_shared(link["token"])
        assert exc_info.value.details == {"password_required": True}

        with pytest.raises(AuthenticationError, match="Incorrect password"):
            await shares.access_with_password(link["token"], "wrong")

        view = await shares.access_with_password(link["token"], "hunter2")
        assert view["id"] == private_board["id"]

    @pytest.mark.asyncio
    async def test_board_share_token_only_while_public(
        self, async_db_session: AsyncSession, owner: UserDB
    ) -> None:
        boards = BoardManager(async_db_session)
        shares = ShareManager(async_db_session)
        board = await boards.create_board(owner.id, {"title": "Open", "is_public": True})

        view = await shares.open_shared(board["share_token"])
        assert view["title"] == "Open"

        # Open links need no password; access_with_password ignores it
        view = await shares.access_with_password(board["share_token"], "anything")
        assert view["title"] == "Open"

        await boards.update_board(board["id"], owner.id, {"is_public": False})
        with pytest.raises(NotFoundError):
            await shares.open_shared(board["share_token"])

    @pytest.mark.asyncio
    async def test_unknown_token(self, async_db_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await ShareManager(async_db_session).open_shared("nope")
