"""Share links: opaque, optionally password protected and expiring, read access to a board."""

import uuid
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.models.base import utcnow
from studio_space.models.board import BoardDB, ShareLinkDB
from studio_space.services.board_service import BoardManager
from studio_space.services.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    GoneError,
    NotFoundError,
)
from studio_space.services.security import generate_share_token, hash_password, verify_password

logger = structlog.get_logger(__name__)


def _as_aware(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def share_path(token: str) -> str:
    return f"/shared/{token}"


def link_to_dict(link: ShareLinkDB) -> dict:
    return {
        "token": link.token,
        "path": share_path(link.token),
        "board_id": link.board_id,
        "password_protected": link.password_hash is not None,
        "created_at": link.created_at,
        "expires_at": link.expires_at,
    }


class ShareManager:
    """Creates, revokes and resolves share links."""

    def __init__(self, db_session: AsyncSession):
        """Initialize share manager.

        Args:
            db_session: Database session for persistence
        """
        self.db_session = db_session
        self.boards = BoardManager(db_session)

    async def create_link(
        self,
        board_id: uuid.UUID,
        user_id: uuid.UUID,
        password: str | None = None,
        expires_in_hours: int | None = None,
    ) -> dict:
        """Issue a new share link for an owned board.

        Args:
            board_id: Board to share
            user_id: Caller, must own the board
            password: Optional password visitors must present
            expires_in_hours: Optional lifetime of the link

        Returns:
            The link as shown to the owner
        """
        await self.boards.get_owned_board(board_id, user_id)

        expires_at = None
        if expires_in_hours:
            expires_at = utcnow() + timedelta(hours=expires_in_hours)

        link = ShareLinkDB(
            id=uuid.uuid4(),
            token=generate_share_token(),
            board_id=board_id,
            password_hash=hash_password(password) if password else None,
            expires_at=expires_at,
        )
        self.db_session.add(link)
        await self.db_session.commit()
        await self.db_session.refresh(link)

        logger.info(
            "share_link_created",
            board_id=str(board_id),
            password_protected=link.password_hash is not None,
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        return link_to_dict(link)

    async def list_links(self, board_id: uuid.UUID, user_id: uuid.UUID) -> list[dict]:
        await self.boards.get_owned_board(board_id, user_id)
        result = await self.db_session.execute(
            select(ShareLinkDB)
            .where(ShareLinkDB.board_id == board_id)
            .order_by(ShareLinkDB.created_at.desc())
        )
        return [link_to_dict(link) for link in result.scalars().all()]

    async def _get_link(self, token: str) -> ShareLinkDB | None:
        result = await self.db_session.execute(
            select(ShareLinkDB).where(ShareLinkDB.token == token)
        )
        return result.scalar_one_or_none()

    async def revoke_link(self, token: str, user_id: uuid.UUID) -> None:
        """Delete a share link of one of the caller's boards."""
        link = await self._get_link(token)
        if link is None:
            raise NotFoundError("Share link not found")

        board = await self.boards.get_board_row(link.board_id)
        if board is None or board.user_id != user_id:
            raise AccessDeniedError("Access denied")

        await self.db_session.delete(link)
        await self.db_session.commit()
        logger.info("share_link_revoked", board_id=str(link.board_id))

    async def _resolve(self, token: str) -> tuple[BoardDB, ShareLinkDB | None]:
        link = await self._get_link(token)
        if link is not None:
            if link.expires_at is not None and _as_aware(link.expires_at) <= utcnow():
                raise GoneError("This share link has expired")
            board = await self.boards.get_board_row(link.board_id)
            if board is None:
                raise NotFoundError("Shared board not found")
            return board, link

        result = await self.db_session.execute(
            select(BoardDB).where(BoardDB.share_token == token, BoardDB.is_public.is_(True))
        )
        board = result.scalar_one_or_none()
        if board is None:
            raise NotFoundError("Shared board not found")
        return board, None

    async def open_shared(self, token: str) -> dict:
        """Resolve a share token to the read-only board view.

        Share links are checked first, then the board's own public share
        token.

        Raises:
            NotFoundError: Unknown token, or the board stopped being public
            GoneError: The link has expired
            AuthenticationError: The link needs a password
                (details carry ``password_required``)
        """
        board, link = await self._resolve(token)
        if link is not None and link.password_hash is not None:
            raise AuthenticationError(
                "This board is password protected", details={"password_required": True}
            )
        return await self.boards.shared_view(board)

    async def access_with_password(self, token: str, password: str) -> dict:
        """Unlock a password protected link.

        Raises:
            AuthenticationError: If the password does not match
        """
        board, link = await self._resolve(token)
        if link is not None and link.password_hash is not None:
            if not verify_password(password, link.password_hash):
                logger.info("share_password_rejected", board_id=str(board.id))
                raise AuthenticationError(
                    "Incorrect password", details={"password_required": True}
                )
        return await self.boards.shared_view(board)
