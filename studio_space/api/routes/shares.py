"""Share link endpoints.

Owners mint links under ``/api/boards/{board_id}/share-links``; visitors open
them anonymously under ``/api/shared/{token}``.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.api.middleware.auth import get_current_user
from studio_space.models.board import (
    ShareAccessRequest,
    ShareLinkCreateRequest,
    ShareLinkResponse,
    SharedBoardView,
)
from studio_space.models.user import UserDB
from studio_space.services.database import get_db_session
from studio_space.services.share_service import ShareManager

router = APIRouter(prefix="/api", tags=["sharing"])


@router.post(
    "/boards/{board_id}/share-links",
    response_model=ShareLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_share_link(
    board_id: uuid.UUID,
    request: ShareLinkCreateRequest | None = None,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> ShareLinkResponse:
    """Create a share link for an owned board.

    Args:
        board_id: Board to share
        request: Optional password and lifetime in hours
        current_user: Authenticated user
        db_session: Database session

    Returns:
        The new link, including its ``/shared/<token>`` path
    """
    options = request or ShareLinkCreateRequest()
    link = await ShareManager(db_session).create_link(
        board_id,
        current_user.id,
        password=options.password,
        expires_in_hours=options.expires_in_hours,
    )
    return ShareLinkResponse(**link)


@router.get("/boards/{board_id}/share-links")
async def list_share_links(
    board_id: uuid.UUID,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """List the share links of an owned board, newest first."""
    links = await ShareManager(db_session).list_links(board_id, current_user.id)
    return {"links": [ShareLinkResponse(**link) for link in links]}


@router.get("/shared/{token}")
async def open_shared_board(
    token: str,
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Open a shared board.

    Raises:
        NotFoundError: Unknown token
        GoneError: Expired link
        AuthenticationError: Password required (``password_required: true``)
    """
    board = await ShareManager(db_session).open_shared(token)
    return {"board": SharedBoardView(**board)}


@router.post("/shared/{token}/access")
async def access_shared_board(
    token: str,
    request: ShareAccessRequest,
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Unlock a password protected share link.

    Raises:
        AuthenticationError: Wrong password
    """
    board = await ShareManager(db_session).access_with_password(token, request.password)
    return {"board": SharedBoardView(**board)}


@router.delete("/shared/{token}")
async def revoke_share_link(
    token: str,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Revoke a share link of one of the caller's boards."""
    await ShareManager(db_session).revoke_link(token, current_user.id)
    return {"message": "Share link revoked"}
