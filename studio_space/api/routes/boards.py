"""Board endpoints: dashboards, the explore feed, likes, sharing and layout.

Static paths (``/explore``, ``/liked``, ``/random``) are registered before
``/{board_id}`` so they are not captured as ids.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.api.middleware.auth import get_current_user, get_optional_user
from studio_space.models.board import (
    ArrangeRequest,
    BoardCreateRequest,
    BoardDetail,
    BoardEnvelope,
    BoardListResponse,
    BoardUpdateRequest,
    LikeResponse,
    SharedBoardView,
)
from studio_space.models.image import ImageResponse
from studio_space.models.user import UserDB
from studio_space.services.board_service import BoardManager
from studio_space.services.database import get_db_session
from studio_space.services.image_service import purge_unreferenced_files
from studio_space.services.storage import LocalImageStorage, get_image_storage

router = APIRouter(prefix="/api/boards", tags=["boards"])


def _viewer_id(user: UserDB | None) -> uuid.UUID | None:
    return user.id if user is not None else None


@router.get("", response_model=BoardListResponse)
async def list_boards(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=255),
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """List the caller's boards, most recently updated first.

    Args:
        page: 1-based page number
        limit: Page size
        search: Case-insensitive match on title or description
        current_user: Authenticated user
        db_session: Database session

    Returns:
        Boards with image counts, likes and tags plus pagination metadata
    """
    return await BoardManager(db_session).list_user_boards(
        current_user.id, page=page, limit=limit, search=search
    )


@router.get("/explore", response_model=BoardListResponse)
async def explore_boards(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    search: str | None = Query(None, max_length=255),
    tag: str | None = Query(None, max_length=100),
    sort: str = Query("recent", pattern="^(recent|popular|trending|liked)$"),
    current_user: UserDB | None = Depends(get_optional_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Browse public boards.

    Args:
        page: 1-based page number
        limit: Page size
        search: Matches title, description, author name or tags
        tag: Only boards carrying this tag (``#`` optional)
        sort: recent, popular, trending or liked
        current_user: Optional caller, for ``is_liked``
        db_session: Database session
    """
    return await BoardManager(db_session).explore(
        viewer_id=_viewer_id(current_user),
        page=page,
        limit=limit,
        search=search,
        tag=tag,
        sort=sort,
    )


@router.get("/liked", response_model=BoardListResponse)
async def liked_boards(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Boards the caller liked, newest like first."""
    return await BoardManager(db_session).list_liked_boards(
        current_user.id, page=page, limit=limit
    )


@router.get("/random", response_model=BoardEnvelope)
async def random_board(
    exclude: uuid.UUID | None = Query(None),
    current_user: UserDB | None = Depends(get_optional_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> BoardEnvelope:
    """Pick a random public board for inspiration.

    Raises:
        NotFoundError: If there are no public boards
    """
    board = await BoardManager(db_session).random_board(
        viewer_id=_viewer_id(current_user), exclude=exclude
    )
    return BoardEnvelope(board=BoardDetail(**board))


@router.get("/{board_id}", response_model=BoardEnvelope)
async def get_board(
    board_id: uuid.UUID,
    current_user: UserDB | None = Depends(get_optional_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> BoardEnvelope:
    """Get a board with its images.

    Raises:
        NotFoundError: If the board does not exist
        AccessDeniedError: If it is private and not the caller's
    """
    board = await BoardManager(db_session).get_board(board_id, _viewer_id(current_user))
    return BoardEnvelope(board=BoardDetail(**board))


@router.post("", response_model=BoardEnvelope, status_code=status.HTTP_201_CREATED)
async def create_board(
    request: BoardCreateRequest,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> BoardEnvelope:
    """Create a board."""
    board = await BoardManager(db_session).create_board(current_user.id, request.model_dump())
    return BoardEnvelope(message="Board created successfully", board=BoardDetail(**board))


@router.put("/{board_id}", response_model=BoardEnvelope)
async def update_board(
    board_id: uuid.UUID,
    request: BoardUpdateRequest,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> BoardEnvelope:
    """Partially update an owned board.

    Only fields present in the body are applied.

    Raises:
        NotFoundError: If the board does not exist
        AccessDeniedError: If the caller is not the owner
        InvalidInputError: If the body has no fields
    """
    board = await BoardManager(db_session).update_board(
        board_id, current_user.id, request.model_dump(exclude_unset=True)
    )
    return BoardEnvelope(message="Board updated successfully", board=BoardDetail(**board))


@router.delete("/{board_id}")
async def delete_board(
    board_id: uuid.UUID,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
    storage: LocalImageStorage = Depends(get_image_storage),
) -> dict:
    """Delete an owned board together with its images."""
    storage_keys = await BoardManager(db_session).delete_board(board_id, current_user.id)
    await purge_unreferenced_files(db_session, storage, storage_keys)
    return {"message": "Board deleted successfully"}


@router.post(
    "/{board_id}/duplicate",
    response_model=BoardEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_board(
    board_id: uuid.UUID,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> BoardEnvelope:
    """Copy an own or public board into a new private board."""
    board = await BoardManager(db_session).duplicate_board(board_id, current_user.id)
    return BoardEnvelope(message="Board duplicated successfully", board=BoardDetail(**board))


@router.post("/{board_id}/like", response_model=LikeResponse)
async def toggle_like(
    board_id: uuid.UUID,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> LikeResponse:
    """Like or unlike a board."""
    liked = await BoardManager(db_session).toggle_like(board_id, current_user.id)
    return LikeResponse(message="Board liked" if liked else "Board unliked", liked=liked)


@router.get("/{board_id}/share")
async def share_board(
    board_id: uuid.UUID,
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Read-only view of a public board, no authentication needed.

    Raises:
        NotFoundError: If the board is missing or private
    """
    board = await BoardManager(db_session).get_public_share(board_id)
    return {"board": SharedBoardView(**board)}


@router.post("/{board_id}/arrange")
async def arrange_board(
    board_id: uuid.UUID,
    request: ArrangeRequest,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Lay out all images of an owned board automatically."""
    images = await BoardManager(db_session).arrange(board_id, current_user.id, request.layout)
    return {
        "message": "Board arranged successfully",
        "images": [ImageResponse(**image) for image in images],
    }
