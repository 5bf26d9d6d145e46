"""Tag endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.api.middleware.auth import get_current_user
from studio_space.models.board import TagCount, TagRequest, TagsReplaceRequest
from studio_space.models.user import UserDB
from studio_space.services.board_service import BoardManager
from studio_space.services.database import get_db_session
from studio_space.services.exceptions import NotFoundError

router = APIRouter(prefix="/api", tags=["tags"])


async def _board_tags(boards: BoardManager, board_id: uuid.UUID) -> list[str]:
    return (await boards.tags.get_tags([board_id])).get(board_id, [])


@router.put("/boards/{board_id}/tags")
async def replace_tags(
    board_id: uuid.UUID,
    request: TagsReplaceRequest,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Replace the whole tag set of an owned board."""
    boards = BoardManager(db_session)
    await boards.get_owned_board(board_id, current_user.id)

    tags = await boards.tags.set_tags(board_id, request.tags)
    await boards.touch(board_id)
    await db_session.commit()

    return {"message": "Tags updated", "tags": tags}


@router.post("/boards/{board_id}/tags", status_code=status.HTTP_201_CREATED)
async def add_tag(
    board_id: uuid.UUID,
    request: TagRequest,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Attach a tag to an owned board. Adding an existing tag is a no-op."""
    boards = BoardManager(db_session)
    await boards.get_owned_board(board_id, current_user.id)

    tag = await boards.tags.add_tag(board_id, request.name)
    await boards.touch(board_id)
    await db_session.commit()

    return {"message": "Tag added", "tag": tag, "tags": await _board_tags(boards, board_id)}


@router.delete("/boards/{board_id}/tags/{name}")
async def remove_tag(
    board_id: uuid.UUID,
    name: str,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Detach a tag from an owned board. The leading ``#`` is optional.

    Raises:
        NotFoundError: If the board does not carry the tag
    """
    boards = BoardManager(db_session)
    await boards.get_owned_board(board_id, current_user.id)

    if not await boards.tags.remove_tag(board_id, name):
        raise NotFoundError("Tag not found on this board")
    await boards.touch(board_id)
    await db_session.commit()

    return {"message": "Tag removed", "tags": await _board_tags(boards, board_id)}


@router.get("/tags/popular")
async def popular_tags(
    limit: int = Query(20, ge=1, le=100),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Most used tags across public boards."""
    tags = await BoardManager(db_session).tags.popular_tags(limit=limit)
    return {"tags": [TagCount(**tag) for tag in tags]}
