"""Board management: dashboards, the public feed, likes and canvas layout."""

import math
import uuid

import structlog
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.models.base import utcnow
from studio_space.models.board import (
    DEFAULT_BACKGROUND_COLOR,
    BoardDB,
    LikedBoardDB,
    TagDB,
)
from studio_space.models.image import ImageDB
from studio_space.models.user import UserDB
from studio_space.services.canvas import grid_layout
from studio_space.services.exceptions import (
    AccessDeniedError,
    InvalidInputError,
    NotFoundError,
)
from studio_space.services.security import generate_share_token
from studio_space.services.tag_service import TagManager, normalize_tag

logger = structlog.get_logger(__name__)

EXPLORE_SORTS = ("recent", "popular", "trending", "liked")

_BOARD_FIELDS = ("title", "description", "background_color", "is_public")


def _contains_pattern(text: str) -> str:
    """ILIKE pattern matching ``text`` literally, wildcards included."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


_image_count = (
    select(func.count(ImageDB.id))
    .where(ImageDB.board_id == BoardDB.id)
    .correlate(BoardDB)
    .scalar_subquery()
    .label("image_count")
)
_like_count = (
    select(func.count(LikedBoardDB.id))
    .where(LikedBoardDB.board_id == BoardDB.id)
    .correlate(BoardDB)
    .scalar_subquery()
    .label("like_count")
)


def _pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def _board_to_dict(board: BoardDB) -> dict:
    return {
        "id": board.id,
        "title": board.title,
        "description": board.description,
        "background_color": board.background_color,
        "is_public": board.is_public,
        "share_token": board.share_token,
        "view_count": board.view_count,
        "user_id": board.user_id,
        "created_at": board.created_at,
        "updated_at": board.updated_at,
    }


def _image_to_dict(image: ImageDB) -> dict:
    return {
        "id": image.id,
        "url": image.url,
        "public_id": image.public_id,
        "position_x": image.position_x,
        "position_y": image.position_y,
        "width": image.width,
        "height": image.height,
        "rotation": image.rotation,
        "z_index": image.z_index,
        "board_id": image.board_id,
        "created_at": image.created_at,
    }


class BoardManager:
    """Manages boards and everything hanging off them.

    Read methods return plain dicts shaped like the API response schemas.
    Ownership is checked here so every route gets the same 404/403 rules.
    """

    def __init__(self, db_session: AsyncSession):
        """Initialize board manager.

        Args:
            db_session: Database session for persistence
        """
        self.db_session = db_session
        self.tags = TagManager(db_session)

    # ========== Lookups ==========

    async def get_board_row(self, board_id: uuid.UUID) -> BoardDB | None:
        result = await self.db_session.execute(select(BoardDB).where(BoardDB.id == board_id))
        return result.scalar_one_or_none()

    async def get_owned_board(self, board_id: uuid.UUID, user_id: uuid.UUID) -> BoardDB:
        """Fetch a board the caller must own.

        Raises:
            NotFoundError: If the board does not exist
            AccessDeniedError: If the caller is not the owner
        """
        board = await self.get_board_row(board_id)
        if board is None:
            raise NotFoundError("Board not found")
        if board.user_id != user_id:
            raise AccessDeniedError("Access denied")
        return board

    async def get_readable_board(
        self, board_id: uuid.UUID, viewer_id: uuid.UUID | None
    ) -> BoardDB:
        """Fetch a board the caller may read (public, or their own)."""
        board = await self.get_board_row(board_id)
        if board is None:
            raise NotFoundError("Board not found")
        if not board.is_public and board.user_id != viewer_id:
            raise AccessDeniedError("Access denied")
        return board

    async def get_board_images(self, board_id: uuid.UUID) -> list[ImageDB]:
        """Images of a board, bottom of the stack first."""
        result = await self.db_session.execute(
            select(ImageDB)
            .where(ImageDB.board_id == board_id)
            .order_by(ImageDB.z_index.asc(), ImageDB.created_at.asc())
        )
        return list(result.scalars().all())

    async def _liked_board_ids(
        self, viewer_id: uuid.UUID | None, board_ids: list[uuid.UUID]
    ) -> set[uuid.UUID]:
        if viewer_id is None or not board_ids:
            return set()
        result = await self.db_session.execute(
            select(LikedBoardDB.board_id).where(
                LikedBoardDB.user_id == viewer_id, LikedBoardDB.board_id.in_(board_ids)
            )
        )
        return set(result.scalars().all())

    async def _summaries(self, rows, viewer_id: uuid.UUID | None) -> list[dict]:
        board_ids = [row.BoardDB.id for row in rows]
        tags = await self.tags.get_tags(board_ids)
        liked = await self._liked_board_ids(viewer_id, board_ids)

        return [
            {
                **_board_to_dict(row.BoardDB),
                "author_name": row.author_name,
                "author_avatar": row.author_avatar,
                "image_count": row.image_count or 0,
                "like_count": row.like_count or 0,
                "is_liked": row.BoardDB.id in liked,
                "tags": tags.get(row.BoardDB.id, []),
            }
            for row in rows
        ]

    def _summary_query(self):
        return select(
            BoardDB,
            UserDB.name.label("author_name"),
            UserDB.avatar_url.label("author_avatar"),
            _image_count,
            _like_count,
        ).join(UserDB, BoardDB.user_id == UserDB.id)

    async def _paginate(self, conditions: list, order_by: list, page: int, limit: int, viewer_id):
        query = (
            self._summary_query()
            .where(*conditions)
            .order_by(*order_by)
            .limit(limit)
            .offset((page - 1) * limit)
        )
        rows = (await self.db_session.execute(query)).all()

        total = await self.db_session.scalar(
            select(func.count(BoardDB.id))
            .join(UserDB, BoardDB.user_id == UserDB.id)
            .where(*conditions)
        )

        return {
            "boards": await self._summaries(rows, viewer_id),
            "pagination": _pagination(page, limit, total or 0),
        }

    # ========== Listing ==========

    async def list_user_boards(
        self,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
    ) -> dict:
        """The caller's own boards, most recently updated first.

        Args:
            user_id: Board owner
            page: 1-based page number
            limit: Page size
            search: Case-insensitive match on title or description

        Returns:
            {"boards": [...], "pagination": {...}}
        """
        conditions = [BoardDB.user_id == user_id]
        if search:
            pattern = _contains_pattern(search)
            conditions.append(
                or_(
                    BoardDB.title.ilike(pattern, escape="\\"),
                    BoardDB.description.ilike(pattern, escape="\\"),
                )
            )

        return await self._paginate(
            conditions,
            [BoardDB.updated_at.desc(), BoardDB.id],
            page,
            limit,
            user_id,
        )

    async def explore(
        self,
        viewer_id: uuid.UUID | None = None,
        page: int = 1,
        limit: int = 12,
        search: str | None = None,
        tag: str | None = None,
        sort: str = "recent",
    ) -> dict:
        """The public feed.

        Args:
            viewer_id: Signed-in caller, used for ``is_liked``
            page: 1-based page number
            limit: Page size
            search: Matches title, description, author name or tag names
            tag: Only boards carrying this tag
            sort: recent, popular (most images), trending (most viewed)
                or liked (most liked)

        Returns:
            {"boards": [...], "pagination": {...}}
        """
        if sort not in EXPLORE_SORTS:
            raise InvalidInputError(f"sort must be one of {', '.join(EXPLORE_SORTS)}")

        conditions = [BoardDB.is_public.is_(True)]
        if search:
            pattern = _contains_pattern(search)
            conditions.append(
                or_(
                    BoardDB.title.ilike(pattern, escape="\\"),
                    BoardDB.description.ilike(pattern, escape="\\"),
                    UserDB.name.ilike(pattern, escape="\\"),
                    BoardDB.id.in_(
                        select(TagDB.board_id).where(TagDB.name.ilike(pattern, escape="\\"))
                    ),
                )
            )
        if tag:
            conditions.append(
                BoardDB.id.in_(select(TagDB.board_id).where(TagDB.name == normalize_tag(tag)))
            )

        recent = [BoardDB.created_at.desc(), BoardDB.id]
        order_by = {
            "recent": recent,
            "popular": [_image_count.desc(), *recent],
            "trending": [BoardDB.view_count.desc(), *recent],
            "liked": [_like_count.desc(), *recent],
        }[sort]

        return await self._paginate(conditions, order_by, page, limit, viewer_id)

    async def list_liked_boards(
        self, user_id: uuid.UUID, page: int = 1, limit: int = 12
    ) -> dict:
        """Boards the user liked and can still read, newest like first."""
        conditions = [
            LikedBoardDB.user_id == user_id,
            or_(BoardDB.is_public.is_(True), BoardDB.user_id == user_id),
        ]
        query = (
            self._summary_query()
            .join(LikedBoardDB, LikedBoardDB.board_id == BoardDB.id)
            .where(*conditions)
            .order_by(LikedBoardDB.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        rows = (await self.db_session.execute(query)).all()

        total = await self.db_session.scalar(
            select(func.count(LikedBoardDB.id))
            .join(BoardDB, LikedBoardDB.board_id == BoardDB.id)
            .where(*conditions)
        )

        return {
            "boards": await self._summaries(rows, user_id),
            "pagination": _pagination(page, limit, total or 0),
        }

    # ========== Single board ==========

    async def get_board(
        self, board_id: uuid.UUID, viewer_id: uuid.UUID | None = None
    ) -> dict:
        """Full board with images and tags.

        Reads by anyone other than the owner count as a view.

        Raises:
            NotFoundError: If the board does not exist
            AccessDeniedError: If it is private and not the caller's
        """
        row = (
            await self.db_session.execute(
                self._summary_query().where(BoardDB.id == board_id)
            )
        ).first()
        if row is None:
            raise NotFoundError("Board not found")

        board = row.BoardDB
        is_owner = viewer_id is not None and board.user_id == viewer_id
        if not board.is_public and not is_owner:
            raise AccessDeniedError("Access denied")

        if not is_owner:
            # Keep updated_at: views are not edits
            await self.db_session.execute(
                update(BoardDB)
                .where(BoardDB.id == board_id)
                .values(view_count=BoardDB.view_count + 1, updated_at=BoardDB.updated_at)
            )
            await self.db_session.commit()
            await self.db_session.refresh(board)

        summary = (await self._summaries([row], viewer_id))[0]
        images = await self.get_board_images(board_id)

        return {
            **summary,
            "view_count": board.view_count,
            "is_owner": is_owner,
            "images": [_image_to_dict(image) for image in images],
        }

    async def create_board(self, owner_id: uuid.UUID, data: dict) -> dict:
        """Create a board.

        Public boards get a share token straight away.

        Args:
            owner_id: Creating user
            data: title, description, background_color, is_public, tags

        Returns:
            The new board as a detail dict
        """
        is_public = bool(data.get("is_public", False))
        board = BoardDB(
            id=uuid.uuid4(),
            title=data["title"],
            description=data.get("description"),
            background_color=data.get("background_color") or DEFAULT_BACKGROUND_COLOR,
            is_public=is_public,
            share_token=generate_share_token() if is_public else None,
            user_id=owner_id,
        )
        self.db_session.add(board)
        await self.db_session.flush()

        if data.get("tags"):
            await self.tags.set_tags(board.id, data["tags"])

        await self.db_session.commit()
        logger.info("board_created", board_id=str(board.id), user_id=str(owner_id))
        return await self.get_board(board.id, owner_id)

    async def update_board(self, board_id: uuid.UUID, user_id: uuid.UUID, changes: dict) -> dict:
        """Apply a partial update to an owned board.

        Making a board public generates a share token if it never had one.

        Args:
            board_id: Board to update
            user_id: Caller, must be the owner
            changes: Fields explicitly sent by the client

        Raises:
            InvalidInputError: If there is nothing to update
        """
        board = await self.get_owned_board(board_id, user_id)

        fields = {k: v for k, v in changes.items() if k in _BOARD_FIELDS}
        tags = changes.get("tags")
        if not fields and tags is None:
            raise InvalidInputError("No valid updates provided")

        if "title" in fields and not fields["title"]:
            raise InvalidInputError("Title is required and must be less than 255 characters")
        if fields.get("background_color") is None:
            fields.pop("background_color", None)
        if fields.get("is_public") is None:
            fields.pop("is_public", None)

        for field, value in fields.items():
            setattr(board, field, value)

        if board.is_public and board.share_token is None:
            board.share_token = generate_share_token()

        if tags is not None:
            await self.tags.set_tags(board.id, tags)

        board.updated_at = utcnow()
        await self.db_session.commit()
        logger.info("board_updated", board_id=str(board_id), fields=sorted(changes))
        return await self.get_board(board_id, user_id)

    async def touch(self, board_id: uuid.UUID) -> None:
        """Mark a board as edited. Does not commit."""
        await self.db_session.execute(
            update(BoardDB).where(BoardDB.id == board_id).values(updated_at=utcnow())
        )

    async def delete_board(self, board_id: uuid.UUID, user_id: uuid.UUID) -> list[str]:
        """Delete an owned board. Images, tags, likes and share links cascade.

        Returns:
            Storage keys of the images that were on the board
        """
        await self.get_owned_board(board_id, user_id)

        keys = await self.db_session.execute(
            select(ImageDB.public_id)
            .where(ImageDB.board_id == board_id, ImageDB.public_id.isnot(None))
            .distinct()
        )
        storage_keys = list(keys.scalars().all())

        await self.db_session.execute(delete(BoardDB).where(BoardDB.id == board_id))
        await self.db_session.commit()

        logger.info("board_deleted", board_id=str(board_id), images=len(storage_keys))
        return storage_keys

    async def duplicate_board(self, board_id: uuid.UUID, user_id: uuid.UUID) -> dict:
        """Copy a readable board into a new private board owned by the caller.

        Images are copied with their placement and share the storage keys of
        the originals; tags are copied too.
        """
        source = await self.get_readable_board(board_id, user_id)

        copy = BoardDB(
            id=uuid.uuid4(),
            title=f"{source.title} (Copy)"[:255],
            description=source.description,
            background_color=source.background_color,
            is_public=False,
            user_id=user_id,
        )
        self.db_session.add(copy)
        await self.db_session.flush()

        for image in await self.get_board_images(board_id):
            self.db_session.add(
                ImageDB(
                    id=uuid.uuid4(),
                    url=image.url,
                    public_id=image.public_id,
                    position_x=image.position_x,
                    position_y=image.position_y,
                    width=image.width,
                    height=image.height,
                    rotation=image.rotation,
                    z_index=image.z_index,
                    board_id=copy.id,
                )
            )
        await self.db_session.flush()

        source_tags = (await self.tags.get_tags([board_id])).get(board_id, [])
        if source_tags:
            await self.tags.set_tags(copy.id, source_tags)

        await self.db_session.commit()
        logger.info("board_duplicated", source_id=str(board_id), board_id=str(copy.id))
        return await self.get_board(copy.id, user_id)

    # ========== Likes ==========

    async def toggle_like(self, board_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Like a board, or remove the like if it is already there.

        Returns:
            True if the board is now liked
        """
        await self.get_readable_board(board_id, user_id)

        removed = await self.db_session.execute(
            delete(LikedBoardDB).where(
                LikedBoardDB.user_id == user_id, LikedBoardDB.board_id == board_id
            )
        )
        if removed.rowcount > 0:
            await self.db_session.commit()
            return False

        self.db_session.add(LikedBoardDB(id=uuid.uuid4(), user_id=user_id, board_id=board_id))
        try:
            await self.db_session.commit()
        except IntegrityError:
            # A concurrent request inserted the same like
            await self.db_session.rollback()
        return True

    # ========== Discovery ==========

    async def random_board(
        self, viewer_id: uuid.UUID | None = None, exclude: uuid.UUID | None = None
    ) -> dict:
        """Pick a random public board for the inspiration roulette.

        ``exclude`` is honoured only while another public board exists.
        """
        query = select(BoardDB.id).where(BoardDB.is_public.is_(True))
        if exclude is not None:
            public_count = await self.db_session.scalar(
                select(func.count(BoardDB.id)).where(BoardDB.is_public.is_(True))
            )
            if public_count and public_count > 1:
                query = query.where(BoardDB.id != exclude)

        board_id = await self.db_session.scalar(query.order_by(func.random()).limit(1))
        if board_id is None:
            raise NotFoundError("No public boards yet")

        return await self.get_board(board_id, viewer_id)

    async def shared_view(self, board: BoardDB) -> dict:
        """Read-only projection of a board for share links."""
        author = await self.db_session.scalar(
            select(UserDB.name).where(UserDB.id == board.user_id)
        )
        tags = (await self.tags.get_tags([board.id])).get(board.id, [])
        images = await self.get_board_images(board.id)

        return {
            "id": board.id,
            "title": board.title,
            "description": board.description,
            "background_color": board.background_color,
            "created_at": board.created_at,
            "author_name": author,
            "tags": tags,
            "images": [_image_to_dict(image) for image in images],
        }

    async def get_public_share(self, board_id: uuid.UUID) -> dict:
        """Share projection of a public board by id."""
        board = await self.get_board_row(board_id)
        if board is None or not board.is_public:
            raise NotFoundError("Board not found or not public")
        return await self.shared_view(board)

    # ========== Canvas ==========

    async def arrange(self, board_id: uuid.UUID, user_id: uuid.UUID, layout: str = "grid") -> list[dict]:
        """Lay out every image of an owned board automatically.

        Images keep their stacking order and are placed row by row.
        """
        await self.get_owned_board(board_id, user_id)
        if layout != "grid":
            raise InvalidInputError(f"Unknown layout: {layout}")

        images = await self.get_board_images(board_id)
        for image, (x, y) in zip(images, grid_layout(len(images))):
            image.position_x = x
            image.position_y = y

        await self.touch(board_id)
        await self.db_session.commit()
        return [_image_to_dict(image) for image in images]
