"""Board tag management."""

import uuid
from collections import defaultdict

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.models.board import BoardDB, TagDB
from studio_space.services.exceptions import InvalidInputError

MAX_TAG_LENGTH = 100


def normalize_tag(name: str) -> str:
    """Canonical form of a tag: trimmed and ``#``-prefixed.

    Raises:
        InvalidInputError: If the tag is empty or too long
    """
    tag = name.strip()
    if not tag or tag == "#":
        raise InvalidInputError("Tag name is required")
    if not tag.startswith("#"):
        tag = f"#{tag}"
    if len(tag) > MAX_TAG_LENGTH:
        raise InvalidInputError(f"Tag must be at most {MAX_TAG_LENGTH} characters")
    return tag


def normalize_tags(names: list[str]) -> list[str]:
    """Normalise a tag list, dropping duplicates and keeping first-seen order."""
    tags: list[str] = []
    for name in names:
        tag = normalize_tag(name)
        if tag not in tags:
            tags.append(tag)
    return tags


class TagManager:
    """Reads and writes the tags attached to boards."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_tags(self, board_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[str]]:
        """Tag names per board, each list sorted by name."""
        tags: dict[uuid.UUID, list[str]] = defaultdict(list)
        if not board_ids:
            return tags

        result = await self.db_session.execute(
            select(TagDB.board_id, TagDB.name)
            .where(TagDB.board_id.in_(board_ids))
            .order_by(TagDB.name.asc())
        )
        for board_id, name in result.all():
            tags[board_id].append(name)
        return tags

    async def set_tags(self, board_id: uuid.UUID, names: list[str]) -> list[str]:
        """Replace a board's tags. Does not commit."""
        tags = normalize_tags(names)
        await self.db_session.execute(delete(TagDB).where(TagDB.board_id == board_id))
        for tag in tags:
            self.db_session.add(TagDB(id=uuid.uuid4(), board_id=board_id, name=tag))
        await self.db_session.flush()
        return sorted(tags)

    async def add_tag(self, board_id: uuid.UUID, name: str) -> str:
        """Attach a tag unless already present. Does not commit."""
        tag = normalize_tag(name)
        existing = await self.db_session.execute(
            select(TagDB.id).where(TagDB.board_id == board_id, TagDB.name == tag)
        )
        if existing.first() is None:
            self.db_session.add(TagDB(id=uuid.uuid4(), board_id=board_id, name=tag))
            await self.db_session.flush()
        return tag

    async def remove_tag(self, board_id: uuid.UUID, name: str) -> bool:
        """Detach a tag. Does not commit.

        Returns:
            True if the tag was attached
        """
        tag = normalize_tag(name)
        result = await self.db_session.execute(
            delete(TagDB).where(TagDB.board_id == board_id, TagDB.name == tag)
        )
        return result.rowcount > 0

    async def popular_tags(self, limit: int = 20) -> list[dict]:
        """Tags used on public boards, most used first.

        Args:
            limit: Maximum number of tags

        Returns:
            List of {"name", "count"}
        """
        usage = func.count(TagDB.id).label("count")
        result = await self.db_session.execute(
            select(TagDB.name, usage)
            .join(BoardDB, TagDB.board_id == BoardDB.id)
            .where(BoardDB.is_public.is_(True))
            .group_by(TagDB.name)
            .order_by(usage.desc(), TagDB.name.asc())
            .limit(limit)
        )
        return [{"name": name, "count": count} for name, count in result.all()]
