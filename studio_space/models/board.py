"""Board, tag, like and share link data models."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from studio_space.models.base import Base, utcnow
from studio_space.models.image import ImageResponse, SharedImage

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
DEFAULT_BACKGROUND_COLOR = "#ffffff"


# ========== SQLAlchemy ORM Models ==========


class BoardDB(Base):
    """SQLAlchemy model for boards table."""

    __tablename__ = "boards"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    background_color = Column(
        String(7),
        nullable=False,
        default=DEFAULT_BACKGROUND_COLOR,
        server_default=DEFAULT_BACKGROUND_COLOR,
    )
    is_public = Column(Boolean, nullable=False, default=False, server_default=false())
    share_token = Column(String(255), nullable=True, unique=True)
    view_count = Column(Integer, nullable=False, default=0, server_default="0")
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("idx_boards_user_id", "user_id"),
        Index("idx_boards_share_token", "share_token"),
    )


class TagDB(Base):
    """SQLAlchemy model for tags table."""

    __tablename__ = "tags"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    board_id = Column(
        UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("board_id", "name", name="tags_board_name_key"),
        Index("idx_tags_board_id", "board_id"),
    )


class LikedBoardDB(Base):
    """SQLAlchemy model for liked_boards join table."""

    __tablename__ = "liked_boards"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    board_id = Column(
        UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "board_id", name="liked_boards_user_board_key"),
        Index("idx_liked_boards_user_id", "user_id"),
        Index("idx_liked_boards_board_id", "board_id"),
    )


class ShareLinkDB(Base):
    """SQLAlchemy model for share_links table.

    A share link grants read access to one board through an opaque token,
    optionally behind a password and an expiry time.
    """

    __tablename__ = "share_links"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    token = Column(String(255), nullable=False, unique=True)
    board_id = Column(
        UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    password_hash = Column(String(255), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    expires_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_share_links_board_id", "board_id"),)


# ========== Pydantic Models ==========


class BoardCreateRequest(BaseModel):
    """Request schema for creating a board."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    background_color: str = Field(
        DEFAULT_BACKGROUND_COLOR, pattern=HEX_COLOR_PATTERN, alias="backgroundColor"
    )
    is_public: bool = Field(False, alias="isPublic")
    tags: list[str] | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class BoardUpdateRequest(BaseModel):
    """Partial board update. Only fields present in the body are applied."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    background_color: str | None = Field(
        None, pattern=HEX_COLOR_PATTERN, alias="backgroundColor"
    )
    is_public: bool | None = Field(None, alias="isPublic")
    tags: list[str] | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class BoardSummary(BaseModel):
    """Board row as listed on dashboards and the explore feed."""

    id: uuid.UUID
    title: str
    description: str | None = None
    background_color: str
    is_public: bool
    share_token: str | None = None
    view_count: int = 0
    user_id: uuid.UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None
    author_name: str | None = None
    author_avatar: str | None = None
    image_count: int = 0
    like_count: int = 0
    is_liked: bool = False
    tags: list[str] = Field(default_factory=list)


class BoardDetail(BoardSummary):
    """Board with its canvas contents."""

    is_owner: bool = False
    images: list[ImageResponse] = Field(default_factory=list)


class Pagination(BaseModel):
    """Page metadata for list endpoints."""

    page: int
    limit: int
    total: int
    pages: int


class BoardListResponse(BaseModel):
    """Paginated list of boards."""

    boards: list[BoardSummary]
    pagination: Pagination


class BoardEnvelope(BaseModel):
    """Response schema for single-board operations."""

    message: str | None = None
    board: BoardDetail


class SharedBoardView(BaseModel):
    """Read-only projection served to anonymous share link visitors."""

    id: uuid.UUID
    title: str
    description: str | None = None
    background_color: str
    created_at: datetime | None = None
    author_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    images: list[SharedImage] = Field(default_factory=list)


class LikeResponse(BaseModel):
    """Result of toggling a like."""

    message: str
    liked: bool


class ArrangeRequest(BaseModel):
    """Automatic canvas layout request."""

    layout: Literal["grid"] = "grid"


class ShareLinkCreateRequest(BaseModel):
    """Request schema for creating a share link."""

    password: str | None = Field(None, min_length=1, max_length=255)
    expires_in_hours: int | None = Field(None, gt=0, alias="expiresInHours")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class ShareLinkResponse(BaseModel):
    """Share link as shown to the board owner."""

    token: str
    path: str
    board_id: uuid.UUID
    password_protected: bool
    created_at: datetime | None = None
    expires_at: datetime | None = None


class ShareAccessRequest(BaseModel):
    """Password submitted to unlock a protected share link."""

    password: str


class TagRequest(BaseModel):
    """Single tag to add to a board."""

    name: str = Field(..., min_length=1, max_length=100)


class TagsReplaceRequest(BaseModel):
    """Full replacement of a board's tag set."""

    tags: list[str]


class TagCount(BaseModel):
    """Tag usage across public boards."""

    name: str
    count: int
