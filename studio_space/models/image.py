"""Canvas image data models."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from studio_space.models.base import Base, utcnow

# ========== SQLAlchemy ORM Models ==========


class ImageDB(Base):
    """SQLAlchemy model for images table.

    ``public_id`` is the storage key of the uploaded file. Duplicated images
    share the key of the image they were copied from.
    """

    __tablename__ = "images"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    url = Column(Text, nullable=False)
    public_id = Column(String(255), nullable=True)
    position_x = Column(Integer, nullable=False, default=0, server_default="0")
    position_y = Column(Integer, nullable=False, default=0, server_default="0")
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    rotation = Column(Integer, nullable=False, default=0, server_default="0")
    z_index = Column(Integer, nullable=False, default=0, server_default="0")
    board_id = Column(
        UUID(as_uuid=True), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (Index("idx_images_board_id", "board_id"),)


# ========== Pydantic Models ==========


class ImageResponse(BaseModel):
    """Image as placed on a board canvas."""

    id: uuid.UUID
    url: str
    public_id: str | None = None
    position_x: int
    position_y: int
    width: int
    height: int
    rotation: int
    z_index: int
    board_id: uuid.UUID
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class SharedImage(BaseModel):
    """Image projection exposed on read-only share views."""

    url: str
    position_x: int
    position_y: int
    width: int
    height: int
    rotation: int

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ImageUpdateRequest(BaseModel):
    """Partial update of an image's canvas placement."""

    position_x: int | None = Field(None, ge=0, alias="positionX")
    position_y: int | None = Field(None, ge=0, alias="positionY")
    width: int | None = Field(None, ge=1)
    height: int | None = Field(None, ge=1)
    rotation: int | None = Field(None, ge=-360, le=360)
    z_index: int | None = Field(None, alias="zIndex")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class ImageDuplicateRequest(BaseModel):
    """Offset applied to the copy of an image."""

    offset_x: int = Field(20, alias="offsetX")
    offset_y: int = Field(20, alias="offsetY")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class ReorderRequest(BaseModel):
    """New stacking order, bottom first."""

    image_ids: list[uuid.UUID] = Field(..., alias="imageIds")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class ResizeRequest(BaseModel):
    """Width change in pixels; height follows the aspect ratio."""

    delta: int


class RotateRequest(BaseModel):
    """Rotation change in degrees."""

    degrees: int


class ImageEnvelope(BaseModel):
    """Response schema for single-image operations."""

    message: str
    image: ImageResponse
