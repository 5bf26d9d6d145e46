"""Data models for Studio Space."""

# Import SQLAlchemy ORM models to register them with Base.metadata
# This ensures all tables are known when create_tables() is called
from studio_space.models.board import (  # noqa: F401
    BoardCreateRequest,
    BoardDB,
    BoardDetail,
    BoardSummary,
    BoardUpdateRequest,
    LikedBoardDB,
    ShareLinkDB,
    SharedBoardView,
    TagDB,
)
from studio_space.models.image import (  # noqa: F401
    ImageDB,
    ImageResponse,
    ImageUpdateRequest,
    SharedImage,
)
from studio_space.models.user import (  # noqa: F401
    AuthProvider,
    UserDB,
    UserResponse,
)

__all__ = [
    # User models
    "AuthProvider",
    "UserDB",
    "UserResponse",
    # Board models
    "BoardDB",
    "BoardCreateRequest",
    "BoardUpdateRequest",
    "BoardSummary",
    "BoardDetail",
    "SharedBoardView",
    "TagDB",
    "LikedBoardDB",
    "ShareLinkDB",
    # Image models
    "ImageDB",
    "ImageResponse",
    "ImageUpdateRequest",
    "SharedImage",
]
