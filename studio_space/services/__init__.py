"""Business logic services for the Studio Space API."""

from studio_space.services.board_service import BoardManager
from studio_space.services.database import DatabaseManager, get_db_session
from studio_space.services.image_service import ImageManager
from studio_space.services.share_service import ShareManager
from studio_space.services.tag_service import TagManager
from studio_space.services.user_service import UserManager

__all__ = [
    "BoardManager",
    "DatabaseManager",
    "ImageManager",
    "ShareManager",
    "TagManager",
    "UserManager",
    "get_db_session",
]
