"""Authentication dependencies for FastAPI."""

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.models.user import UserDB
from studio_space.services.database import get_db_session
from studio_space.services.exceptions import AccessDeniedError, AuthenticationError
from studio_space.services.security import decode_access_token
from studio_space.services.user_service import UserManager

logger = structlog.get_logger(__name__)


def extract_token_from_header(authorization: str | None) -> str | None:
    """Extract a bearer token from an Authorization header.

    Args:
        authorization: Header value ("Bearer <token>")

    Returns:
        The token, or None if the header is missing or malformed
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


class AuthMiddleware:
    """Resolves bearer JWTs to user rows."""

    async def verify_token(self, authorization: str | None, db_session: AsyncSession) -> UserDB:
        """Verify a bearer token and load its user.

        Args:
            authorization: Authorization header with Bearer token
            db_session: Database session

        Returns:
            The authenticated user

        Raises:
            AuthenticationError: If the token is missing or its user is gone
            AccessDeniedError: If the token is invalid or expired
        """
        token = extract_token_from_header(authorization)
        if not token:
            raise AuthenticationError("Access token required")

        user_id = decode_access_token(token)
        if user_id is None:
            raise AccessDeniedError("Invalid or expired token")

        user = await UserManager(db_session).get_by_id(user_id)
        if user is None:
            logger.info("token_user_missing", user_id=str(user_id))
            raise AuthenticationError("User not found")

        return user


# Global instance
auth_middleware = AuthMiddleware()


async def get_current_user(
    request: Request,
    authorization: str | None = Header(None),
    db_session: AsyncSession = Depends(get_db_session),
) -> UserDB:
    """FastAPI dependency for getting current authenticated user.

    Example:
        @router.get("/me")
        async def me(user: UserDB = Depends(get_current_user)):
            return {"user": user}
    """
    user = await auth_middleware.verify_token(authorization, db_session)
    request.state.user_id = str(user.id)
    return user


async def get_optional_user(
    request: Request,
    authorization: str | None = Header(None),
    db_session: AsyncSession = Depends(get_db_session),
) -> UserDB | None:
    """FastAPI dependency for optional authentication.

    Returns:
        The user if a valid token was sent, None otherwise
    """
    if not authorization:
        return None

    try:
        user = await auth_middleware.verify_token(authorization, db_session)
    except (AuthenticationError, AccessDeniedError):
        return None

    request.state.user_id = str(user.id)
    return user
