"""Password hashing and access token handling."""

import os
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
import structlog
from jose import JWTError, jwt

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_TOKEN_LIFETIME_DAYS = 7
_DEV_SECRET = "dev-secret-key-change-me"

# bcrypt only considers the first 72 bytes of the input
_BCRYPT_MAX_BYTES = 72


def _bcrypt_rounds() -> int:
    return int(os.getenv("BCRYPT_ROUNDS", "12"))


def _jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        logger.warning("jwt_secret_not_configured", fallback="development secret")
        return _DEV_SECRET
    return secret


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt.

    Args:
        password: Plain text password

    Returns:
        bcrypt hash as text, safe to store
    """
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check a password against a stored hash.

    Accounts without a local password (Google sign-in) never match.
    """
    if not password_hash:
        return False

    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:_BCRYPT_MAX_BYTES], password_hash.encode("utf-8")
        )
    except ValueError:
        logger.warning("malformed_password_hash")
        return False


def create_access_token(user_id: uuid.UUID, expires_in: timedelta | None = None) -> str:
    """Issue a signed access token for a user.

    Args:
        user_id: Account the token authenticates
        expires_in: Token lifetime (defaults to JWT_EXPIRES_DAYS, 7 days)

    Returns:
        Encoded JWT
    """
    if expires_in is None:
        expires_in = timedelta(
            days=int(os.getenv("JWT_EXPIRES_DAYS", str(DEFAULT_TOKEN_LIFETIME_DAYS)))
        )

    now = datetime.now(timezone.utc)
    claims = {
        "userId": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(claims, _jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> uuid.UUID | None:
    """Validate a token and extract the user id.

    Returns:
        User id if the signature and expiry are valid, None otherwise
    """
    try:
        claims = jwt.decode(token, _jwt_secret(), algorithms=[JWT_ALGORITHM])
        return uuid.UUID(claims["userId"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None


def generate_share_token() -> str:
    """Opaque random token for share links."""
    return str(uuid.uuid4())
