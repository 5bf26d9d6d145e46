"""Authentication endpoints.

Local signup/login, Google sign-in and token refresh. Every successful call
returns the user together with a fresh access token.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.api.middleware.auth import get_current_user
from studio_space.api.middleware.rate_limiter import check_rate_limit
from studio_space.models.user import (
    AuthResponse,
    GoogleAuthRequest,
    LoginRequest,
    SignupRequest,
    UserDB,
    UserResponse,
)
from studio_space.services.database import get_db_session
from studio_space.services.exceptions import AuthenticationError
from studio_space.services.google_auth import GoogleTokenVerifier, get_google_verifier
from studio_space.services.security import create_access_token
from studio_space.services.user_service import UserManager

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(message: str, user: UserDB) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id),
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_rate_limit)],
)
async def signup(
    request: SignupRequest,
    db_session: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """Register a local account.

    Args:
        request: Name, email, password and birth date
        db_session: Database session

    Returns:
        AuthResponse with the new user and an access token

    Raises:
        ConflictError: If the email is already registered
    """
    user = await UserManager(db_session).register(
        name=request.name,
        email=request.email,
        password=request.password,
        birth_date=request.birth_date,
    )
    return _auth_response("User created successfully", user)


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(check_rate_limit)],
)
async def login(
    request: LoginRequest,
    db_session: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """Sign in with email and password.

    Raises:
        AuthenticationError: On unknown email or wrong password
    """
    user = await UserManager(db_session).authenticate(request.email, request.password)
    return _auth_response("Login successful", user)


@router.post(
    "/google",
    response_model=AuthResponse,
    dependencies=[Depends(check_rate_limit)],
)
async def google_login(
    request: GoogleAuthRequest,
    db_session: AsyncSession = Depends(get_db_session),
    verifier: GoogleTokenVerifier = Depends(get_google_verifier),
) -> AuthResponse:
    """Sign in (or sign up) with a Google ID token.

    Raises:
        AuthenticationError: If Google does not vouch for the token
    """
    identity = await verifier.verify(request.id_token)
    if identity is None:
        raise AuthenticationError("Invalid Google token")

    user = await UserManager(db_session).login_with_google(identity)
    return _auth_response("Google login successful", user)


@router.get("/me")
async def me(current_user: UserDB = Depends(get_current_user)) -> dict:
    """Return the authenticated user."""
    return {"user": UserResponse.model_validate(current_user)}


@router.post("/refresh")
async def refresh_token(current_user: UserDB = Depends(get_current_user)) -> dict:
    """Issue a new access token for the authenticated user."""
    return {
        "message": "Token refreshed",
        "token": create_access_token(current_user.id),
    }
