"""User account management."""

import uuid
from datetime import date

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.models.board import BoardDB, LikedBoardDB
from studio_space.models.image import ImageDB
from studio_space.models.user import AuthProvider, UserDB
from studio_space.services.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from studio_space.services.security import hash_password, verify_password

logger = structlog.get_logger(__name__)

_PROFILE_FIELDS = ("name", "email", "birth_date", "avatar_url")


class UserManager:
    """Manages user accounts and credentials."""

    def __init__(self, db_session: AsyncSession):
        """Initialize user manager.

        Args:
            db_session: Database session for persistence
        """
        self.db_session = db_session

    async def get_by_id(self, user_id: uuid.UUID) -> UserDB | None:
        result = await self.db_session.execute(select(UserDB).where(UserDB.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> UserDB | None:
        result = await self.db_session.execute(
            select(UserDB).where(UserDB.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def register(
        self, name: str, email: str, password: str, birth_date: date | None = None
    ) -> UserDB:
        """Create a local account.

        Args:
            name: Display name
            email: Login email (already normalised)
            password: Plain text password, hashed before storage
            birth_date: Date of birth

        Returns:
            The new user

        Raises:
            ConflictError: If the email is already registered
        """
        if await self.get_by_email(email) is not None:
            raise ConflictError("User already exists")

        user = UserDB(
            id=uuid.uuid4(),
            name=name,
            email=email.lower(),
            password_hash=hash_password(password),
            birth_date=birth_date,
            provider=AuthProvider.LOCAL.value,
        )
        self.db_session.add(user)

        try:
            await self.db_session.commit()
        except IntegrityError as exc:
            await self.db_session.rollback()
            raise ConflictError("User already exists") from exc

        logger.info("user_registered", user_id=str(user.id), provider=user.provider)
        return user

    async def authenticate(self, email: str, password: str) -> UserDB:
        """Check email/password credentials.

        Raises:
            AuthenticationError: On unknown email or wrong password
        """
        user = await self.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("login_failed", email=email)
            raise AuthenticationError("Invalid credentials")
        return user

    async def login_with_google(self, identity: dict) -> UserDB:
        """Sign in (or sign up) with a verified Google identity.

        New emails get a Google account. Existing accounts keep their
        credentials and get the Google provider id linked if they had none;
        linking also takes the Google picture when one is provided.

        Args:
            identity: Output of GoogleTokenVerifier.verify()

        Returns:
            The signed-in user
        """
        user = await self.get_by_email(identity["email"])

        if user is None:
            user = UserDB(
                id=uuid.uuid4(),
                name=identity["name"],
                email=identity["email"],
                avatar_url=identity.get("avatar_url"),
                provider=AuthProvider.GOOGLE.value,
                provider_id=identity.get("provider_id"),
                email_verified=True,
            )
            self.db_session.add(user)
            logger.info("user_registered", user_id=str(user.id), provider=user.provider)
        elif not user.provider_id and identity.get("provider_id"):
            user.provider = AuthProvider.GOOGLE.value
            user.provider_id = identity["provider_id"]
            user.avatar_url = identity.get("avatar_url") or user.avatar_url
            logger.info("google_account_linked", user_id=str(user.id))

        try:
            await self.db_session.commit()
        except IntegrityError as exc:
            await self.db_session.rollback()
            raise ConflictError("User already exists") from exc

        return user

    async def update_profile(self, user_id: uuid.UUID, updates: dict) -> UserDB:
        """Apply a partial profile update.

        Args:
            user_id: Account to update
            updates: Subset of name, email, birth_date, avatar_url

        Raises:
            InvalidInputError: If no updatable field is given
            NotFoundError: If the account no longer exists
            ConflictError: If the new email belongs to someone else
        """
        changes = {k: v for k, v in updates.items() if k in _PROFILE_FIELDS}
        if not changes:
            raise InvalidInputError("No valid updates provided")

        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if "email" in changes:
            taken = await self.db_session.execute(
                select(UserDB.id).where(UserDB.email == changes["email"], UserDB.id != user_id)
            )
            if taken.first() is not None:
                raise ConflictError("Email already in use")

        for field, value in changes.items():
            setattr(user, field, value)

        try:
            await self.db_session.commit()
        except IntegrityError as exc:
            await self.db_session.rollback()
            raise ConflictError("Email already in use") from exc

        await self.db_session.refresh(user)
        return user

    async def change_password(
        self, user_id: uuid.UUID, current_password: str, new_password: str
    ) -> None:
        """Replace the account password after checking the current one.

        Raises:
            NotFoundError: If the account no longer exists
            AuthenticationError: If the current password does not match
        """
        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        await self.db_session.commit()
        logger.info("password_changed", user_id=str(user_id))

    async def delete_account(self, user_id: uuid.UUID) -> list[str]:
        """Delete an account. Boards, images, tags and likes cascade.

        Returns:
            Storage keys of the images that were on the user's boards
        """
        keys_result = await self.db_session.execute(
            select(ImageDB.public_id)
            .join(BoardDB, ImageDB.board_id == BoardDB.id)
            .where(BoardDB.user_id == user_id, ImageDB.public_id.isnot(None))
            .distinct()
        )
        storage_keys = list(keys_result.scalars().all())

        result = await self.db_session.execute(delete(UserDB).where(UserDB.id == user_id))
        if result.rowcount == 0:
            raise NotFoundError("User not found")

        await self.db_session.commit()
        logger.info("user_deleted", user_id=str(user_id), images=len(storage_keys))
        return storage_keys

    async def get_stats(self, user_id: uuid.UUID) -> dict:
        """Dashboard counters for a user."""
        total_boards = await self.db_session.scalar(
            select(func.count(BoardDB.id)).where(BoardDB.user_id == user_id)
        )
        total_images = await self.db_session.scalar(
            select(func.count(ImageDB.id))
            .join(BoardDB, ImageDB.board_id == BoardDB.id)
            .where(BoardDB.user_id == user_id)
        )
        liked_boards = await self.db_session.scalar(
            select(func.count(LikedBoardDB.id)).where(LikedBoardDB.user_id == user_id)
        )
        public_boards = await self.db_session.scalar(
            select(func.count(BoardDB.id)).where(
                BoardDB.user_id == user_id, BoardDB.is_public.is_(True)
            )
        )

        return {
            "totalBoards": total_boards or 0,
            "totalImages": total_images or 0,
            "likedBoards": liked_boards or 0,
            "publicBoards": public_boards or 0,
        }
