"""User profile and account endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.api.middleware.auth import get_current_user
from studio_space.models.user import ChangePasswordRequest, UpdateProfileRequest, UserDB, UserResponse
from studio_space.services.database import get_db_session
from studio_space.services.image_service import purge_unreferenced_files
from studio_space.services.storage import LocalImageStorage, get_image_storage
from studio_space.services.user_service import UserManager

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/profile")
async def get_profile(current_user: UserDB = Depends(get_current_user)) -> dict:
    """Return the caller's profile."""
    return {"user": UserResponse.model_validate(current_user)}


@router.put("/profile")
async def update_profile(
    request: UpdateProfileRequest,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Update name, email, birth date or avatar.

    Only fields present in the body are changed.

    Raises:
        InvalidInputError: If the body has no fields
        ConflictError: If the new email is taken
    """
    # name and email cannot be cleared, birth date and avatar can
    updates = {
        field: value
        for field, value in request.model_dump(exclude_unset=True).items()
        if value is not None or field in ("birth_date", "avatar_url")
    }
    user = await UserManager(db_session).update_profile(current_user.id, updates)
    return {
        "message": "Profile updated successfully",
        "user": UserResponse.model_validate(user),
    }


@router.put("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Replace the account password.

    Raises:
        AuthenticationError: If the current password is wrong
    """
    await UserManager(db_session).change_password(
        current_user.id, request.current_password, request.new_password
    )
    return {"message": "Password changed successfully"}


@router.delete("/account")
async def delete_account(
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
    storage: LocalImageStorage = Depends(get_image_storage),
) -> dict:
    """Delete the caller's account with all boards and their image files."""
    storage_keys = await UserManager(db_session).delete_account(current_user.id)
    await purge_unreferenced_files(db_session, storage, storage_keys)
    return {"message": "Account deleted successfully"}


@router.get("/stats")
async def get_stats(
    current_user: UserDB = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Dashboard counters for the caller."""
    return {"stats": await UserManager(db_session).get_stats(current_user.id)}
