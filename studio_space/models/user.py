"""User account data models."""

import uuid
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, String, Text, false
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from studio_space.models.base import Base, utcnow


class AuthProvider(str, Enum):
    """Where the account's credentials live."""

    LOCAL = "local"
    GOOGLE = "google"


# ========== SQLAlchemy ORM Models ==========


class UserDB(Base):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)
    birth_date = Column(Date, nullable=True)
    provider = Column(
        String(50),
        nullable=False,
        default=AuthProvider.LOCAL.value,
        server_default=AuthProvider.LOCAL.value,
    )
    provider_id = Column(String(255), nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False, server_default=false())
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
        CheckConstraint(
            f"provider IN ('{AuthProvider.LOCAL.value}', '{AuthProvider.GOOGLE.value}')",
            name="users_provider_check",
        ),
    )


# ========== Pydantic Models ==========


class SignupRequest(BaseModel):
    """Request schema for local account registration."""

    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    birth_date: date = Field(..., alias="birthDate")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are compared case-insensitively."""
        return v.lower()

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class LoginRequest(BaseModel):
    """Request schema for email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class GoogleAuthRequest(BaseModel):
    """Request schema for Google sign-in."""

    id_token: str = Field(..., min_length=1, alias="idToken")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class UpdateProfileRequest(BaseModel):
    """Partial profile update. Omitted fields are left untouched."""

    name: str | None = Field(None, min_length=2, max_length=255)
    email: EmailStr | None = None
    birth_date: date | None = Field(None, alias="birthDate")
    avatar_url: str | None = Field(None, alias="avatarUrl")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class ChangePasswordRequest(BaseModel):
    """Request schema for changing the account password."""

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., min_length=6, alias="newPassword")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class UserResponse(BaseModel):
    """Public view of a user account. Never carries the password hash."""

    id: uuid.UUID
    name: str
    email: str
    avatar_url: str | None = None
    birth_date: date | None = None
    provider: str
    email_verified: bool
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class AuthResponse(BaseModel):
    """Response schema for signup/login."""

    message: str
    user: UserResponse
    token: str

