"""User and authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from washpoint.utils.validators import normalize_phone, validate_vietnamese_phone


class UserCreate(BaseModel):
    """Schema for registering an account."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=1, max_length=150)
    phone: str | None = None
    role: str = Field(default="user", pattern="^(user|provider)$")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        if not validate_vietnamese_phone(v):
            raise ValueError("Invalid phone number")
        return normalize_phone(v)


class UserLogin(BaseModel):
    """Schema for logging in."""

    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    """Schema for editing the caller's profile."""

    full_name: str | None = Field(None, min_length=1, max_length=150)
    phone: str | None = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not validate_vietnamese_phone(v):
            raise ValueError("Invalid phone number")
        return normalize_phone(v)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    phone: str | None
    full_name: str | None
    role: str
    is_active: bool
    created_at: datetime
