"""Pydantic models for authentication."""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class User(BaseModel):
    """User profile as returned by the backend."""

    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    last_login: datetime | None = None
    created_at: datetime | None = None
    is_admin: bool = False
    is_reviewer: bool = False
    is_image_contributor: bool = False


class UserLogin(BaseModel):
    """User login request."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserRegister(BaseModel):
    """User registration request."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    first_name: str | None = None
    last_name: str | None = None


class ProfileUpdateRequest(BaseModel):
    """Profile update request."""

    email: EmailStr | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)


class AuthResponse(BaseModel):
    """Backend response to login and register."""

    user: User
    token: str


class SessionResponse(BaseModel):
    """Current session as seen by the front-end."""

    is_authenticated: bool
    user: User | None = None
    is_admin: bool = False
    is_reviewer: bool = False
    is_image_contributor: bool = False


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
