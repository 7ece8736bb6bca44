"""Schemas for user management and login."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for creating a user."""

    username: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.USER


class UserUpdate(BaseModel):
    """Schema for updating a user (all fields optional)."""

    username: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1)
    role: Optional[UserRole] = None


class UserResponse(BaseModel):
    """User response schema (never includes the password hash)."""

    id: UUID
    username: str
    email: str
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class UserDeleteResponse(BaseModel):
    message: str
    user: UserResponse


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    message: str
    user: UserResponse
