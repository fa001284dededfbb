"""
Pydantic schemas for user management
"""
import re
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from mathlearn.schemas.common import CamelModel

USERNAME_PATTERN = r"^[A-Za-z0-9_]{3,30}$"


def _check_password_strength(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
        raise ValueError(
            "Password must contain at least one lowercase letter, one uppercase letter, and one number"
        )
    return value


class UserPublic(CamelModel):
    """User as returned by the API (no password hash)"""
    id: str
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    is_verified: bool
    is_active: bool
    total_xp: int
    current_streak: int
    best_streak: int
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserCreate(CamelModel):
    """Request body for creating a user"""
    email: EmailStr
    username: Optional[str] = Field(None, pattern=USERNAME_PATTERN)
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar: Optional[str] = None
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: Optional[str]) -> Optional[str]:
        return _check_password_strength(value)


class UserUpdate(CamelModel):
    """Request body for updating a user; at least one field required"""
    username: Optional[str] = Field(None, pattern=USERNAME_PATTERN)
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("is_active")
    @classmethod
    def is_active_not_null(cls, value: Optional[bool]) -> bool:
        # omit the field to leave it unchanged
        if value is None:
            raise ValueError("isActive cannot be null")
        return value

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class LoginRequest(CamelModel):
    """Request body for POST /api/users/login"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserStats(CamelModel):
    """Aggregate user statistics"""
    total_users: int
    active_users: int
    verified_users: int
    recent_users: List[UserPublic]
