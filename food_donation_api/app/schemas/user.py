"""
Pydantic models for user data.

Defines schemas for registering users, logging in and reading user
information.  ``UserRead`` deliberately has no password field, so a
password hash can never leak through a response.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import APIModel, UserType
from .restaurant import RestaurantRead


class UserBase(APIModel):
    name: str = Field(..., min_length=1, examples=["Green Kitchen Owner"])
    email: str = Field(..., min_length=3, examples=["owner@greenkitchen.com"])

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Lower-case the address and require an ``@`` with something on both sides."""
        local, sep, domain = v.partition("@")
        if not sep or not local or not domain:
            raise ValueError("Please provide a valid email")
        return v.lower()


class UserCreate(UserBase):
    """Schema for registering a user."""

    password: str = Field(..., min_length=6, examples=["password123"])
    user_type: UserType = Field(..., examples=["restaurant"])


class UserLogin(APIModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    user_type: UserType
    created_at: datetime


class AuthResponse(APIModel):
    success: bool = True
    token: str
    user: UserRead


class UserResponse(APIModel):
    success: bool = True
    user: UserRead


class ProfileResponse(APIModel):
    """The current user together with the restaurant they own, if any."""

    success: bool = True
    user: UserRead
    restaurant: Optional[RestaurantRead] = None
