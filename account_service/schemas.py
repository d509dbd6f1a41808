"""Pydantic schemas for request and response models used in the account service.

Includes models for registration, deletion, login, token and user/shelf
responses. Emails are accepted as plain strings so that format problems are
reported by the account validators together with every other violation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserToRegister(BaseModel):
    """Schema for user registration requests."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
    )

    email: str
    password: str
    display_name: Optional[str] = None


class UserToDelete(BaseModel):
    """Schema for account deletion requests."""

    model_config = ConfigDict(extra="forbid")

    password: str


class UserLogin(BaseModel):
    """Schema for login requests."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
    )

    email: str
    password: str


class Token(BaseModel):
    """Schema returned after successful authentication."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )

    access_token: str
    token_type: str


class UserResponse(BaseModel):
    """Public view of a user; the password hash is never included."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None


class ShelfResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: str
    shelf_name: str


class CustomShelfCreate(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
    )

    shelf_name: str
