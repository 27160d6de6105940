"""Pydantic v2 schemas for user and driver endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from logitrack.models.enums import UserType


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    full_name: str
    phone_number: str | None = None
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    user_type: UserType
    service_area: str | None = None
    is_active: bool = True
    created_at: datetime


class UserSummary(BaseModel):
    """Compact user reference embedded in order listings."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    full_name: str
    phone_number: str | None = None


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    full_name: str | None = Field(None, min_length=1, max_length=200)
    email: EmailStr | None = None
    phone_number: str | None = Field(None, max_length=30)
    address: str | None = None
    city: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=10)
    service_area: str | None = Field(None, max_length=100)


class DriverUpdate(ProfileUpdate):
    """Admin edit of a driver record. Username and user type are not editable."""

    model_config = ConfigDict(extra="ignore")
