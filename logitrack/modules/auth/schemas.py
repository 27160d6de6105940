"""Pydantic v2 schemas for registration and login."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, EmailStr, Field, model_validator

from logitrack.modules.users.schemas import UserResponse


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.]+$")
    password: str = Field(..., min_length=6, max_length=128)
    confirm_password: str
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)
    phone_number: str | None = Field(None, max_length=30)
    address: str | None = None
    city: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=10)
    # Admin accounts are provisioned by the seed command only
    user_type: Literal["user", "driver"] = "user"
    service_area: str | None = Field(None, max_length=100)

    @model_validator(mode="after")
    def passwords_match(self) -> RegisterRequest:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
