"""JWT authentication dependencies for FastAPI.

Validates Bearer tokens from the Authorization header, extracts the user
claims and exposes them as an ``AuthenticatedUser``. Role checks build on
``require_user_type``.
"""

import logging
import uuid
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from logitrack.config import settings
from logitrack.exceptions import ForbiddenException, UnauthorizedException
from logitrack.models.enums import UserType
from logitrack.models.user import User

logger = logging.getLogger(__name__)

# FastAPI security scheme: extracts Bearer token from Authorization header
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Represents the authenticated user extracted from a JWT token."""

    id: uuid.UUID
    username: str
    email: str
    user_type: UserType

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN

    @property
    def is_driver(self) -> bool:
        return self.user_type == UserType.DRIVER


def create_access_token(user: User) -> tuple[str, int]:
    """Issue a signed access token for *user*. Returns (token, expires_in seconds)."""
    expires_in = settings.jwt_expiry_minutes * 60
    claims = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "user_type": UserType(user.user_type).value,
        "exp": datetime.now(UTC) + timedelta(seconds=expires_in),
    }
    token = jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return token, expires_in


def _decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency that extracts and validates the current user from JWT."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    payload = _decode_token(credentials.credentials)

    try:
        user = AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            username=payload["username"],
            email=payload.get("email", ""),
            user_type=UserType(payload.get("user_type", UserType.USER.value)),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing required claims") from exc

    request.state.user = user
    return user


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser | None:
    """Like get_current_user but returns None instead of raising for unauthenticated requests."""
    if credentials is None:
        return None

    try:
        return await get_current_user(request, credentials)
    except UnauthorizedException:
        return None


def require_user_type(
    *allowed: UserType,
) -> Callable[..., Coroutine[Any, Any, AuthenticatedUser]]:
    """Build a dependency that only lets the given user types through.

    Usage::

        @router.get("/users")
        async def list_users(
            user: AuthenticatedUser = Depends(require_user_type(UserType.ADMIN)),
        ): ...
    """
    allowed_values = ", ".join(t.value for t in allowed)

    async def _check(
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if user.user_type not in allowed:
            raise ForbiddenException(
                f"This action requires one of the user types: {allowed_values}"
            )
        return user

    return _check
