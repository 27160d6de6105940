"""Shared test helpers: actors and auth headers for seeded users."""

from logitrack.models.enums import UserType
from logitrack.models.user import User
from logitrack.modules.auth.auth import AuthenticatedUser, create_access_token

TEST_PASSWORD = "secret123"


def as_actor(user: User) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=user.id,
        username=user.username,
        email=user.email,
        user_type=UserType(user.user_type),
    )


def auth_headers(user: User) -> dict[str, str]:
    token, _ = create_access_token(user)
    return {"Authorization": f"Bearer {token}"}
