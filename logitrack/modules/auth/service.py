"""Account registration and credential checks."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.exceptions import ConflictException, UnauthorizedException
from logitrack.models.enums import UserType
from logitrack.models.user import User
from logitrack.modules.auth.auth import create_access_token
from logitrack.modules.auth.passwords import hash_password, verify_password
from logitrack.modules.users.service import UserService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)

    async def register(
        self,
        username: str,
        password: str,
        email: str,
        full_name: str,
        user_type: UserType = UserType.USER,
        phone_number: str | None = None,
        address: str | None = None,
        city: str | None = None,
        postal_code: str | None = None,
        service_area: str | None = None,
    ) -> User:
        """Create an account. Usernames are unique regardless of case."""
        username = username.strip()
        if await self.users.get_by_username(username) is not None:
            raise ConflictException(f"Username '{username}' is already taken")

        user = User(
            username=username,
            password_hash=hash_password(password),
            email=email,
            full_name=full_name,
            user_type=UserType(user_type),
            phone_number=phone_number,
            address=address,
            city=city,
            postal_code=postal_code,
            service_area=service_area if UserType(user_type) == UserType.DRIVER else None,
        )
        self.db.add(user)
        await self.db.flush()

        logger.info("Registered %s account %s (%s)", user.user_type.value, username, user.id)
        return user

    async def authenticate(self, username: str, password: str) -> tuple[User, str, int]:
        """Verify credentials and issue a token. Returns (user, token, expires_in)."""
        user = await self.users.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for username %s", username)
            raise UnauthorizedException("Invalid username or password")
        if not user.is_active:
            raise UnauthorizedException("Account is disabled")

        user.last_login_at = datetime.now(UTC)
        await self.db.flush()

        token, expires_in = create_access_token(user)
        return user, token, expires_in
