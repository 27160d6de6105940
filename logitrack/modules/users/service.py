"""User and driver queries plus profile updates."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.exceptions import BusinessRuleException, NotFoundException
from logitrack.models.enums import UserType
from logitrack.models.user import User

logger = logging.getLogger(__name__)

# Profile fields a user (or an admin editing a driver) may change
EDITABLE_PROFILE_FIELDS = frozenset(
    {
        "full_name",
        "email",
        "phone_number",
        "address",
        "city",
        "postal_code",
        "service_area",
    }
)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: uuid.UUID) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundException(f"User {user_id} not found")
        return user

    async def get_by_username(self, username: str) -> User | None:
        """Case-insensitive username lookup."""
        result = await self.db.execute(
            select(User).where(func.lower(User.username) == username.strip().lower())
        )
        return result.scalar_one_or_none()

    async def list_users(self, user_type: UserType | None = None) -> list[User]:
        query = select(User)
        if user_type is not None:
            query = query.where(User.user_type == user_type)
        result = await self.db.execute(query.order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def list_drivers(self, service_area: str | None = None) -> list[User]:
        query = select(User).where(
            User.user_type == UserType.DRIVER,
            User.is_active.is_(True),
        )
        if service_area:
            query = query.where(
                func.lower(User.service_area) == service_area.strip().lower()
            )
        result = await self.db.execute(query.order_by(User.full_name))
        return list(result.scalars().all())

    async def get_driver(self, driver_id: uuid.UUID) -> User:
        """Fetch a user and make sure it is an active driver."""
        user = await self.get_user(driver_id)
        if user.user_type != UserType.DRIVER:
            raise BusinessRuleException(f"User {driver_id} is not a driver")
        if not user.is_active:
            raise BusinessRuleException(f"Driver {driver_id} is not active")
        return user

    async def update_profile(self, user_id: uuid.UUID, **fields) -> User:
        user = await self.get_user(user_id)
        return await self._apply_profile_fields(user, fields)

    async def update_driver(self, driver_id: uuid.UUID, **fields) -> User:
        """Update the allowed driver fields. Unknown keys are ignored."""
        user = await self.get_user(driver_id)
        if user.user_type != UserType.DRIVER:
            raise BusinessRuleException(f"User {driver_id} is not a driver")
        user = await self._apply_profile_fields(user, fields)
        logger.info("Driver %s updated: %s", driver_id, sorted(fields))
        return user

    async def _apply_profile_fields(self, user: User, fields: dict) -> User:
        for key, value in fields.items():
            if key not in EDITABLE_PROFILE_FIELDS:
                continue
            # full_name and email are NOT NULL; ignore explicit nulls
            if value is None and key in ("full_name", "email"):
                continue
            setattr(user, key, value)
        await self.db.flush()
        return user
