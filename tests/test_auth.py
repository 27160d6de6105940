"""Tests for passwords, JWT tokens and the auth service."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt
from pydantic import ValidationError

from logitrack.config import settings
from logitrack.exceptions import ConflictException, ForbiddenException, UnauthorizedException
from logitrack.models.enums import UserType
from logitrack.modules.auth.auth import (
    AuthenticatedUser,
    create_access_token,
    get_current_user,
    get_optional_user,
    require_user_type,
)
from logitrack.modules.auth.passwords import hash_password, verify_password
from logitrack.modules.auth.schemas import RegisterRequest
from logitrack.modules.auth.service import AuthService
from tests.helpers import TEST_PASSWORD


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestPasswords:
    def test_round_trip(self):
        hashed = hash_password("Driver123")
        assert hashed != "Driver123"
        assert verify_password("Driver123", hashed)
        assert not verify_password("driver123", hashed)

    def test_malformed_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:
    @pytest.mark.asyncio
    async def test_token_claims(self, driver):
        token, expires_in = create_access_token(driver)
        assert expires_in == settings.jwt_expiry_minutes * 60

        user = await get_current_user(MagicMock(), _credentials(token))
        assert user.id == driver.id
        assert user.username == "driver_one"
        assert user.user_type == UserType.DRIVER
        assert user.is_driver and not user.is_admin

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(UnauthorizedException):
            await get_current_user(MagicMock(), None)

    @pytest.mark.asyncio
    async def test_expired_token(self):
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "username": "old",
                "exp": datetime.now(UTC) - timedelta(minutes=1),
            },
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(UnauthorizedException):
            await get_current_user(MagicMock(), _credentials(token))

    @pytest.mark.asyncio
    async def test_wrong_secret(self):
        token = jwt.encode({"sub": str(uuid.uuid4()), "username": "x"}, "other-secret", algorithm="HS256")
        with pytest.raises(UnauthorizedException):
            await get_current_user(MagicMock(), _credentials(token))

    @pytest.mark.asyncio
    async def test_optional_user(self, buyer):
        assert await get_optional_user(MagicMock(), None) is None
        assert await get_optional_user(MagicMock(), _credentials("garbage")) is None
        token, _ = create_access_token(buyer)
        assert (await get_optional_user(MagicMock(), _credentials(token))).id == buyer.id

    @pytest.mark.asyncio
    async def test_require_user_type(self):
        check = require_user_type(UserType.ADMIN)
        admin = AuthenticatedUser(uuid.uuid4(), "admin", "a@example.com", UserType.ADMIN)
        user = AuthenticatedUser(uuid.uuid4(), "user", "u@example.com", UserType.USER)

        assert await check(user=admin) is admin
        with pytest.raises(ForbiddenException):
            await check(user=user)


class TestRegisterRequest:
    def _payload(self, **overrides):
        data = {
            "username": "siti",
            "password": "rahasia1",
            "confirm_password": "rahasia1",
            "email": "siti@example.com",
            "full_name": "Siti Aminah",
        }
        data.update(overrides)
        return data

    def test_valid(self):
        assert RegisterRequest(**self._payload()).user_type == "user"

    def test_password_mismatch(self):
        with pytest.raises(ValidationError, match="Passwords do not match"):
            RegisterRequest(**self._payload(confirm_password="other"))

    def test_admin_self_registration_rejected(self):
        with pytest.raises(ValidationError):
            RegisterRequest(**self._payload(user_type="admin"))

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            RegisterRequest(**self._payload(email="not-an-email"))


class TestAuthService:
    @pytest.mark.asyncio
    async def test_register_and_authenticate(self, db):
        svc = AuthService(db)
        user = await svc.register(
            username="Siti",
            password="rahasia1",
            email="siti@example.com",
            full_name="Siti Aminah",
        )
        assert user.user_type == UserType.USER
        assert user.password_hash != "rahasia1"

        authed, token, _ = await svc.authenticate("siti", "rahasia1")
        assert authed.id == user.id
        assert authed.last_login_at is not None
        assert token

    @pytest.mark.asyncio
    async def test_usernames_unique_ignoring_case(self, db, buyer):
        with pytest.raises(ConflictException):
            await AuthService(db).register(
                username="BUYER", password="x123456", email="b@example.com", full_name="B"
            )

    @pytest.mark.asyncio
    async def test_service_area_only_for_drivers(self, db):
        svc = AuthService(db)
        user = await svc.register(
            username="plain", password="x123456", email="p@example.com",
            full_name="Plain", service_area="Kemuning",
        )
        driver = await svc.register(
            username="rider", password="x123456", email="r@example.com",
            full_name="Rider", user_type=UserType.DRIVER, service_area="Kemuning",
        )
        assert user.service_area is None
        assert driver.service_area == "Kemuning"

    @pytest.mark.asyncio
    async def test_wrong_password(self, db, buyer):
        with pytest.raises(UnauthorizedException):
            await AuthService(db).authenticate("buyer", "wrong")

    @pytest.mark.asyncio
    async def test_unknown_user(self, db):
        with pytest.raises(UnauthorizedException):
            await AuthService(db).authenticate("ghost", TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_disabled_account(self, db, make_user):
        await make_user("disabled", is_active=False)
        with pytest.raises(UnauthorizedException, match="disabled"):
            await AuthService(db).authenticate("disabled", TEST_PASSWORD)
