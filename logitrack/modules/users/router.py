"""Users and drivers API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.database.session import get_db
from logitrack.models.enums import UserType
from logitrack.modules.auth.auth import (
    AuthenticatedUser,
    get_current_user,
    require_user_type,
)
from logitrack.modules.users.schemas import DriverUpdate, UserResponse
from logitrack.modules.users.service import UserService

router = APIRouter(tags=["users"])


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    user_type: UserType | None = Query(None),
    _admin: AuthenticatedUser = Depends(require_user_type(UserType.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """List all users, optionally filtered by user type."""
    svc = UserService(db)
    users = await svc.list_users(user_type=user_type)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    _user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = UserService(db)
    return UserResponse.model_validate(await svc.get_user(user_id))


@router.get("/drivers", response_model=list[UserResponse])
async def list_drivers(
    service_area: str | None = Query(None, max_length=100),
    _user: AuthenticatedUser = Depends(
        require_user_type(UserType.ADMIN, UserType.DRIVER)
    ),
    db: AsyncSession = Depends(get_db),
):
    """List active drivers, optionally only those covering one service area."""
    svc = UserService(db)
    drivers = await svc.list_drivers(service_area=service_area)
    return [UserResponse.model_validate(d) for d in drivers]


@router.patch("/drivers/{driver_id}", response_model=UserResponse)
async def update_driver(
    driver_id: uuid.UUID,
    body: DriverUpdate,
    _admin: AuthenticatedUser = Depends(require_user_type(UserType.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Update a driver's contact details and service area."""
    svc = UserService(db)
    driver = await svc.update_driver(driver_id, **body.model_dump(exclude_unset=True))
    return UserResponse.model_validate(driver)
