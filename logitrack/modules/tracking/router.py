"""Tracking API router — shipment history by order."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.database.session import get_db
from logitrack.models.enums import UserType
from logitrack.modules.auth.auth import AuthenticatedUser, require_user_type
from logitrack.modules.tracking.schemas import TrackingEventCreate, TrackingEventResponse
from logitrack.modules.tracking.service import TrackingService

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.get("/{order_id}", response_model=list[TrackingEventResponse])
async def list_tracking_events(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Public shipment tracking: every event for the order, newest first."""
    svc = TrackingService(db)
    events = await svc.list_events(order_id)
    return [TrackingEventResponse.model_validate(e) for e in events]


@router.post("", response_model=TrackingEventResponse, status_code=201)
async def create_tracking_event(
    body: TrackingEventCreate,
    user: AuthenticatedUser = Depends(
        require_user_type(UserType.ADMIN, UserType.DRIVER)
    ),
    db: AsyncSession = Depends(get_db),
):
    svc = TrackingService(db)
    event = await svc.add_note(
        order_id=body.order_id,
        recorded_by=user.id,
        is_admin=user.is_admin,
        description=body.description,
        status=body.status,
        location=body.location,
    )
    return TrackingEventResponse.model_validate(event)
