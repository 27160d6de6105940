"""Shipment tracking events — append-only history per order."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    NotFoundException,
)
from logitrack.models.enums import OrderStatus
from logitrack.models.order import Order
from logitrack.models.tracking_event import TrackingEvent

logger = logging.getLogger(__name__)


class TrackingService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_event(
        self,
        order_id: uuid.UUID,
        status: str,
        description: str,
        location: str | None = None,
        recorded_by: uuid.UUID | None = None,
    ) -> TrackingEvent:
        """Append an event. Runs in the caller's transaction."""
        event = TrackingEvent(
            order_id=order_id,
            status=status.value if isinstance(status, OrderStatus) else status,
            description=description,
            location=location,
            recorded_by=recorded_by,
        )
        self.db.add(event)
        await self.db.flush()
        return event

    async def list_events(self, order_id: uuid.UUID) -> list[TrackingEvent]:
        """Events for one order, newest first."""
        await self._get_order(order_id)
        result = await self.db.execute(
            select(TrackingEvent)
            .where(TrackingEvent.order_id == order_id)
            .order_by(TrackingEvent.timestamp.desc(), TrackingEvent.id)
        )
        return list(result.scalars().all())

    async def add_note(
        self,
        order_id: uuid.UUID,
        recorded_by: uuid.UUID,
        is_admin: bool,
        description: str,
        status: str = "note",
        location: str | None = None,
    ) -> TrackingEvent:
        """Manual event by an admin or a driver assigned to the order.

        Order statuses other than the current one are rejected; status
        changes go through the order lifecycle instead.
        """
        order = await self._get_order(order_id)
        if not is_admin and not order.is_driver(recorded_by):
            raise ForbiddenException("Only an admin or a driver assigned to this order can add events")

        order_statuses = {s.value for s in OrderStatus}
        if status in order_statuses and status != OrderStatus(order.status).value:
            raise BusinessRuleException(
                f"Status '{status}' must be set through the order status endpoint"
            )

        event = await self.record_event(
            order_id=order_id,
            status=status,
            description=description,
            location=location,
            recorded_by=recorded_by,
        )
        logger.info("Tracking note added to order %s by %s", order_id, recorded_by)
        return event

    async def _get_order(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order
