"""Tests for TrackingService — event history and manual notes."""

from __future__ import annotations

import uuid

import pytest

from logitrack.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    NotFoundException,
)
from logitrack.models.enums import OrderStatus
from logitrack.modules.tracking.service import TrackingService
from tests.helpers import as_actor


@pytest.fixture
def tracking_service(db):
    return TrackingService(db)


class TestRecordEvent:
    @pytest.mark.asyncio
    async def test_accepts_enum_status(self, tracking_service, listed_order):
        event = await tracking_service.record_event(
            listed_order.id, OrderStatus.PENDING, "Relisted", location="Jakarta"
        )
        assert event.status == "pending"
        assert event.timestamp is not None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, tracking_service, paid_order):
        events = await tracking_service.list_events(paid_order.id)
        timestamps = [e.timestamp for e in events]
        assert timestamps == sorted(timestamps, reverse=True)
        assert {e.order_id for e in events} == {paid_order.id}

    @pytest.mark.asyncio
    async def test_list_for_missing_order(self, tracking_service):
        with pytest.raises(NotFoundException):
            await tracking_service.list_events(uuid.uuid4())


class TestAddNote:
    @pytest.mark.asyncio
    async def test_admin_note(self, tracking_service, listed_order, admin):
        event = await tracking_service.add_note(
            listed_order.id, admin.id, is_admin=True, description="Seller contacted"
        )
        assert event.status == "note"
        assert event.recorded_by == admin.id

    @pytest.mark.asyncio
    async def test_assigned_driver_note(self, tracking_service, order_service, paid_order, driver):
        await order_service.assign_pickup_driver(paid_order.id, as_actor(driver))
        event = await tracking_service.add_note(
            paid_order.id,
            driver.id,
            is_admin=False,
            description="Traffic on Jl. Sudirman",
            status="delayed",
            location="Palembang",
        )
        assert event.status == "delayed"

    @pytest.mark.asyncio
    async def test_unassigned_driver_forbidden(self, tracking_service, paid_order, other_driver):
        with pytest.raises(ForbiddenException):
            await tracking_service.add_note(
                paid_order.id, other_driver.id, is_admin=False, description="Hi"
            )

    @pytest.mark.asyncio
    async def test_order_status_must_go_through_lifecycle(self, tracking_service, paid_order, admin):
        with pytest.raises(BusinessRuleException):
            await tracking_service.add_note(
                paid_order.id, admin.id, is_admin=True, description="Done", status="delivered"
            )

    @pytest.mark.asyncio
    async def test_current_status_allowed(self, tracking_service, paid_order, admin):
        event = await tracking_service.add_note(
            paid_order.id, admin.id, is_admin=True, description="Still paid", status="paid"
        )
        assert event.status == "paid"
