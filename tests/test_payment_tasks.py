"""Tests for the pending-payment reconciliation task."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from logitrack.exceptions import PaymentGatewayException
from logitrack.models.enums import GatewayPaymentStatus, OrderStatus, PaymentProvider
from logitrack.models.order import Order
from logitrack.modules.payments import tasks
from logitrack.modules.payments.providers.base import PaymentProviderBase, PaymentSession
from logitrack.modules.payments.service import PaymentService
from tests.helpers import as_actor


class _Gateway(PaymentProviderBase):
    name = PaymentProvider.MIDTRANS

    def __init__(self, status=None, error=None):
        self.status = status
        self.error = error

    async def create_payment(self, request):
        return PaymentSession(
            provider=self.name, payment_id=request.reference, payment_url="https://pay.example"
        )

    async def get_payment_status(self, payment_id):
        if self.error:
            raise self.error
        return self.status

    def parse_webhook(self, body, headers):
        return None


async def _stale_pending_order(db, listed_order, buyer):
    svc = PaymentService(db, provider=_Gateway())
    order = await svc.initiate_payment(listed_order.id, as_actor(buyer))
    await db.execute(
        update(Order)
        .where(Order.id == order.id)
        .values(updated_at=datetime.now(UTC) - timedelta(hours=2))
    )
    await db.commit()
    return order


@pytest.fixture
def task_engine():
    # Stands in for the application engine the task disposes after each run
    with patch.object(tasks, "engine", AsyncMock()) as mocked:
        yield mocked


@pytest.fixture
def task_sessions(engine, task_engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    with patch.object(tasks, "async_session", factory):
        yield factory


class TestReconcilePendingPayments:
    @pytest.mark.asyncio
    async def test_confirms_settled_payment(self, db, task_sessions, listed_order, buyer):
        order = await _stale_pending_order(db, listed_order, buyer)
        gateway = _Gateway(status=GatewayPaymentStatus.SETTLED)

        with patch("logitrack.modules.payments.service.get_provider", return_value=gateway):
            stats = await tasks._reconcile_pending_payments_async()

        assert stats == {"checked": 1, "confirmed": 1, "failed": 0, "unchanged": 0, "errors": 0}
        async with task_sessions() as session:
            stored = await session.get(Order, order.id)
            assert stored.status == OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_expired_payment(self, db, task_sessions, listed_order, buyer):
        await _stale_pending_order(db, listed_order, buyer)
        gateway = _Gateway(status=GatewayPaymentStatus.EXPIRED)

        with patch("logitrack.modules.payments.service.get_provider", return_value=gateway):
            stats = await tasks._reconcile_pending_payments_async()

        assert stats["failed"] == 1

    @pytest.mark.asyncio
    async def test_gateway_error_counted(self, db, task_sessions, listed_order, buyer):
        await _stale_pending_order(db, listed_order, buyer)
        gateway = _Gateway(error=PaymentGatewayException("down"))

        with patch("logitrack.modules.payments.service.get_provider", return_value=gateway):
            stats = await tasks._reconcile_pending_payments_async()

        assert stats["errors"] == 1
        assert stats["confirmed"] == 0

    @pytest.mark.asyncio
    async def test_nothing_stale(self, task_sessions):
        stats = await tasks._reconcile_pending_payments_async()
        assert stats["checked"] == 0

    @pytest.mark.asyncio
    async def test_engine_disposed_after_run(self, task_sessions, task_engine):
        await tasks._reconcile_pending_payments_async()
        task_engine.dispose.assert_awaited_once()


class TestCeleryTask:
    def test_runs_async_implementation(self):
        expected = {"checked": 0, "confirmed": 0, "failed": 0, "unchanged": 0, "errors": 0}
        with patch.object(
            tasks, "_reconcile_pending_payments_async", AsyncMock(return_value=expected)
        ):
            assert tasks.reconcile_pending_payments() == expected
