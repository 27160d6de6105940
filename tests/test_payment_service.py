"""Tests for PaymentService — checkout, status polling, webhooks, reconciliation."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from logitrack.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    InvalidWebhookException,
    NotFoundException,
    PaymentGatewayException,
)
from logitrack.models.enums import (
    GatewayPaymentStatus,
    OrderStatus,
    PaymentProvider,
    PaymentStatus,
    ProductStatus,
    ShippingPaidBy,
)
from logitrack.models.order import Order
from logitrack.modules.orders.constants import EVENT_PAYMENT_FAILED
from logitrack.modules.payments.providers.base import (
    PaymentProviderBase,
    PaymentRequest,
    PaymentSession,
    WebhookNotification,
)
from logitrack.modules.payments.service import (
    OUTCOME_CONFIRMED,
    OUTCOME_FAILED,
    OUTCOME_IGNORED,
    OUTCOME_PENDING,
    OUTCOME_UNCHANGED,
    PaymentService,
    payment_amount,
    payment_items,
)
from tests.helpers import as_actor


class FakeProvider(PaymentProviderBase):
    name = PaymentProvider.MIDTRANS

    def __init__(self):
        self.requests: list[PaymentRequest] = []
        self.status = GatewayPaymentStatus.PENDING
        self.fail_create = False
        self.notification: WebhookNotification | None = None

    async def create_payment(self, request: PaymentRequest) -> PaymentSession:
        self.requests.append(request)
        if self.fail_create:
            raise PaymentGatewayException("Gateway unavailable")
        return PaymentSession(
            provider=self.name,
            payment_id=request.reference,
            payment_url=f"https://pay.example/{request.reference}",
        )

    async def get_payment_status(self, payment_id: str) -> GatewayPaymentStatus:
        return self.status

    def parse_webhook(self, body, headers):
        return self.notification


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def payment_service(db, provider):
    return PaymentService(db, provider=provider)


def _notification(payment_id: str, status: GatewayPaymentStatus) -> WebhookNotification:
    return WebhookNotification(
        provider=PaymentProvider.MIDTRANS,
        reference=payment_id,
        payment_id=payment_id,
        status=status,
    )


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


class TestAmounts:
    @pytest.mark.asyncio
    async def test_buyer_pays_shipping(self, product):
        # Category B ships for 20.000
        assert payment_amount(product) == Decimal("170000")
        items = payment_items(product)
        assert [i.price for i in items] == [150000, 20000]
        assert items[1].id == "SHIPPING"

    @pytest.mark.asyncio
    async def test_seller_pays_shipping(self, make_product, seller):
        product = await make_product(seller, shipping_paid_by=ShippingPaidBy.SELLER)
        assert payment_amount(product) == Decimal("150000")
        assert len(payment_items(product)) == 1


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class TestInitiatePayment:
    @pytest.mark.asyncio
    async def test_buyer_claims_listing_and_pays(self, payment_service, provider, listed_order, buyer):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))

        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.payment_status == PaymentStatus.PENDING
        assert order.buyer_id == buyer.id
        assert order.payment_id == order.transaction_id
        assert order.payment_link == f"https://pay.example/{order.transaction_id}"
        assert order.payment_amount == Decimal("170000")
        assert order.payment_provider == "midtrans"

        request = provider.requests[0]
        assert request.amount == 170000
        assert request.customer.email == buyer.email
        assert request.success_url.endswith(f"/order-success?id={order.id}")

    @pytest.mark.asyncio
    async def test_retry_uses_fresh_reference(self, payment_service, provider, listed_order, buyer):
        first = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        first_id = first.payment_id
        await payment_service.orders.fail_payment(first, PaymentStatus.EXPIRED)

        second = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        assert second.payment_id != first_id
        assert second.payment_id.startswith(f"{second.transaction_id}-")
        assert second.status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_other_buyer_forbidden(self, payment_service, listed_order, buyer, make_user):
        await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        intruder = await make_user("intruder")
        with pytest.raises(ForbiddenException):
            await payment_service.initiate_payment(listed_order.id, as_actor(intruder))

    @pytest.mark.asyncio
    async def test_paid_order_cannot_be_paid_again(self, payment_service, paid_order, buyer):
        with pytest.raises(BusinessRuleException):
            await payment_service.initiate_payment(paid_order.id, as_actor(buyer))

    @pytest.mark.asyncio
    async def test_gateway_failure_is_recorded(self, payment_service, provider, listed_order, buyer):
        provider.fail_create = True
        with pytest.raises(PaymentGatewayException):
            await payment_service.initiate_payment(listed_order.id, as_actor(buyer))

        order = await payment_service.orders.get_order(listed_order.id)
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.FAILED
        events = await payment_service.orders.tracking.list_events(order.id)
        assert EVENT_PAYMENT_FAILED in {e.status for e in events}


# ---------------------------------------------------------------------------
# Applying gateway status
# ---------------------------------------------------------------------------


class TestCheckPaymentStatus:
    @pytest.mark.asyncio
    async def test_settled_confirms_order(self, payment_service, provider, listed_order, buyer, product):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        provider.status = GatewayPaymentStatus.SETTLED

        order, status, outcome = await payment_service.check_payment_status(
            order.payment_id, as_actor(buyer)
        )

        assert status == GatewayPaymentStatus.SETTLED
        assert outcome == OUTCOME_CONFIRMED
        assert order.status == OrderStatus.PAID
        assert order.payment_status == PaymentStatus.PAID
        refreshed = await payment_service.orders.products.get_product(product.id)
        assert refreshed.product_status == ProductStatus.PAID

    @pytest.mark.asyncio
    async def test_pending_leaves_order(self, payment_service, listed_order, buyer):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        _, _, outcome = await payment_service.check_payment_status(order.transaction_id)
        assert outcome == OUTCOME_PENDING
        assert order.status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_expired(self, payment_service, provider, listed_order, buyer):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        provider.status = GatewayPaymentStatus.EXPIRED

        order, _, outcome = await payment_service.check_payment_status(order.payment_id)
        assert outcome == OUTCOME_FAILED
        assert order.status == OrderStatus.PAYMENT_FAILED
        assert order.payment_status == PaymentStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_unknown_payment(self, payment_service):
        with pytest.raises(NotFoundException):
            await payment_service.check_payment_status("missing")

    @pytest.mark.asyncio
    async def test_no_payment_started(self, payment_service, listed_order):
        with pytest.raises(BusinessRuleException):
            await payment_service.check_payment_status(listed_order.transaction_id)

    @pytest.mark.asyncio
    async def test_stranger_forbidden(self, payment_service, listed_order, buyer, make_user):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        stranger = await make_user("curious")
        with pytest.raises(ForbiddenException):
            await payment_service.check_payment_status(order.payment_id, as_actor(stranger))

    @pytest.mark.asyncio
    async def test_late_failure_after_paid_is_unchanged(self, payment_service, paid_order):
        outcome = await payment_service.apply_gateway_status(
            paid_order, GatewayPaymentStatus.FAILED
        )
        assert outcome == OUTCOME_UNCHANGED
        assert paid_order.status == OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_paid_for_cancelled_order_is_ignored(self, payment_service, listed_order, seller):
        order = await payment_service.orders.cancel(listed_order.id, as_actor(seller), "withdrawn")
        outcome = await payment_service.apply_gateway_status(order, GatewayPaymentStatus.PAID)
        assert outcome == OUTCOME_IGNORED
        assert order.status == OrderStatus.CANCELLED


class TestHandleWebhook:
    @pytest.mark.asyncio
    async def test_paid_notification(self, payment_service, provider, listed_order, buyer):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        provider.notification = _notification(order.payment_id, GatewayPaymentStatus.PAID)

        order, outcome = await payment_service.handle_webhook("midtrans", {}, {})
        assert outcome == OUTCOME_CONFIRMED
        assert order.status == OrderStatus.PAID

        # Gateways redeliver; the second delivery is a no-op
        order, outcome = await payment_service.handle_webhook("midtrans", {}, {})
        assert outcome == OUTCOME_UNCHANGED
        events = await payment_service.orders.tracking.list_events(order.id)
        assert [e.status for e in events].count("paid") == 1

    @pytest.mark.asyncio
    async def test_falls_back_to_reference(self, payment_service, provider, listed_order, buyer):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        provider.notification = WebhookNotification(
            provider=PaymentProvider.XENDIT,
            reference=order.transaction_id,
            payment_id="inv_unknown",
            status=GatewayPaymentStatus.PAID,
        )
        found, outcome = await payment_service.handle_webhook("xendit", {}, {})
        assert found.id == order.id
        assert outcome == OUTCOME_CONFIRMED
        assert found.payment_id == "inv_unknown"

    @pytest.mark.asyncio
    async def test_expiry_of_superseded_attempt_does_not_block_retry(
        self, payment_service, provider, listed_order, buyer
    ):
        first = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        first_attempt = first.payment_id
        second = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        second_attempt = second.payment_id
        assert second_attempt != first_attempt

        # The abandoned first checkout expires after the buyer reopened it
        provider.notification = _notification(first_attempt, GatewayPaymentStatus.EXPIRED)
        order, outcome = await payment_service.handle_webhook("midtrans", {}, {})
        assert outcome == OUTCOME_UNCHANGED
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.payment_status == PaymentStatus.PENDING

        provider.notification = _notification(second_attempt, GatewayPaymentStatus.PAID)
        order, outcome = await payment_service.handle_webhook("midtrans", {}, {})
        assert outcome == OUTCOME_CONFIRMED
        assert order.status == OrderStatus.PAID
        assert order.payment_status == PaymentStatus.PAID

    @pytest.mark.asyncio
    async def test_late_settlement_after_expiry_confirms(
        self, payment_service, provider, listed_order, buyer
    ):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        attempt = order.payment_id

        provider.notification = _notification(attempt, GatewayPaymentStatus.EXPIRED)
        order, outcome = await payment_service.handle_webhook("midtrans", {}, {})
        assert outcome == OUTCOME_FAILED
        assert order.status == OrderStatus.PAYMENT_FAILED

        provider.notification = _notification(attempt, GatewayPaymentStatus.SETTLED)
        order, outcome = await payment_service.handle_webhook("midtrans", {}, {})
        assert outcome == OUTCOME_CONFIRMED
        assert order.status == OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_superseded_retry_attempt_resolves_to_order(
        self, payment_service, provider, listed_order, buyer
    ):
        await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        older_retry = order.payment_id
        order.payment_id = f"{order.transaction_id}-246060"
        await payment_service.db.flush()

        provider.notification = _notification(older_retry, GatewayPaymentStatus.FAILED)
        found, outcome = await payment_service.handle_webhook("midtrans", {}, {})
        assert found.id == order.id
        assert outcome == OUTCOME_UNCHANGED
        assert found.status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_invalid_notification(self, payment_service):
        with pytest.raises(InvalidWebhookException):
            await payment_service.handle_webhook("midtrans", {}, {})

    @pytest.mark.asyncio
    async def test_unknown_order(self, payment_service, provider):
        provider.notification = _notification("2000_0101_ZZZZZZ", GatewayPaymentStatus.PAID)
        with pytest.raises(NotFoundException):
            await payment_service.handle_webhook("midtrans", {}, {})


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


class TestReconciliation:
    @pytest.mark.asyncio
    async def test_stale_pending_orders(self, db, payment_service, listed_order, buyer):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        assert await payment_service.stale_pending_order_ids(300, 10) == []

        await db.execute(
            update(Order)
            .where(Order.id == order.id)
            .values(updated_at=datetime.now(UTC) - timedelta(hours=1))
        )
        assert await payment_service.stale_pending_order_ids(300, 10) == [order.id]

    @pytest.mark.asyncio
    async def test_reconcile_confirms(self, payment_service, provider, listed_order, buyer):
        order = await payment_service.initiate_payment(listed_order.id, as_actor(buyer))
        provider.status = GatewayPaymentStatus.PAID

        assert await payment_service.reconcile_order(order.id) == OUTCOME_CONFIRMED
        assert await payment_service.reconcile_order(order.id) == OUTCOME_UNCHANGED
