"""Payment orchestration — checkout sessions, status checks and webhooks."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.config import settings
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
    PaymentStatus,
    ShippingPaidBy,
)
from logitrack.models.order import Order
from logitrack.models.product import Product
from logitrack.modules.auth.auth import AuthenticatedUser
from logitrack.modules.orders.constants import PAYABLE_STATUSES
from logitrack.modules.orders.service import OrderService
from logitrack.modules.payments.constants import (
    PAID_STATUSES,
    SHIPPING_ITEM_ID,
    SHIPPING_ITEM_NAME,
    to_idr_units,
)
from logitrack.modules.payments.providers.base import (
    PaymentCustomer,
    PaymentItem,
    PaymentProviderBase,
    PaymentRequest,
)
from logitrack.modules.payments.providers.factory import get_provider

logger = logging.getLogger(__name__)

# Outcomes of applying a gateway status to an order
OUTCOME_CONFIRMED = "confirmed"
OUTCOME_FAILED = "failed"
OUTCOME_PENDING = "pending"
OUTCOME_UNCHANGED = "unchanged"
OUTCOME_IGNORED = "ignored"


def payment_amount(product: Product) -> Decimal:
    """Product price plus shipping, unless the seller covers shipping."""
    if ShippingPaidBy(product.shipping_paid_by) == ShippingPaidBy.SELLER:
        return Decimal(product.price)
    return Decimal(product.price) + Decimal(product.shipping_price)


def payment_items(product: Product) -> list[PaymentItem]:
    items = [
        PaymentItem(
            id=f"PROD-{product.id}",
            name=product.name,
            price=to_idr_units(product.price),
        )
    ]
    if ShippingPaidBy(product.shipping_paid_by) != ShippingPaidBy.SELLER:
        items.append(
            PaymentItem(
                id=SHIPPING_ITEM_ID,
                name=SHIPPING_ITEM_NAME,
                price=to_idr_units(product.shipping_price),
            )
        )
    return items


class PaymentService:
    def __init__(self, db: AsyncSession, provider: PaymentProviderBase | None = None):
        self.db = db
        self.orders = OrderService(db)
        self._provider = provider

    def _provider_for(self, name: str | None = None) -> PaymentProviderBase:
        if self._provider is not None:
            return self._provider
        return get_provider(name or settings.payment_provider)

    @staticmethod
    def _charge_reference(order: Order) -> str:
        """Gateway-side id for a new charge; retries need a fresh one."""
        if order.payment_id is None:
            return order.transaction_id
        return f"{order.transaction_id}-{datetime.now(UTC):%H%M%S}"

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def initiate_payment(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        customer_name: str | None = None,
        customer_email: str | None = None,
        phone_number: str | None = None,
        delivery_address: str | None = None,
        delivery_city: str | None = None,
        delivery_postal_code: str | None = None,
    ) -> Order:
        """Open a hosted payment page for the caller as buyer."""
        order = await self.orders.get_order_for_update(order_id)
        if order.status not in PAYABLE_STATUSES:
            raise BusinessRuleException(
                f"Order in status '{OrderStatus(order.status).value}' cannot be paid"
            )
        if order.buyer_id is not None and order.buyer_id != actor.id:
            raise ForbiddenException("Only the buyer can pay for this order")

        buyer = await self.orders.users.get_user(actor.id)
        product = await self.orders.products.get_product(order.product_id)
        amount = payment_amount(product)
        provider = self._provider_for()

        request = PaymentRequest(
            reference=self._charge_reference(order),
            amount=to_idr_units(amount),
            description=f"Payment for {product.name}",
            customer=PaymentCustomer(
                name=customer_name or buyer.full_name or buyer.username,
                email=customer_email or buyer.email,
                phone=phone_number or buyer.phone_number,
            ),
            items=payment_items(product),
            success_url=f"{settings.public_base_url}/order-success?id={order.id}",
            failure_url=f"{settings.public_base_url}/order-failed?id={order.id}",
        )

        try:
            session = await provider.create_payment(request)
        except PaymentGatewayException as exc:
            await self.orders.record_gateway_failure(order, exc.message)
            # Keep the failure on record even though the request errors out
            await self.db.commit()
            raise

        return await self.orders.start_payment(
            order,
            buyer,
            payment_id=session.payment_id,
            payment_link=session.payment_url,
            provider=session.provider.value,
            amount=amount,
            delivery_address=delivery_address,
            delivery_city=delivery_city,
            delivery_postal_code=delivery_postal_code,
        )

    # ------------------------------------------------------------------
    # Applying gateway results
    # ------------------------------------------------------------------

    async def apply_gateway_status(
        self,
        order: Order,
        status: GatewayPaymentStatus,
        payment_id: str | None = None,
    ) -> str:
        """Move a locked order according to the gateway's view of its payment.

        ``payment_id`` names the attempt the status belongs to. Failures of
        an attempt that has since been superseded by a retry are ignored;
        a settlement of any attempt still confirms the order.
        """
        status = GatewayPaymentStatus(status)
        stale_attempt = (
            payment_id is not None
            and order.payment_id is not None
            and payment_id != order.payment_id
        )
        if stale_attempt and status not in PAID_STATUSES:
            logger.info(
                "Order %s: %s for superseded payment %s (current %s); no change",
                order.id, status.value, payment_id, order.payment_id,
            )
            return OUTCOME_UNCHANGED
        try:
            if status in PAID_STATUSES:
                changed = await self.orders.confirm_payment(order, payment_id)
                return OUTCOME_CONFIRMED if changed else OUTCOME_UNCHANGED
            if status in (GatewayPaymentStatus.EXPIRED, GatewayPaymentStatus.FAILED):
                failure = (
                    PaymentStatus.EXPIRED
                    if status == GatewayPaymentStatus.EXPIRED
                    else PaymentStatus.FAILED
                )
                changed = await self.orders.fail_payment(order, failure)
                return OUTCOME_FAILED if changed else OUTCOME_UNCHANGED
        except BusinessRuleException as exc:
            logger.warning(
                "Ignoring %s payment status for order %s: %s",
                status.value, order.id, exc.message,
            )
            return OUTCOME_IGNORED

        if status == GatewayPaymentStatus.PENDING:
            return OUTCOME_PENDING
        logger.info("Order %s payment reported %s; no change", order.id, status.value)
        return OUTCOME_UNCHANGED

    async def check_payment_status(
        self, payment_id: str, actor: AuthenticatedUser | None = None
    ) -> tuple[Order, GatewayPaymentStatus, str]:
        """Ask the gateway for a payment's status and apply it."""
        order = await self.orders.find_by_payment_reference(payment_id)
        if order is None:
            raise NotFoundException(f"No order for payment {payment_id}")
        if actor is not None and not actor.is_admin and not order.is_party(actor.id):
            raise ForbiddenException("You do not have access to this payment")
        if order.payment_id is None:
            raise BusinessRuleException("No payment has been started for this order")

        provider = self._provider_for(order.payment_provider)
        status = await provider.get_payment_status(order.payment_id)
        outcome = await self.apply_gateway_status(order, status, order.payment_id)
        return order, status, outcome

    async def handle_webhook(
        self, provider_name: str, body: dict, headers: dict[str, str]
    ) -> tuple[Order, str]:
        provider = self._provider_for(provider_name)
        notification = provider.parse_webhook(body, headers)
        if notification is None:
            raise InvalidWebhookException(f"Invalid {provider_name} notification")

        order = await self.orders.find_by_payment_reference(notification.payment_id)
        if order is None and notification.reference != notification.payment_id:
            order = await self.orders.find_by_payment_reference(notification.reference)
        if order is None:
            raise NotFoundException(f"No order for payment {notification.reference}")

        outcome = await self.apply_gateway_status(
            order, notification.status, notification.payment_id
        )
        logger.info(
            "%s webhook for order %s: %s -> %s",
            provider_name, order.id, notification.status.value, outcome,
        )
        return order, outcome

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def stale_pending_order_ids(
        self, older_than_seconds: int, limit: int
    ) -> list[uuid.UUID]:
        cutoff = datetime.now(UTC) - timedelta(seconds=older_than_seconds)
        result = await self.db.execute(
            select(Order.id)
            .where(
                Order.status == OrderStatus.PENDING_PAYMENT,
                Order.payment_id.is_not(None),
                Order.updated_at < cutoff,
            )
            .order_by(Order.updated_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def reconcile_order(self, order_id: uuid.UUID) -> str:
        order = await self.orders.get_order_for_update(order_id)
        if order.status != OrderStatus.PENDING_PAYMENT or order.payment_id is None:
            return OUTCOME_UNCHANGED
        provider = self._provider_for(order.payment_provider)
        status = await provider.get_payment_status(order.payment_id)
        return await self.apply_gateway_status(order, status, order.payment_id)
