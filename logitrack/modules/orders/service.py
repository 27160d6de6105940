"""Order lifecycle service — listing, purchase, payment, driver legs, warehouse.

Every status change validates against ``ORDER_TRANSITIONS``, reads the order
row ``FOR UPDATE`` and writes exactly one tracking event through the same
session, so the order update and its event commit together.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from logitrack.exceptions import (
    BusinessRuleException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from logitrack.models.enums import OrderStatus, PaymentStatus, UserType
from logitrack.models.order import Order
from logitrack.models.user import User
from logitrack.modules.auth.auth import AuthenticatedUser
from logitrack.modules.orders.constants import (
    DEFAULT_DESCRIPTIONS,
    DETAILS_EDITABLE_STATUSES,
    DRIVER_FLOW_STATUSES,
    EVENT_PAYMENT_EXPIRED,
    EVENT_PAYMENT_FAILED,
    EVENT_PAYMENT_INITIATED,
    EVENT_WAREHOUSE_ASSIGNED,
    ORDER_TERMINAL_STATUSES,
    ORDER_TRANSITIONS,
    PAYABLE_STATUSES,
    TRANSACTION_ID_ALPHABET,
    TRANSACTION_ID_SUFFIX_LENGTH,
    WAREHOUSE_ASSIGNABLE_STATUSES,
)
from logitrack.modules.payments.constants import format_idr
from logitrack.modules.products.service import ProductService
from logitrack.modules.tracking.service import TrackingService
from logitrack.modules.users.service import UserService
from logitrack.modules.warehouses.service import WarehouseService

logger = logging.getLogger(__name__)

_MAX_TRANSACTION_ID_ATTEMPTS = 5


def generate_transaction_id(now: datetime | None = None) -> str:
    """``YYYY_MMDD_XXXXXX`` with six random upper-case alphanumerics."""
    now = now or datetime.now(UTC)
    suffix = "".join(
        secrets.choice(TRANSACTION_ID_ALPHABET)
        for _ in range(TRANSACTION_ID_SUFFIX_LENGTH)
    )
    return f"{now:%Y}_{now:%m%d}_{suffix}"


def validate_transition(current: OrderStatus, target: OrderStatus) -> None:
    """Raise BusinessRuleException unless current -> target is allowed."""
    current = OrderStatus(current)
    target = OrderStatus(target)
    if current in ORDER_TERMINAL_STATUSES:
        raise BusinessRuleException(
            f"Order is in terminal status '{current.value}'"
        )
    allowed = ORDER_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise BusinessRuleException(
            f"Cannot transition order from '{current.value}' to '{target.value}'. "
            f"Allowed: {sorted(s.value for s in allowed)}"
        )


class OrderService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.tracking = TrackingService(db)
        self.products = ProductService(db)
        self.users = UserService(db)
        self.warehouses = WarehouseService(db)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _detail_query(self):
        return select(Order).options(
            joinedload(Order.product),
            joinedload(Order.seller),
            joinedload(Order.buyer),
            joinedload(Order.pickup_driver),
            joinedload(Order.delivery_driver),
            joinedload(Order.warehouse),
        ).execution_options(populate_existing=True)

    async def get_order(self, order_id: uuid.UUID) -> Order:
        """Order with product, parties, drivers and warehouse loaded."""
        result = await self.db.execute(self._detail_query().where(Order.id == order_id))
        order = result.unique().scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    async def get_by_transaction_id(self, transaction_id: str) -> Order:
        result = await self.db.execute(
            self._detail_query().where(Order.transaction_id == transaction_id)
        )
        order = result.unique().scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order with transaction id {transaction_id} not found")
        return order

    async def get_order_for_update(self, order_id: uuid.UUID) -> Order:
        """Read and lock the order row for the rest of the transaction."""
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    async def find_by_payment_reference(self, reference: str) -> Order | None:
        """Locked lookup by gateway payment id or by transaction id.

        Retried checkouts use ``<transaction_id>-HHMMSS`` as the gateway
        reference, so a superseded attempt still resolves to its order.
        """
        conditions = [Order.payment_id == reference, Order.transaction_id == reference]
        base, sep, suffix = reference.rpartition("-")
        if sep and len(suffix) == 6 and suffix.isdigit():
            conditions.append(Order.transaction_id == base)
        result = await self.db.execute(
            select(Order)
            .where(or_(*conditions))
            .order_by(Order.created_at.desc())
            .limit(1)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    def ensure_visible(order: Order, actor: AuthenticatedUser) -> None:
        """Admins and drivers see every order; parties see their own.

        Unsold listings are visible to any signed-in user so they can buy them.
        """
        if actor.is_admin or actor.is_driver or order.is_party(actor.id):
            return
        if order.status == OrderStatus.PENDING and order.buyer_id is None:
            return
        raise ForbiddenException("You do not have access to this order")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_orders(self, status: OrderStatus | None = None) -> list[Order]:
        query = self._detail_query()
        if status is not None:
            query = query.where(Order.status == status)
        result = await self.db.execute(query.order_by(Order.created_at.desc()))
        return list(result.unique().scalars().all())

    async def list_user_orders(self, user_id: uuid.UUID) -> list[Order]:
        """Orders where the user is the seller or the buyer."""
        result = await self.db.execute(
            self._detail_query()
            .where(or_(Order.seller_id == user_id, Order.buyer_id == user_id))
            .order_by(Order.created_at.desc())
        )
        return list(result.unique().scalars().all())

    async def list_available_orders(self) -> list[Order]:
        """Legs a driver can claim: paid without pickup, stored without delivery."""
        result = await self.db.execute(
            self._detail_query()
            .where(
                or_(
                    (Order.status == OrderStatus.PAID)
                    & Order.pickup_driver_id.is_(None),
                    (Order.status == OrderStatus.IN_WAREHOUSE)
                    & Order.delivery_driver_id.is_(None),
                )
            )
            .order_by(Order.created_at)
        )
        return list(result.unique().scalars().all())

    async def list_driver_orders(self, driver_id: uuid.UUID) -> list[Order]:
        result = await self.db.execute(
            self._detail_query()
            .where(
                or_(
                    Order.pickup_driver_id == driver_id,
                    Order.delivery_driver_id == driver_id,
                )
            )
            .order_by(Order.updated_at.desc())
        )
        return list(result.unique().scalars().all())

    # ------------------------------------------------------------------
    # Transition helper
    # ------------------------------------------------------------------

    async def _transition(
        self,
        order: Order,
        new_status: OrderStatus,
        actor_id: uuid.UUID | None,
        description: str | None = None,
        location: str | None = None,
    ) -> Order:
        validate_transition(order.status, new_status)
        old_status = OrderStatus(order.status)
        order.status = new_status
        await self.db.flush()

        await self.tracking.record_event(
            order_id=order.id,
            status=new_status.value,
            description=description or DEFAULT_DESCRIPTIONS[new_status],
            location=location,
            recorded_by=actor_id,
        )
        logger.info(
            "Order %s moved %s -> %s", order.id, old_status.value, new_status.value
        )
        return order

    # ------------------------------------------------------------------
    # Listing and purchase
    # ------------------------------------------------------------------

    async def _new_transaction_id(self) -> str:
        for _ in range(_MAX_TRANSACTION_ID_ATTEMPTS):
            candidate = generate_transaction_id()
            exists = await self.db.execute(
                select(Order.id).where(Order.transaction_id == candidate)
            )
            if exists.scalar_one_or_none() is None:
                return candidate
        raise ConflictException("Could not allocate a unique transaction id")

    async def create_order(self, product_id: uuid.UUID, actor: AuthenticatedUser) -> Order:
        """Open the listing order for one of the caller's products."""
        product = await self.products.get_product(product_id)
        if product.user_id != actor.id and not actor.is_admin:
            raise ForbiddenException("Only the seller can list this product")

        active = await self.db.execute(
            select(Order.id).where(
                Order.product_id == product_id,
                Order.status.not_in(list(ORDER_TERMINAL_STATUSES)),
            )
        )
        if active.first() is not None:
            raise ConflictException(f"Product {product_id} already has an active order")

        order = Order(
            transaction_id=await self._new_transaction_id(),
            product_id=product.id,
            seller_id=product.user_id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.UNPAID,
        )
        self.db.add(order)
        await self.db.flush()

        await self.tracking.record_event(
            order_id=order.id,
            status=OrderStatus.PENDING.value,
            description=DEFAULT_DESCRIPTIONS[OrderStatus.PENDING],
            location=product.city,
            recorded_by=actor.id,
        )
        logger.info("Order %s (%s) created for product %s", order.id, order.transaction_id, product.id)
        return order

    async def _attach_buyer(
        self,
        order: Order,
        buyer: User,
        delivery_address: str | None = None,
        delivery_city: str | None = None,
        delivery_postal_code: str | None = None,
    ) -> None:
        if order.buyer_id is not None and order.buyer_id != buyer.id:
            raise ConflictException("This order has already been purchased")
        if order.seller_id == buyer.id:
            raise BusinessRuleException("Sellers cannot buy their own listing")

        order.buyer_id = buyer.id
        order.delivery_address = delivery_address or order.delivery_address or buyer.address
        order.delivery_city = delivery_city or order.delivery_city or buyer.city
        order.delivery_postal_code = (
            delivery_postal_code or order.delivery_postal_code or buyer.postal_code
        )

    async def purchase(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        delivery_address: str | None = None,
        delivery_city: str | None = None,
        delivery_postal_code: str | None = None,
    ) -> Order:
        """Claim a pending listing as buyer. Defaults delivery to the buyer's profile."""
        order = await self.get_order_for_update(order_id)
        if order.status != OrderStatus.PENDING or order.buyer_id is not None:
            raise ConflictException("This order is no longer available for purchase")

        buyer = await self.users.get_user(actor.id)
        await self._attach_buyer(
            order, buyer, delivery_address, delivery_city, delivery_postal_code
        )
        return await self._transition(
            order,
            OrderStatus.PENDING_PAYMENT,
            actor_id=actor.id,
            location=order.delivery_city,
        )

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    async def start_payment(
        self,
        order: Order,
        buyer: User,
        payment_id: str,
        payment_link: str | None,
        provider: str,
        amount: Decimal,
        delivery_address: str | None = None,
        delivery_city: str | None = None,
        delivery_postal_code: str | None = None,
    ) -> Order:
        """Record a gateway payment session on a locked order."""
        if order.status not in PAYABLE_STATUSES:
            raise BusinessRuleException(
                f"Cannot start a payment for an order in status '{OrderStatus(order.status).value}'"
            )
        await self._attach_buyer(
            order, buyer, delivery_address, delivery_city, delivery_postal_code
        )

        order.payment_id = payment_id
        order.payment_link = payment_link
        order.payment_provider = provider
        order.payment_amount = amount
        order.payment_status = PaymentStatus.PENDING
        if order.status != OrderStatus.PENDING_PAYMENT:
            validate_transition(order.status, OrderStatus.PENDING_PAYMENT)
            order.status = OrderStatus.PENDING_PAYMENT
        await self.db.flush()

        await self.tracking.record_event(
            order_id=order.id,
            status=EVENT_PAYMENT_INITIATED,
            description=f"Payment of {format_idr(amount)} initiated via {provider}",
            recorded_by=buyer.id,
        )
        logger.info("Payment %s started for order %s via %s", payment_id, order.id, provider)
        return order

    async def confirm_payment(self, order: Order, payment_id: str | None = None) -> bool:
        """Mark a locked order as paid. Returns False when it already was."""
        if order.payment_status == PaymentStatus.PAID:
            return False
        validate_transition(order.status, OrderStatus.PAID)

        if payment_id:
            order.payment_id = payment_id
        order.payment_status = PaymentStatus.PAID
        order.paid_at = datetime.now(UTC)
        await self._transition(order, OrderStatus.PAID, actor_id=None)
        await self.products.mark_paid(order.product_id)
        return True

    async def fail_payment(self, order: Order, payment_status: PaymentStatus) -> bool:
        """Record an expired or failed payment. Paid orders are left untouched."""
        payment_status = PaymentStatus(payment_status)
        if payment_status not in (PaymentStatus.EXPIRED, PaymentStatus.FAILED):
            raise ValueError(f"Not a failure status: {payment_status.value}")
        if order.payment_status == PaymentStatus.PAID:
            return False
        if order.status == OrderStatus.PAYMENT_FAILED and order.payment_status == payment_status:
            return False

        validate_transition(order.status, OrderStatus.PAYMENT_FAILED)
        order.status = OrderStatus.PAYMENT_FAILED
        order.payment_status = payment_status
        await self.db.flush()

        expired = payment_status == PaymentStatus.EXPIRED
        await self.tracking.record_event(
            order_id=order.id,
            status=EVENT_PAYMENT_EXPIRED if expired else EVENT_PAYMENT_FAILED,
            description="Payment expired" if expired else "Payment failed",
        )
        logger.info("Order %s payment %s", order.id, payment_status.value)
        return True

    async def record_gateway_failure(self, order: Order, reason: str) -> None:
        """The gateway refused to start a payment for a locked order."""
        if order.status == OrderStatus.PENDING_PAYMENT:
            validate_transition(order.status, OrderStatus.PAYMENT_FAILED)
            order.status = OrderStatus.PAYMENT_FAILED
        order.payment_status = PaymentStatus.FAILED
        await self.db.flush()

        await self.tracking.record_event(
            order_id=order.id,
            status=EVENT_PAYMENT_FAILED,
            description=f"Payment could not be started: {reason}",
        )
        logger.warning("Payment for order %s could not be started: %s", order.id, reason)

    # ------------------------------------------------------------------
    # Driver legs
    # ------------------------------------------------------------------

    async def _resolve_driver(
        self, actor: AuthenticatedUser, driver_id: uuid.UUID | None
    ) -> User:
        """Drivers may only assign themselves; admins may assign any driver."""
        if actor.is_driver:
            if driver_id is not None and driver_id != actor.id:
                raise ForbiddenException("Drivers can only assign themselves")
            driver_id = actor.id
        elif not actor.is_admin:
            raise ForbiddenException("Only drivers and admins can assign drivers")
        elif driver_id is None:
            raise BusinessRuleException("driver_id is required")
        return await self.users.get_driver(driver_id)

    @staticmethod
    def _require_leg_driver(
        actor: AuthenticatedUser, assigned_driver_id: uuid.UUID | None, leg: str
    ) -> None:
        if actor.is_admin:
            return
        if assigned_driver_id is None or assigned_driver_id != actor.id:
            raise ForbiddenException(f"Only the assigned {leg} driver or an admin can do this")

    async def assign_pickup_driver(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        driver_id: uuid.UUID | None = None,
        description: str | None = None,
        location: str | None = None,
    ) -> Order:
        order = await self.get_order_for_update(order_id)
        if order.pickup_driver_id is not None:
            raise ConflictException("A pickup driver is already assigned to this order")
        if order.status != OrderStatus.PAID or order.payment_status != PaymentStatus.PAID:
            raise BusinessRuleException("Order must be paid before a pickup driver is assigned")

        driver = await self._resolve_driver(actor, driver_id)
        order.pickup_driver_id = driver.id
        if description is None:
            description = f"{DEFAULT_DESCRIPTIONS[OrderStatus.PICKUP_ASSIGNED]}: {driver.full_name}"
        return await self._transition(
            order, OrderStatus.PICKUP_ASSIGNED, actor.id, description, location
        )

    async def mark_picked_up(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        description: str | None = None,
        location: str | None = None,
    ) -> Order:
        order = await self.get_order_for_update(order_id)
        self._require_leg_driver(actor, order.pickup_driver_id, "pickup")
        if location is None:
            product = await self.products.get_product(order.product_id)
            location = product.pickup_address
        return await self._transition(
            order, OrderStatus.PICKED_UP, actor.id, description, location
        )

    async def mark_in_warehouse(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        warehouse_id: uuid.UUID | None = None,
        description: str | None = None,
        location: str | None = None,
    ) -> Order:
        """Drop the package at a warehouse: explicit, already routed, or auto-routed."""
        order = await self.get_order_for_update(order_id)
        self._require_leg_driver(actor, order.pickup_driver_id, "pickup")
        validate_transition(order.status, OrderStatus.IN_WAREHOUSE)

        if warehouse_id is None:
            warehouse_id = order.warehouse_id
        if warehouse_id is None:
            routed = await self.warehouses.route_order(order)
            if routed is None:
                raise BusinessRuleException(
                    "No warehouse serves this delivery area; specify a warehouse"
                )
            warehouse_id = routed.id

        # Held until commit: the capacity count below must not race other drop-offs
        warehouse = await self.warehouses.get_warehouse_for_update(warehouse_id)
        await self.warehouses.ensure_capacity(warehouse, order.id)
        order.warehouse_id = warehouse.id
        return await self._transition(
            order,
            OrderStatus.IN_WAREHOUSE,
            actor.id,
            description,
            location or f"{warehouse.name}, {warehouse.city}",
        )

    async def assign_delivery_driver(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        driver_id: uuid.UUID | None = None,
        description: str | None = None,
        location: str | None = None,
    ) -> Order:
        order = await self.get_order_for_update(order_id)
        if order.delivery_driver_id is not None:
            raise ConflictException("A delivery driver is already assigned to this order")
        validate_transition(order.status, OrderStatus.DELIVERY_ASSIGNED)

        driver = await self._resolve_driver(actor, driver_id)
        order.delivery_driver_id = driver.id
        if description is None:
            description = f"{DEFAULT_DESCRIPTIONS[OrderStatus.DELIVERY_ASSIGNED]}: {driver.full_name}"
        return await self._transition(
            order, OrderStatus.DELIVERY_ASSIGNED, actor.id, description, location
        )

    async def mark_in_transit(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        description: str | None = None,
        location: str | None = None,
    ) -> Order:
        order = await self.get_order_for_update(order_id)
        self._require_leg_driver(actor, order.delivery_driver_id, "delivery")
        return await self._transition(
            order, OrderStatus.IN_TRANSIT, actor.id, description, location
        )

    async def mark_delivered(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        description: str | None = None,
        location: str | None = None,
    ) -> Order:
        order = await self.get_order_for_update(order_id)
        self._require_leg_driver(actor, order.delivery_driver_id, "delivery")
        validate_transition(order.status, OrderStatus.DELIVERED)
        order.delivered_at = datetime.now(UTC)
        return await self._transition(
            order,
            OrderStatus.DELIVERED,
            actor.id,
            description,
            location or order.delivery_city,
        )

    async def update_status(
        self,
        order_id: uuid.UUID,
        actor: AuthenticatedUser,
        status: OrderStatus,
        description: str | None = None,
        location: str | None = None,
        driver_id: uuid.UUID | None = None,
        warehouse_id: uuid.UUID | None = None,
    ) -> Order:
        """Generic status change used by the driver and admin screens."""
        status = OrderStatus(status)
        if actor.user_type == UserType.USER:
            raise ForbiddenException("Only drivers and admins can update order status")

        if status == OrderStatus.PICKUP_ASSIGNED:
            return await self.assign_pickup_driver(order_id, actor, driver_id, description, location)
        if status == OrderStatus.PICKED_UP:
            return await self.mark_picked_up(order_id, actor, description, location)
        if status == OrderStatus.IN_WAREHOUSE:
            return await self.mark_in_warehouse(order_id, actor, warehouse_id, description, location)
        if status == OrderStatus.DELIVERY_ASSIGNED:
            return await self.assign_delivery_driver(order_id, actor, driver_id, description, location)
        if status == OrderStatus.IN_TRANSIT:
            return await self.mark_in_transit(order_id, actor, description, location)
        if status == OrderStatus.DELIVERED:
            return await self.mark_delivered(order_id, actor, description, location)

        raise BusinessRuleException(
            f"Status '{status.value}' cannot be set directly. "
            f"Allowed: {[s.value for s in DRIVER_FLOW_STATUSES]}"
        )

    # ------------------------------------------------------------------
    # Cancellation, details and warehouse assignment
    # ------------------------------------------------------------------

    async def cancel(
        self, order_id: uuid.UUID, actor: AuthenticatedUser, reason: str
    ) -> Order:
        """Cancel an order before it is paid. Seller, buyer or admin only."""
        order = await self.get_order_for_update(order_id)
        if not actor.is_admin and not order.is_party(actor.id):
            raise ForbiddenException("Only the seller, the buyer or an admin can cancel this order")

        order.cancel_reason = reason
        order.cancelled_at = datetime.now(UTC)
        return await self._transition(
            order,
            OrderStatus.CANCELLED,
            actor.id,
            description=f"{DEFAULT_DESCRIPTIONS[OrderStatus.CANCELLED]}: {reason}",
        )

    async def update_details(
        self, order_id: uuid.UUID, actor: AuthenticatedUser, **fields
    ) -> Order:
        """Change delivery address fields until the package is picked up."""
        order = await self.get_order_for_update(order_id)
        if not actor.is_admin and not order.is_party(actor.id):
            raise ForbiddenException("Only the seller, the buyer or an admin can edit this order")
        if order.status not in DETAILS_EDITABLE_STATUSES:
            raise BusinessRuleException(
                f"Delivery details cannot change once the order is '{OrderStatus(order.status).value}'"
            )

        changed = []
        for key in ("delivery_address", "delivery_city", "delivery_postal_code"):
            value = fields.get(key)
            if value is not None and value != getattr(order, key):
                setattr(order, key, value)
                changed.append(key)
        if not changed:
            return order

        await self.db.flush()
        await self.tracking.record_event(
            order_id=order.id,
            status=OrderStatus(order.status).value,
            description="Delivery details updated",
            location=order.delivery_city,
            recorded_by=actor.id,
        )
        logger.info("Order %s delivery details updated: %s", order.id, changed)
        return order

    async def assign_warehouse(
        self, order_id: uuid.UUID, actor: AuthenticatedUser, warehouse_id: uuid.UUID
    ) -> Order:
        """Route an order to a warehouse ahead of drop-off (admin)."""
        if not actor.is_admin:
            raise ForbiddenException("Only admins can assign warehouses")
        order = await self.get_order_for_update(order_id)
        if order.status not in WAREHOUSE_ASSIGNABLE_STATUSES:
            raise BusinessRuleException(
                f"Cannot assign a warehouse to an order in status '{OrderStatus(order.status).value}'"
            )

        warehouse = await self.warehouses.get_warehouse(warehouse_id)
        order.warehouse_id = warehouse.id
        await self.db.flush()

        await self.tracking.record_event(
            order_id=order.id,
            status=EVENT_WAREHOUSE_ASSIGNED,
            description=f"Order routed to warehouse {warehouse.name}",
            location=f"{warehouse.name}, {warehouse.city}",
            recorded_by=actor.id,
        )
        logger.info("Order %s routed to warehouse %s", order.id, warehouse.id)
        return order
