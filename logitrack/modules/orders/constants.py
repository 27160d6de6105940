"""Order status transitions, terminal states, and tracking descriptions."""

from __future__ import annotations

from logitrack.models.enums import OrderStatus

# ---------------------------------------------------------------------------
# Valid status transitions: current_status -> set of allowed next statuses
# ---------------------------------------------------------------------------

ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {
        OrderStatus.PENDING_PAYMENT,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PENDING_PAYMENT: {
        OrderStatus.PAID,
        OrderStatus.PAYMENT_FAILED,
        OrderStatus.CANCELLED,
    },
    # Gateways may settle an attempt after another one was reported failed
    OrderStatus.PAYMENT_FAILED: {
        OrderStatus.PENDING_PAYMENT,
        OrderStatus.PAID,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PAID: {OrderStatus.PICKUP_ASSIGNED},
    OrderStatus.PICKUP_ASSIGNED: {OrderStatus.PICKED_UP},
    OrderStatus.PICKED_UP: {OrderStatus.IN_WAREHOUSE},
    OrderStatus.IN_WAREHOUSE: {OrderStatus.DELIVERY_ASSIGNED},
    OrderStatus.DELIVERY_ASSIGNED: {OrderStatus.IN_TRANSIT},
    OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED},
}

ORDER_TERMINAL_STATUSES: set[OrderStatus] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}

# Delivery details may change until the package leaves the seller
DETAILS_EDITABLE_STATUSES: set[OrderStatus] = {
    OrderStatus.PENDING,
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PAYMENT_FAILED,
    OrderStatus.PAID,
    OrderStatus.PICKUP_ASSIGNED,
}

# A payment may be (re)started from these statuses
PAYABLE_STATUSES: set[OrderStatus] = {
    OrderStatus.PENDING,
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PAYMENT_FAILED,
}

WAREHOUSE_ASSIGNABLE_STATUSES: set[OrderStatus] = {
    OrderStatus.PAID,
    OrderStatus.PICKUP_ASSIGNED,
    OrderStatus.PICKED_UP,
}

# Statuses the generic status endpoint accepts; payment states are driven
# by the payment service and cancellation by its own endpoint.
DRIVER_FLOW_STATUSES: tuple[OrderStatus, ...] = (
    OrderStatus.PICKUP_ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.IN_WAREHOUSE,
    OrderStatus.DELIVERY_ASSIGNED,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
)

# ---------------------------------------------------------------------------
# Tracking event markers and default descriptions
# ---------------------------------------------------------------------------

EVENT_PAYMENT_INITIATED = "payment_initiated"
EVENT_PAYMENT_EXPIRED = "payment_expired"
EVENT_PAYMENT_FAILED = "payment_failed"
EVENT_WAREHOUSE_ASSIGNED = "warehouse_assigned"
EVENT_NOTE = "note"

DEFAULT_DESCRIPTIONS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Order created",
    OrderStatus.PENDING_PAYMENT: "Buyer assigned to order",
    OrderStatus.PAID: "Payment confirmed",
    OrderStatus.PICKUP_ASSIGNED: "Driver assigned for pickup",
    OrderStatus.PICKED_UP: "Package has been picked up from seller",
    OrderStatus.IN_WAREHOUSE: "Package has been delivered to warehouse",
    OrderStatus.DELIVERY_ASSIGNED: "Driver assigned for delivery",
    OrderStatus.IN_TRANSIT: "Package is out for delivery",
    OrderStatus.DELIVERED: "Package has been delivered to customer",
    OrderStatus.CANCELLED: "Order cancelled",
}

# transaction_id: YYYY_MMDD_XXXXXX
TRANSACTION_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
TRANSACTION_ID_SUFFIX_LENGTH = 6
