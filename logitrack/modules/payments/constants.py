"""Payment constants and IDR formatting."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from logitrack.models.enums import GatewayPaymentStatus

# Gateway statuses that settle an order
PAID_STATUSES: frozenset[GatewayPaymentStatus] = frozenset(
    {GatewayPaymentStatus.PAID, GatewayPaymentStatus.SETTLED}
)

# Midtrans transaction_status -> canonical status; anything else is FAILED
MIDTRANS_STATUS_MAP: dict[str, GatewayPaymentStatus] = {
    "capture": GatewayPaymentStatus.PAID,
    "settlement": GatewayPaymentStatus.PAID,
    "pending": GatewayPaymentStatus.PENDING,
    "deny": GatewayPaymentStatus.EXPIRED,
    "cancel": GatewayPaymentStatus.EXPIRED,
    "expire": GatewayPaymentStatus.EXPIRED,
    "refund": GatewayPaymentStatus.REFUNDED,
    "partial_refund": GatewayPaymentStatus.REFUNDED,
}

# Statuses Xendit may report for an invoice
XENDIT_WEBHOOK_STATUSES: frozenset[str] = frozenset(
    {"PENDING", "PAID", "SETTLED", "EXPIRED", "FAILED"}
)

XENDIT_INVOICE_DURATION_SECONDS = 24 * 60 * 60

SHIPPING_ITEM_ID = "SHIPPING"
SHIPPING_ITEM_NAME = "Shipping Cost"


def to_idr_units(amount: Decimal | int | float) -> int:
    """Whole rupiah; the gateways reject fractional IDR amounts."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_idr(amount: Decimal | int | float) -> str:
    """Render an amount the Indonesian way, e.g. ``Rp 150.000``."""
    return "Rp " + f"{to_idr_units(amount):,}".replace(",", ".")
