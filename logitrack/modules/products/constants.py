"""Shipping price table for the fixed parcel size categories (IDR)."""

from decimal import Decimal

from logitrack.models.enums import ShippingCategory

SHIPPING_PRICES: dict[ShippingCategory, Decimal] = {
    ShippingCategory.A: Decimal("10000"),
    ShippingCategory.B: Decimal("20000"),
    ShippingCategory.C: Decimal("30000"),
}
