"""Product model — an item a seller lists for sale and shipment."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from logitrack.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from logitrack.models.enums import (
    ProductCategory,
    ProductStatus,
    ShippingCategory,
    ShippingPaidBy,
    value_enum,
)

if TYPE_CHECKING:
    from logitrack.models.user import User


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "products"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[ProductCategory] = mapped_column(
        value_enum(ProductCategory, "productcategory"),
        nullable=False,
        default=ProductCategory.OTHER,
        server_default=ProductCategory.OTHER.value,
    )
    shipping_category: Mapped[ShippingCategory] = mapped_column(
        value_enum(ShippingCategory, "shippingcategory"), nullable=False
    )
    shipping_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    product_status: Mapped[ProductStatus] = mapped_column(
        value_enum(ProductStatus, "productstatus"),
        nullable=False,
        default=ProductStatus.UNPAID,
        server_default=ProductStatus.UNPAID.value,
    )
    shipping_paid_by: Mapped[ShippingPaidBy] = mapped_column(
        value_enum(ShippingPaidBy, "shippingpaidby"),
        nullable=False,
        default=ShippingPaidBy.BUYER,
        server_default=ShippingPaidBy.BUYER.value,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    weight: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    pickup_address: Mapped[str] = mapped_column(Text, nullable=False)
    pickup_latitude: Mapped[str | None] = mapped_column(String(32))
    pickup_longitude: Mapped[str | None] = mapped_column(String(32))
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(10), nullable=False)

    seller: Mapped[User] = relationship("User", lazy="noload")

    __table_args__ = (
        Index("ix_products_user_id", "user_id"),
        Index("ix_products_category", "category"),
    )
