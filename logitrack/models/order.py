"""Order model — one shipment of a listed product from seller to buyer."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from logitrack.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from logitrack.models.enums import OrderStatus, PaymentStatus, value_enum

if TYPE_CHECKING:
    from logitrack.models.product import Product
    from logitrack.models.user import User
    from logitrack.models.warehouse import Warehouse


class Order(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "orders"

    transaction_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    buyer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"))
    status: Mapped[OrderStatus] = mapped_column(
        value_enum(OrderStatus, "orderstatus"),
        nullable=False,
        default=OrderStatus.PENDING,
        server_default=OrderStatus.PENDING.value,
    )

    # Legs
    pickup_driver_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id")
    )
    delivery_driver_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id")
    )
    warehouse_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("warehouses.id", ondelete="SET NULL")
    )

    # Delivery destination
    delivery_address: Mapped[str | None] = mapped_column(Text)
    delivery_city: Mapped[str | None] = mapped_column(String(100))
    delivery_postal_code: Mapped[str | None] = mapped_column(String(10))

    # Payment
    payment_id: Mapped[str | None] = mapped_column(String(100))
    payment_status: Mapped[PaymentStatus] = mapped_column(
        value_enum(PaymentStatus, "paymentstatus"),
        nullable=False,
        default=PaymentStatus.UNPAID,
        server_default=PaymentStatus.UNPAID.value,
    )
    payment_link: Mapped[str | None] = mapped_column(Text)
    payment_provider: Mapped[str | None] = mapped_column(String(20))
    payment_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancel_reason: Mapped[str | None] = mapped_column(Text)

    # Relationships
    product: Mapped[Product] = relationship("Product", lazy="noload")
    seller: Mapped[User] = relationship("User", foreign_keys=[seller_id], lazy="noload")
    buyer: Mapped[User | None] = relationship("User", foreign_keys=[buyer_id], lazy="noload")
    pickup_driver: Mapped[User | None] = relationship(
        "User", foreign_keys=[pickup_driver_id], lazy="noload"
    )
    delivery_driver: Mapped[User | None] = relationship(
        "User", foreign_keys=[delivery_driver_id], lazy="noload"
    )
    warehouse: Mapped[Warehouse | None] = relationship("Warehouse", lazy="noload")

    __table_args__ = (
        Index("ix_orders_status", "status"),
        Index("ix_orders_product_id", "product_id"),
        Index("ix_orders_seller_id", "seller_id"),
        Index("ix_orders_buyer_id", "buyer_id"),
        Index("ix_orders_payment_id", "payment_id"),
        Index("ix_orders_warehouse_id_status", "warehouse_id", "status"),
    )

    def is_party(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.seller_id, self.buyer_id)

    def is_driver(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.pickup_driver_id, self.delivery_driver_id)
