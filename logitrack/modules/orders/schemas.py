"""Pydantic v2 schemas for order endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from logitrack.models.enums import OrderStatus, PaymentStatus
from logitrack.modules.products.schemas import ProductSummary
from logitrack.modules.users.schemas import UserSummary
from logitrack.modules.warehouses.schemas import WarehouseSummary

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OrderCreate(BaseModel):
    product_id: uuid.UUID


class DeliveryDetails(BaseModel):
    delivery_address: str | None = Field(None, min_length=1)
    delivery_city: str | None = Field(None, min_length=1, max_length=100)
    delivery_postal_code: str | None = Field(None, min_length=1, max_length=10)


class OrderPurchase(DeliveryDetails):
    """Buyer claim of a listing. Missing fields default to the buyer's profile."""


class OrderDetailsUpdate(DeliveryDetails):
    pass


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    description: str | None = Field(None, max_length=2000)
    location: str | None = Field(None, max_length=255)
    driver_id: uuid.UUID | None = None
    warehouse_id: uuid.UUID | None = None


class OrderCancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class WarehouseAssignment(BaseModel):
    warehouse_id: uuid.UUID


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    transaction_id: str
    product_id: uuid.UUID
    seller_id: uuid.UUID
    buyer_id: uuid.UUID | None = None
    status: OrderStatus
    pickup_driver_id: uuid.UUID | None = None
    delivery_driver_id: uuid.UUID | None = None
    warehouse_id: uuid.UUID | None = None
    delivery_address: str | None = None
    delivery_city: str | None = None
    delivery_postal_code: str | None = None
    payment_id: str | None = None
    payment_status: PaymentStatus
    payment_link: str | None = None
    payment_provider: str | None = None
    payment_amount: Decimal | None = None
    paid_at: datetime | None = None
    delivered_at: datetime | None = None
    cancel_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    product: ProductSummary | None = None
    seller: UserSummary | None = None
    buyer: UserSummary | None = None
    pickup_driver: UserSummary | None = None
    delivery_driver: UserSummary | None = None
    warehouse: WarehouseSummary | None = None
