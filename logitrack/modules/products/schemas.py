"""Pydantic v2 schemas for product endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from logitrack.models.enums import (
    OrderStatus,
    ProductCategory,
    ProductStatus,
    ShippingCategory,
    ShippingPaidBy,
)

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: ProductCategory = ProductCategory.OTHER
    shipping_category: ShippingCategory
    shipping_price: Decimal | None = Field(None, gt=0)
    shipping_paid_by: ShippingPaidBy = ShippingPaidBy.BUYER
    price: Decimal = Field(..., gt=0)
    weight: Decimal = Field(..., gt=0, description="Weight in kilograms")
    quantity: int = Field(1, ge=1)
    pickup_address: str = Field(..., min_length=1)
    pickup_latitude: str | None = Field(None, max_length=32)
    pickup_longitude: str | None = Field(None, max_length=32)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=10)

    @model_validator(mode="after")
    def custom_needs_price(self) -> ProductCreate:
        if self.shipping_category == ShippingCategory.CUSTOM and self.shipping_price is None:
            raise ValueError("shipping_price is required for the Custom shipping category")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: str | None = None
    category: ProductCategory
    shipping_category: ShippingCategory
    shipping_price: Decimal
    product_status: ProductStatus
    shipping_paid_by: ShippingPaidBy
    price: Decimal
    weight: Decimal
    quantity: int
    pickup_address: str
    pickup_latitude: str | None = None
    pickup_longitude: str | None = None
    city: str
    postal_code: str
    created_at: datetime


class AvailableProductResponse(ProductResponse):
    """A product whose listing order can still be bought."""

    order_id: uuid.UUID
    transaction_id: str
    order_status: OrderStatus
    seller_name: str | None = None


class ProductSummary(BaseModel):
    """Compact product reference embedded in order listings."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    category: ProductCategory
    price: Decimal
    shipping_price: Decimal
    shipping_paid_by: ShippingPaidBy
    weight: Decimal
    city: str
