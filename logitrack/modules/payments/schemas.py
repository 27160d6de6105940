"""Pydantic v2 schemas for payment endpoints."""

from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field

from logitrack.models.enums import GatewayPaymentStatus, OrderStatus, PaymentStatus


class PaymentInitiateRequest(BaseModel):
    order_id: uuid.UUID
    customer_name: str | None = Field(None, max_length=200)
    customer_email: EmailStr | None = None
    phone_number: str | None = Field(None, max_length=30)
    delivery_address: str | None = Field(None, min_length=1)
    delivery_city: str | None = Field(None, min_length=1, max_length=100)
    delivery_postal_code: str | None = Field(None, min_length=1, max_length=10)


class PaymentInitiateResponse(BaseModel):
    order_id: uuid.UUID
    transaction_id: str
    payment_id: str
    payment_link: str
    provider: str
    amount: Decimal
    amount_display: str
    order_status: OrderStatus
    payment_status: PaymentStatus


class PaymentStatusResponse(BaseModel):
    order_id: uuid.UUID
    payment_id: str
    gateway_status: GatewayPaymentStatus
    order_status: OrderStatus
    payment_status: PaymentStatus
    outcome: str


class WebhookAck(BaseModel):
    status: str = "ok"
    order_id: uuid.UUID
    outcome: str
