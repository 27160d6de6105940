"""Payments API router — checkout, status polling and gateway webhooks."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.database.session import get_db
from logitrack.exceptions import InvalidWebhookException
from logitrack.models.enums import PaymentProvider
from logitrack.modules.auth.auth import AuthenticatedUser, get_current_user
from logitrack.modules.payments.constants import format_idr
from logitrack.modules.payments.schemas import (
    PaymentInitiateRequest,
    PaymentInitiateResponse,
    PaymentStatusResponse,
    WebhookAck,
)
from logitrack.modules.payments.service import PaymentService
from logitrack.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidWebhookException("Webhook body is not valid JSON") from exc
    if not isinstance(body, dict):
        raise InvalidWebhookException("Webhook body must be a JSON object")
    return body


@router.post("", response_model=PaymentInitiateResponse, status_code=201)
@limiter.limit("10/minute")
async def initiate_payment(
    request: Request,
    body: PaymentInitiateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Start a gateway checkout for an order; the caller becomes the buyer."""
    svc = PaymentService(db)
    order = await svc.initiate_payment(
        body.order_id,
        user,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        phone_number=body.phone_number,
        delivery_address=body.delivery_address,
        delivery_city=body.delivery_city,
        delivery_postal_code=body.delivery_postal_code,
    )
    return PaymentInitiateResponse(
        order_id=order.id,
        transaction_id=order.transaction_id,
        payment_id=order.payment_id,
        payment_link=order.payment_link,
        provider=order.payment_provider,
        amount=order.payment_amount,
        amount_display=format_idr(order.payment_amount),
        order_status=order.status,
        payment_status=order.payment_status,
    )


@router.get("/{payment_id}/status", response_model=PaymentStatusResponse)
async def get_payment_status(
    payment_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Poll the gateway; a settled payment confirms the order."""
    svc = PaymentService(db)
    order, gateway_status, outcome = await svc.check_payment_status(payment_id, user)
    return PaymentStatusResponse(
        order_id=order.id,
        payment_id=order.payment_id,
        gateway_status=gateway_status,
        order_status=order.status,
        payment_status=order.payment_status,
        outcome=outcome,
    )


async def _handle_webhook(provider: PaymentProvider, request: Request, db: AsyncSession) -> WebhookAck:
    body = await _json_body(request)
    svc = PaymentService(db)
    order, outcome = await svc.handle_webhook(provider.value, body, dict(request.headers))
    return WebhookAck(order_id=order.id, outcome=outcome)


@router.post("/webhooks/midtrans", response_model=WebhookAck)
async def midtrans_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    return await _handle_webhook(PaymentProvider.MIDTRANS, request, db)


@router.post("/webhooks/xendit", response_model=WebhookAck)
async def xendit_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    return await _handle_webhook(PaymentProvider.XENDIT, request, db)
