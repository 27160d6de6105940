"""Xendit adapter built on the Invoices API."""

from __future__ import annotations

import hmac
import logging

import httpx

from logitrack.config import settings
from logitrack.exceptions import PaymentGatewayException
from logitrack.models.enums import GatewayPaymentStatus, PaymentProvider
from logitrack.modules.payments.constants import (
    XENDIT_INVOICE_DURATION_SECONDS,
    XENDIT_WEBHOOK_STATUSES,
)
from logitrack.modules.payments.providers.base import (
    PaymentRequest,
    PaymentSession,
    WebhookNotification,
)
from logitrack.modules.payments.providers.http import HttpPaymentProvider

logger = logging.getLogger(__name__)

CALLBACK_TOKEN_HEADER = "x-callback-token"


def map_xendit_status(status: str | None) -> GatewayPaymentStatus:
    status = (status or "").upper()
    if status in XENDIT_WEBHOOK_STATUSES:
        return GatewayPaymentStatus(status)
    return GatewayPaymentStatus.FAILED


class XenditProvider(HttpPaymentProvider):
    name = PaymentProvider.XENDIT

    def __init__(
        self,
        api_key: str | None = None,
        callback_token: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(transport=transport)
        self.api_key = settings.xendit_api_key if api_key is None else api_key
        self.callback_token = (
            settings.xendit_callback_token if callback_token is None else callback_token
        )
        self.base_url = (base_url or settings.xendit_base_url).rstrip("/")

    def _auth(self) -> tuple[str, str]:
        # API key as the basic-auth username, empty password
        return (self.api_key, "")

    async def create_payment(self, request: PaymentRequest) -> PaymentSession:
        payload = {
            "external_id": request.reference,
            "amount": request.amount,
            "payer_email": request.customer.email,
            "description": request.description,
            "currency": "IDR",
            "invoice_duration": XENDIT_INVOICE_DURATION_SECONDS,
            "should_send_email": False,
            "customer": {
                "given_names": request.customer.name,
                "email": request.customer.email,
                "mobile_number": request.customer.phone,
            },
            "items": [
                {"name": item.name, "quantity": item.quantity, "price": item.price}
                for item in request.items
            ],
        }
        if request.success_url:
            payload["success_redirect_url"] = request.success_url
        if request.failure_url:
            payload["failure_redirect_url"] = request.failure_url

        try:
            response = await self._request_with_retry("POST", "/v2/invoices", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Xendit invoice for %s failed: %s", request.reference, exc)
            raise PaymentGatewayException("Xendit could not create the invoice") from exc

        data = response.json()
        if not data.get("id") or not data.get("invoice_url"):
            raise PaymentGatewayException("Xendit response did not include an invoice")

        return PaymentSession(
            provider=self.name,
            payment_id=data["id"],
            payment_url=data["invoice_url"],
            status=map_xendit_status(data.get("status")),
        )

    async def get_payment_status(self, payment_id: str) -> GatewayPaymentStatus:
        try:
            response = await self._request_with_retry("GET", f"/v2/invoices/{payment_id}")
        except httpx.HTTPError as exc:
            raise PaymentGatewayException(f"Xendit status check for {payment_id} failed") from exc
        return map_xendit_status(response.json().get("status"))

    def parse_webhook(self, body: dict, headers: dict[str, str]) -> WebhookNotification | None:
        if self.callback_token:
            supplied = {k.lower(): v for k, v in headers.items()}.get(CALLBACK_TOKEN_HEADER, "")
            if not hmac.compare_digest(str(supplied), self.callback_token):
                logger.warning("Xendit webhook rejected: callback token mismatch")
                return None

        if not all(body.get(f) for f in ("id", "external_id", "status")):
            logger.warning("Xendit webhook missing required fields")
            return None
        status = str(body["status"]).upper()
        if status not in XENDIT_WEBHOOK_STATUSES:
            logger.warning("Xendit webhook has unknown status %s", body["status"])
            return None

        return WebhookNotification(
            provider=self.name,
            reference=str(body["external_id"]),
            payment_id=str(body["id"]),
            status=GatewayPaymentStatus(status),
            raw=body,
        )
