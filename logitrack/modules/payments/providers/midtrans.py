"""Midtrans adapter: Snap for hosted checkout, Core API for status checks."""

from __future__ import annotations

import hashlib
import hmac
import logging
import re

import httpx

from logitrack.config import settings
from logitrack.exceptions import PaymentGatewayException
from logitrack.models.enums import GatewayPaymentStatus, PaymentProvider
from logitrack.modules.payments.constants import MIDTRANS_STATUS_MAP
from logitrack.modules.payments.providers.base import (
    PaymentRequest,
    PaymentSession,
    WebhookNotification,
)
from logitrack.modules.payments.providers.http import HttpPaymentProvider

logger = logging.getLogger(__name__)

# Snap sometimes hands out /v2/ or /v4/ redirect paths that 404; /v3/ works
_REDIRECT_VERSION_RE = re.compile(r"/v[24]/")

_WEBHOOK_REQUIRED_FIELDS = ("order_id", "status_code", "gross_amount", "transaction_status")


def map_midtrans_status(transaction_status: str | None) -> GatewayPaymentStatus:
    return MIDTRANS_STATUS_MAP.get(transaction_status or "", GatewayPaymentStatus.FAILED)


def normalize_redirect_url(url: str) -> str:
    return _REDIRECT_VERSION_RE.sub("/v3/", url)


def midtrans_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def _split_name(full_name: str) -> tuple[str, str]:
    first, _, last = full_name.strip().partition(" ")
    return first or full_name, last.strip()


class MidtransProvider(HttpPaymentProvider):
    name = PaymentProvider.MIDTRANS

    def __init__(
        self,
        server_key: str | None = None,
        snap_base_url: str | None = None,
        api_base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(transport=transport)
        self.server_key = settings.midtrans_server_key if server_key is None else server_key
        self.snap_base_url = (snap_base_url or settings.midtrans_snap_base_url).rstrip("/")
        self.api_base_url = (api_base_url or settings.midtrans_api_base_url).rstrip("/")

    def _auth(self) -> tuple[str, str]:
        # Server key as the basic-auth username, empty password
        return (self.server_key, "")

    async def create_payment(self, request: PaymentRequest) -> PaymentSession:
        first_name, last_name = _split_name(request.customer.name)
        payload = {
            "transaction_details": {
                "order_id": request.reference,
                "gross_amount": request.amount,
            },
            "customer_details": {
                "first_name": first_name,
                "last_name": last_name,
                "email": request.customer.email,
                "phone": request.customer.phone or "",
            },
            "item_details": [
                {
                    "id": item.id,
                    "price": item.price,
                    "quantity": item.quantity,
                    "name": item.name[:50],
                }
                for item in request.items
            ],
            "callbacks": {
                "finish": request.success_url,
                "error": request.failure_url,
            },
            "credit_card": {"secure": True},
        }

        try:
            response = await self._request_with_retry(
                "POST", f"{self.snap_base_url}/snap/v1/transactions", json=payload,
            )
        except httpx.HTTPError as exc:
            logger.warning("Midtrans Snap transaction for %s failed: %s", request.reference, exc)
            raise PaymentGatewayException("Midtrans could not create the payment") from exc

        data = response.json()
        redirect_url = data.get("redirect_url")
        if not redirect_url:
            raise PaymentGatewayException(
                "Midtrans response did not include a redirect URL",
                details=[{"field": "error_messages", "message": str(data.get("error_messages", ""))}],
            )

        return PaymentSession(
            provider=self.name,
            payment_id=request.reference,
            payment_url=normalize_redirect_url(redirect_url),
            token=data.get("token"),
        )

    async def get_payment_status(self, payment_id: str) -> GatewayPaymentStatus:
        try:
            response = await self._request_with_retry(
                "GET", f"{self.api_base_url}/v2/{payment_id}/status",
            )
        except httpx.HTTPError as exc:
            raise PaymentGatewayException(f"Midtrans status check for {payment_id} failed") from exc

        data = response.json()
        # Core API reports unknown transactions with HTTP 200 and a body status_code
        if str(data.get("status_code")) == "404":
            raise PaymentGatewayException(f"Midtrans has no transaction {payment_id}")
        return map_midtrans_status(data.get("transaction_status"))

    def verify_signature(self, body: dict) -> bool:
        signature = body.get("signature_key")
        if not signature or not self.server_key:
            return False
        expected = midtrans_signature(
            str(body["order_id"]),
            str(body["status_code"]),
            str(body["gross_amount"]),
            self.server_key,
        )
        return hmac.compare_digest(expected, str(signature))

    def parse_webhook(self, body: dict, headers: dict[str, str]) -> WebhookNotification | None:
        missing = [f for f in _WEBHOOK_REQUIRED_FIELDS if not body.get(f)]
        if missing:
            logger.warning("Midtrans webhook missing fields: %s", missing)
            return None
        if not self.verify_signature(body):
            logger.warning("Midtrans webhook for %s has an invalid signature", body["order_id"])
            return None

        order_id = str(body["order_id"])
        return WebhookNotification(
            provider=self.name,
            reference=order_id,
            payment_id=order_id,
            status=map_midtrans_status(body["transaction_status"]),
            raw=body,
        )
