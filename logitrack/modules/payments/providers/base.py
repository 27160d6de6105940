"""Abstract base class and value objects for payment gateways."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from logitrack.models.enums import GatewayPaymentStatus, PaymentProvider


@dataclass
class PaymentItem:
    id: str
    name: str
    price: int
    quantity: int = 1


@dataclass
class PaymentCustomer:
    name: str
    email: str
    phone: str | None = None


@dataclass
class PaymentRequest:
    """What to charge. ``reference`` is our id for the charge at the gateway."""

    reference: str
    amount: int
    description: str
    customer: PaymentCustomer
    items: list[PaymentItem] = field(default_factory=list)
    success_url: str | None = None
    failure_url: str | None = None


@dataclass
class PaymentSession:
    """A created gateway charge the buyer completes at ``payment_url``."""

    provider: PaymentProvider
    payment_id: str
    payment_url: str
    status: GatewayPaymentStatus = GatewayPaymentStatus.PENDING
    token: str | None = None


@dataclass
class WebhookNotification:
    provider: PaymentProvider
    reference: str
    payment_id: str
    status: GatewayPaymentStatus
    raw: dict = field(default_factory=dict)


class PaymentProviderBase(ABC):
    name: PaymentProvider

    @abstractmethod
    async def create_payment(self, request: PaymentRequest) -> PaymentSession:
        """Create a hosted payment page. Raises PaymentGatewayException on failure."""

    @abstractmethod
    async def get_payment_status(self, payment_id: str) -> GatewayPaymentStatus:
        """Current canonical status of a charge created by this gateway."""

    @abstractmethod
    def parse_webhook(self, body: dict, headers: dict[str, str]) -> WebhookNotification | None:
        """Validate a notification. Returns None when it is malformed or not authentic."""
