"""Provider factory — select the payment gateway adapter."""

from __future__ import annotations

from logitrack.models.enums import PaymentProvider
from logitrack.modules.payments.providers.base import PaymentProviderBase
from logitrack.modules.payments.providers.http import HttpPaymentProvider
from logitrack.modules.payments.providers.midtrans import MidtransProvider
from logitrack.modules.payments.providers.xendit import XenditProvider

_instances: dict[PaymentProvider, PaymentProviderBase] = {}


def get_provider(provider: PaymentProvider | str) -> PaymentProviderBase:
    try:
        provider = PaymentProvider(provider)
    except ValueError as exc:
        raise ValueError(f"No adapter for provider: {provider}") from exc

    if provider not in _instances:
        if provider == PaymentProvider.MIDTRANS:
            _instances[provider] = MidtransProvider()
        elif provider == PaymentProvider.XENDIT:
            _instances[provider] = XenditProvider()
    return _instances[provider]


async def close_all_providers() -> None:
    """Close httpx clients on all cached providers.

    Must be called at the end of each asyncio.run() invocation in Celery tasks
    to prevent stale clients across event loop boundaries.
    """
    for provider in _instances.values():
        if isinstance(provider, HttpPaymentProvider):
            await provider.aclose()
