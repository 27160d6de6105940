"""Celery tasks for payments — reconcile orders stuck in pending_payment."""

from __future__ import annotations

import asyncio
import logging

from celery_app import celery
from logitrack.config import settings
from logitrack.database.engine import async_session, engine
from logitrack.modules.payments.providers.factory import close_all_providers

logger = logging.getLogger(__name__)


async def _reconcile_pending_payments_async() -> dict:
    """Async implementation: poll the gateway for every stale pending payment."""
    from logitrack.modules.payments.service import (
        OUTCOME_CONFIRMED,
        OUTCOME_FAILED,
        PaymentService,
    )

    stats = {"checked": 0, "confirmed": 0, "failed": 0, "unchanged": 0, "errors": 0}

    try:
        async with async_session() as session:
            svc = PaymentService(session)
            order_ids = await svc.stale_pending_order_ids(
                older_than_seconds=settings.payment_reconcile_poll_seconds,
                limit=settings.payment_reconcile_batch_size,
            )

            for order_id in order_ids:
                stats["checked"] += 1
                try:
                    outcome = await svc.reconcile_order(order_id)
                    # One transaction per order keeps row locks short
                    await session.commit()
                except Exception:
                    await session.rollback()
                    logger.exception("Error reconciling payment for order %s", order_id)
                    stats["errors"] += 1
                    continue

                if outcome == OUTCOME_CONFIRMED:
                    stats["confirmed"] += 1
                elif outcome == OUTCOME_FAILED:
                    stats["failed"] += 1
                else:
                    stats["unchanged"] += 1
    finally:
        await close_all_providers()
        # asyncpg connections are bound to this run's event loop
        await engine.dispose()

    return stats


@celery.task(name="logitrack.modules.payments.tasks.reconcile_pending_payments")
def reconcile_pending_payments():
    """Confirm or fail orders whose gateway payment settled without a webhook."""
    stats = asyncio.run(_reconcile_pending_payments_async())
    logger.info("reconcile_pending_payments complete: %s", stats)
    return stats
