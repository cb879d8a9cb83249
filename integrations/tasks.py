"""
INTEGRATIONS App - Celery Tasks

Periodic pull of new Shopify orders.
"""

from celery import shared_task
import logging

from core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)


@shared_task(
    name='integrations.tasks.sync_shopify_orders',
    bind=True,
    max_retries=3,
    default_retry_delay=30,
)
def sync_shopify_orders(self):
    """
    Import orders created in the store since the last run.

    Scheduled every SHOPIFY_SYNC_INTERVAL seconds when SHOPIFY_SYNC_ENABLED.
    Retryable upstream failures (network, rate limit) are retried.
    """
    from integrations.services import sync_from_store

    try:
        return sync_from_store()
    except UpstreamFailure as e:
        logger.error(f"[SHOPIFY TASK] Sync failed ({e.code}): {e}")
        if e.retryable:
            raise self.retry(exc=e)
        return {'error': e.code}
