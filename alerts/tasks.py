"""
ALERTS App - Celery Tasks

Periodic alert sweep.
"""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task(name='alerts.tasks.sweep_alerts')
def sweep_alerts():
    """
    Evaluate stale orders, courier cash and payment day.

    Scheduled every ALERT_SWEEP_INTERVAL seconds by Celery beat.
    """
    from alerts.engine import AlertEngine

    counts = AlertEngine().sweep()
    logger.info(f"[ALERTS TASK] Sweep created {sum(counts.values())} alert(s)")
    return counts
