"""
ALERTS App - Django Signals

Raise and resolve alerts when orders and balances change.

Alert writes are deferred with transaction.on_commit so they never run
inside (or roll back) the order/ledger transaction.
"""

import logging

from django.db import transaction
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from alerts.engine import AlertEngine, resolve_alerts
from alerts.models import AlertKind
from finance.models import CourierBalance
from logistics.models import Order, OrderStatus

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Order)
def capture_previous_status(sender, instance, **kwargs):
    """Remember the stored status so post_save can detect a change."""
    if instance._state.adding:
        instance._previous_status = None
        return
    instance._previous_status = (
        Order.objects.filter(pk=instance.pk).values_list('status', flat=True).first()
    )


@receiver(post_save, sender=Order)
def on_order_saved(sender, instance, created, **kwargs):
    previous = getattr(instance, '_previous_status', None)
    if created or previous == instance.status:
        return

    order = instance
    logger.debug(f"[ALERTS] Order {order.id} status {previous} -> {order.status}")

    if previous == OrderStatus.PENDING:
        transaction.on_commit(lambda: resolve_alerts(AlertKind.STALE_ORDER, order.id))

    if order.status == OrderStatus.CANCELLED:
        transaction.on_commit(lambda: AlertEngine.order_cancelled(order))
    elif order.status == OrderStatus.DELIVERED:
        transaction.on_commit(lambda: AlertEngine.order_delivered(order))


@receiver(post_save, sender=CourierBalance)
def on_balance_saved(sender, instance, **kwargs):
    """Cash back at zero closes the standing 'cash to deposit' alert."""
    if instance.cash_collected <= 0:
        courier = instance.courier
        transaction.on_commit(lambda: resolve_alerts(AlertKind.COURIER_CASH, courier))
