"""
ALERTS App - Alerting engine for DOMICILIOS

Periodic sweep over current order and balance snapshots, plus helpers
used by signals and the importer to raise one-off alerts.

Purely advisory: nothing here touches orders or balances.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.core.cache import cache
from django.db import IntegrityError, transaction
from django.utils import timezone

from alerts.models import Alert, AlertAudience, AlertKind, AlertPriority

logger = logging.getLogger(__name__)


# ============================================
# CONFIGURATION
# ============================================

# (hours pending, priority), highest first
STALE_TIERS = (
    (72, AlertPriority.HIGH),
    (48, AlertPriority.LOW),
    (24, AlertPriority.LOW),
)

PAYMENT_DAY_CACHE_PREFIX = 'alerts:payment-day:'


def stale_tier_for(age: timedelta):
    """Return (tier, priority) for a pending order of this age, or None."""
    hours = age.total_seconds() / 3600
    for tier, priority in STALE_TIERS:
        if hours >= tier:
            return tier, priority
    return None


def raise_alert(kind, related_id='', tier=0, **fields):
    """
    Open an alert unless one is already open for the same key.

    Returns (alert, created).
    """
    existing = Alert.objects.open().filter(kind=kind, related_id=related_id, tier=tier).first()
    if existing:
        return existing, False
    try:
        with transaction.atomic():
            alert = Alert.objects.create(kind=kind, related_id=related_id, tier=tier, **fields)
    except IntegrityError:
        # Another sweep opened it first
        return Alert.objects.open().get(kind=kind, related_id=related_id, tier=tier), False
    logger.info(f"[ALERTS] {kind} {related_id} tier {tier} ({alert.priority})")
    return alert, True


def resolve_alerts(kind, related_id) -> int:
    count = Alert.objects.open().filter(kind=kind, related_id=related_id).update(
        is_resolved=True,
        resolved_at=timezone.now(),
    )
    if count:
        logger.info(f"[ALERTS] Resolved {count} {kind} alert(s) for {related_id}")
    return count


class AlertEngine:
    """Evaluates alert conditions and records the resulting alerts."""

    def __init__(self, payment_days=None):
        self.payment_days = payment_days or getattr(settings, 'PAYMENT_DAYS', [15, 30])

    def sweep(self, now=None) -> dict:
        """
        Run every check once.

        Returns the number of alerts created per kind.
        """
        now = now or timezone.now()
        counts = {
            AlertKind.STALE_ORDER: self.check_stale_orders(now),
            AlertKind.COURIER_CASH: self.check_courier_cash(),
            AlertKind.PAYMENT_DAY: self.check_payment_day(now),
        }
        logger.info(
            f"[ALERTS] Sweep done: {counts[AlertKind.STALE_ORDER]} stale, "
            f"{counts[AlertKind.COURIER_CASH]} cash, {counts[AlertKind.PAYMENT_DAY]} payment day"
        )
        return {str(kind): count for kind, count in counts.items()}

    # ==========================================
    # Stale pending orders
    # ==========================================

    def check_stale_orders(self, now) -> int:
        from logistics.models import Order, OrderStatus

        min_tier = STALE_TIERS[-1][0]
        pending = Order.objects.filter(
            status=OrderStatus.PENDING,
            created_at__lte=now - timedelta(hours=min_tier),
        )

        open_tiers = {}
        for related_id, tier in Alert.objects.open().filter(
            kind=AlertKind.STALE_ORDER,
        ).values_list('related_id', 'tier'):
            open_tiers[related_id] = max(tier, open_tiers.get(related_id, 0))

        created = 0
        for order in pending:
            tier, priority = stale_tier_for(now - order.created_at)
            if open_tiers.get(order.id, 0) >= tier:
                continue

            with transaction.atomic():
                Alert.objects.open().filter(
                    kind=AlertKind.STALE_ORDER,
                    related_id=order.id,
                    tier__lt=tier,
                ).update(superseded=True)

                hours = int((now - order.created_at).total_seconds() // 3600)
                _, was_created = raise_alert(
                    AlertKind.STALE_ORDER,
                    related_id=order.id,
                    tier=tier,
                    priority=priority,
                    title=f"Pedido {order.order_number or order.id} lleva {hours}h pendiente",
                    message=f"{order.customer_name} - {order.address}",
                    zone=order.zone,
                    courier=order.courier,
                )
            created += int(was_created)
        return created

    # ==========================================
    # Couriers holding cash
    # ==========================================

    def check_courier_cash(self) -> int:
        from finance.models import CourierBalance

        created = 0
        for balance in CourierBalance.objects.filter(cash_collected__gt=0):
            _, was_created = raise_alert(
                AlertKind.COURIER_CASH,
                related_id=balance.courier,
                priority=AlertPriority.LOW,
                title=f"{balance.get_courier_display()} tiene efectivo por consignar",
                message=f"Efectivo en poder del domiciliario: ${balance.cash_collected:,.0f}",
                courier=balance.courier,
            )
            created += int(was_created)
        return created

    # ==========================================
    # Payment day reminder
    # ==========================================

    def check_payment_day(self, now) -> int:
        today = timezone.localtime(now).date()
        if today.day not in self.payment_days:
            return 0

        key = today.isoformat()
        if Alert.objects.filter(kind=AlertKind.PAYMENT_DAY, related_id=key).exists():
            return 0
        # Remembers the reminder even after its row has been cleared
        if not cache.add(f"{PAYMENT_DAY_CACHE_PREFIX}{key}", True, timeout=60 * 60 * 48):
            return 0

        _, was_created = raise_alert(
            AlertKind.PAYMENT_DAY,
            related_id=key,
            priority=AlertPriority.HIGH,
            audience=AlertAudience.SUPERADMIN,
            title="Hoy es día de pago a domiciliarios",
            message="Revisar saldos y pagar los domicilios acumulados.",
        )
        return int(was_created)

    # ==========================================
    # One-off events
    # ==========================================

    @staticmethod
    def order_cancelled(order):
        return raise_alert(
            AlertKind.ORDER_CANCELLED,
            related_id=order.id,
            priority=AlertPriority.HIGH,
            title=f"Pedido {order.order_number or order.id} cancelado",
            message=f"{order.customer_name} - {order.address}",
            zone=order.zone,
            courier=order.courier,
        )

    @staticmethod
    def order_delivered(order):
        return raise_alert(
            AlertKind.ORDER_DELIVERED,
            related_id=order.id,
            priority=AlertPriority.LOW,
            title=f"Pedido {order.order_number or order.id} entregado",
            message=f"Pago: {order.get_payment_method_display()}",
            zone=order.zone,
            courier=order.courier,
        )

    @staticmethod
    def orders_imported(count: int):
        if count <= 0:
            return None, False
        # One alert per import batch
        return raise_alert(
            AlertKind.ORDERS_IMPORTED,
            related_id=timezone.now().strftime('%Y%m%d%H%M%S%f'),
            priority=AlertPriority.LOW,
            title=f"{count} pedido(s) importados de Shopify",
        )
