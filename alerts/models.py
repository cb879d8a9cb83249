"""
ALERTS App - Operational alerts for DOMICILIOS

An alert is identified by (kind, related_id, tier). At most one open
alert exists per key; escalation marks the lower tier superseded and
opens a new row.
"""

import uuid

from django.db import models
from django.db.models import Q

from core.access import allowed_couriers, allowed_zones
from core.models import UserRole
from logistics.models import CourierName, Zone


class AlertKind(models.TextChoices):
    STALE_ORDER = 'STALE_ORDER', 'Pedido pendiente sin movimiento'
    COURIER_CASH = 'COURIER_CASH', 'Efectivo por consignar'
    PAYMENT_DAY = 'PAYMENT_DAY', 'Día de pago'
    ORDER_CANCELLED = 'ORDER_CANCELLED', 'Pedido cancelado'
    ORDER_DELIVERED = 'ORDER_DELIVERED', 'Pedido entregado'
    ORDERS_IMPORTED = 'ORDERS_IMPORTED', 'Pedidos importados'


# Alerts that stay up while a condition holds, as opposed to one-off events
CONDITION_KINDS = (AlertKind.STALE_ORDER, AlertKind.COURIER_CASH, AlertKind.PAYMENT_DAY)


class AlertPriority(models.TextChoices):
    LOW = 'LOW', 'Baja'
    HIGH = 'HIGH', 'Alta'


class AlertAudience(models.TextChoices):
    ALL = 'ALL', 'Todos'
    SUPERADMIN = 'SUPERADMIN', 'Solo SuperAdmin'


class AlertQuerySet(models.QuerySet):

    def open(self):
        return self.filter(is_resolved=False, superseded=False)

    def visible_to(self, user):
        """Alerts the user may see, following the role scoping rules."""
        if user.role == UserRole.SUPERADMIN:
            return self
        qs = self.exclude(audience=AlertAudience.SUPERADMIN)

        if user.role == UserRole.LOGISTICS:
            return qs.filter(
                Q(zone__in=allowed_zones(user))
                | Q(zone='', courier__in=allowed_couriers(user))
                | Q(zone='', courier='')
            )
        if user.role == UserRole.COURIER and user.courier_name:
            return qs.filter(zone='', courier=user.courier_name)
        return qs.none()

    def clearable(self):
        """
        Read alerts that can be deleted.

        Open HIGH alerts and open condition alerts survive a clear.
        """
        keep = Q(is_resolved=False, superseded=False) & (
            Q(priority=AlertPriority.HIGH) | Q(kind__in=CONDITION_KINDS)
        )
        return self.filter(is_read=True).exclude(keep)


class Alert(models.Model):
    """Advisory alert shown on the back-office dashboard."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    kind = models.CharField(max_length=20, choices=AlertKind.choices, verbose_name="Tipo")
    related_id = models.CharField(
        max_length=64,
        blank=True,
        help_text="Pedido, domiciliario o fecha a la que se refiere la alerta"
    )
    tier = models.PositiveSmallIntegerField(
        default=0,
        help_text="Nivel de escalamiento (horas para pedidos pendientes)"
    )
    priority = models.CharField(
        max_length=10,
        choices=AlertPriority.choices,
        default=AlertPriority.LOW,
        verbose_name="Prioridad"
    )
    audience = models.CharField(
        max_length=20,
        choices=AlertAudience.choices,
        default=AlertAudience.ALL,
        verbose_name="Audiencia"
    )

    title = models.CharField(max_length=200)
    message = models.TextField(blank=True)

    # Scoping
    zone = models.CharField(max_length=30, choices=Zone.choices, blank=True)
    courier = models.CharField(max_length=20, choices=CourierName.choices, blank=True)

    is_read = models.BooleanField(default=False)
    is_resolved = models.BooleanField(default=False)
    superseded = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    objects = AlertQuerySet.as_manager()

    class Meta:
        verbose_name = "Alerta"
        verbose_name_plural = "Alertas"
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['kind', 'related_id', 'tier'],
                condition=Q(is_resolved=False, superseded=False),
                name='unique_open_alert',
            ),
        ]
        indexes = [
            models.Index(fields=['kind', 'related_id'], name='alert_kind_related_idx'),
            models.Index(fields=['is_resolved', 'superseded'], name='alert_open_idx'),
        ]

    def __str__(self):
        return f"[{self.priority}] {self.title}"

    @property
    def is_open(self) -> bool:
        return not self.is_resolved and not self.superseded
