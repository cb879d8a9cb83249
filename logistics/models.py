"""
LOGISTICS App - Orders & Zones for DOMICILIOS

Handles: Orders, fixed zone/courier/cost tables, order status pipeline
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class CourierName(models.TextChoices):
    """Fixed set of couriers."""
    JAMES = 'JAMES', 'James'
    BELTRAN = 'BELTRAN', 'Beltran'
    ISMAEL = 'ISMAEL', 'Ismael'


class Zone(models.TextChoices):
    """Delivery zones. Each zone maps to one courier and one flat fee."""
    AREA_METROPOLITANA = 'AREA_METROPOLITANA', 'Área Metropolitana'
    SAN_ANTONIO = 'SAN_ANTONIO', 'San Antonio y Alrededores'
    ORIENTE = 'ORIENTE', 'Oriente'
    BOGOTA = 'BOGOTA', 'Bogotá'


DELIVERY_COSTS = {
    Zone.AREA_METROPOLITANA: Decimal('9000'),
    Zone.SAN_ANTONIO: Decimal('13500'),
    Zone.ORIENTE: Decimal('25000'),
    Zone.BOGOTA: Decimal('10000'),
}

ZONE_TO_COURIER = {
    Zone.AREA_METROPOLITANA: CourierName.JAMES,
    Zone.SAN_ANTONIO: CourierName.JAMES,
    Zone.ORIENTE: CourierName.BELTRAN,
    Zone.BOGOTA: CourierName.ISMAEL,
}


def couriers_for_zones(zones) -> list:
    """Couriers serving the given zones, without duplicates, in table order."""
    wanted = set(zones or [])
    couriers = []
    for zone, courier in ZONE_TO_COURIER.items():
        if zone in wanted and courier not in couriers:
            couriers.append(courier)
    return couriers


class PaymentMethod(models.TextChoices):
    """Payment method enumeration."""
    CASH = 'CASH', 'Efectivo'
    GATEWAY = 'GATEWAY', 'Wompi'
    TRANSFER = 'TRANSFER', 'Transferencia'


class PaymentStatus(models.TextChoices):
    PAID = 'PAID', 'Pagado'
    PENDING_PAYMENT = 'PENDING_PAYMENT', 'Pendiente de Pago'


class OrderStatus(models.TextChoices):
    """Order status pipeline."""
    PENDING = 'PENDING', 'Pendiente'
    PACKED = 'PACKED', 'Empacado'
    IN_TRANSIT = 'IN_TRANSIT', 'En Ruta'
    DELIVERED = 'DELIVERED', 'Entregado'
    CANCELLED = 'CANCELLED', 'Cancelado'
    RETURNED = 'RETURNED', 'Devolución'


def generate_order_id() -> str:
    return f"man-{uuid.uuid4().hex[:12]}"


class Order(models.Model):
    """
    Customer order moving through the status pipeline.

    Courier and delivery cost are derived from the zone when the order
    is first saved and are frozen afterwards. Status changes go through
    logistics.services.state_machine only.
    """

    id = models.CharField(
        primary_key=True,
        max_length=64,
        default=generate_order_id,
        editable=False
    )
    order_number = models.CharField(
        max_length=50,
        blank=True,
        verbose_name="Número de pedido"
    )

    # Customer
    customer_name = models.CharField(max_length=150, verbose_name="Cliente")
    phone = models.CharField(max_length=30, blank=True, verbose_name="Teléfono")
    address = models.CharField(max_length=255, blank=True, verbose_name="Dirección")
    customer_id = models.CharField(max_length=64, blank=True, verbose_name="ID cliente")
    line_items = models.JSONField(default=list, blank=True, verbose_name="Productos")

    # Commercial
    total_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        verbose_name="Valor total (COP)"
    )
    delivery_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        verbose_name="Costo domicilio (COP)"
    )

    # Payment
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
        verbose_name="Método de pago"
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING_PAYMENT,
        verbose_name="Estado de pago"
    )
    transfer_receipt_url = models.CharField(
        max_length=500,
        blank=True,
        verbose_name="Comprobante de transferencia"
    )

    # Logistics
    zone = models.CharField(max_length=30, choices=Zone.choices, verbose_name="Zona")
    courier = models.CharField(
        max_length=20,
        choices=CourierName.choices,
        blank=True,
        verbose_name="Domiciliario"
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        verbose_name="Estado"
    )

    # Timestamps
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Pedido"
        verbose_name_plural = "Pedidos"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='order_status_created_idx'),
            models.Index(fields=['courier', 'status'], name='order_courier_status_idx'),
            models.Index(fields=['zone', 'status'], name='order_zone_status_idx'),
        ]

    def __str__(self):
        return f"Pedido {self.order_number or self.id} - {self.status}"

    def save(self, *args, **kwargs):
        # Zone decides courier and fee, once
        if self._state.adding:
            zone = Zone(self.zone)
            self.courier = ZONE_TO_COURIER[zone]
            self.delivery_cost = DELIVERY_COSTS[zone]
        super().save(*args, **kwargs)

    @property
    def created_at_ms(self) -> int:
        return int(self.created_at.timestamp() * 1000)

    @property
    def is_cash(self) -> bool:
        return self.payment_method == PaymentMethod.CASH

    @property
    def is_delivered(self) -> bool:
        return self.status == OrderStatus.DELIVERED
