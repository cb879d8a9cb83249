"""
FINANCE App - Courier Balances & Ledger for DOMICILIOS

Handles: per-courier running balance, ledger audit trail, deposit receipts
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from logistics.models import CourierName


class CourierBalance(models.Model):
    """
    Running balance for one courier.

    - cash_collected: customer cash the courier holds, owed to the company
    - fees_owed: delivery fees the company owes the courier

    Only mutated through finance.services.LedgerService.
    """

    courier = models.CharField(
        primary_key=True,
        max_length=20,
        choices=CourierName.choices,
        verbose_name="Domiciliario"
    )
    cash_collected = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Efectivo por consignar (COP)"
    )
    fees_owed = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Domicilios por pagar (COP)"
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Saldo de domiciliario"
        verbose_name_plural = "Saldos de domiciliarios"
        ordering = ['courier']

    def __str__(self):
        return f"{self.courier} | efectivo {self.cash_collected} | domicilios {self.fees_owed}"

    @property
    def has_cash_pending(self) -> bool:
        return self.cash_collected > 0


class LedgerEntryType(models.TextChoices):
    SETTLE = 'SETTLE', 'Liquidación de entrega'
    REVERSE = 'REVERSE', 'Reverso por devolución'
    CONSIGN = 'CONSIGN', 'Consignación de efectivo'
    PAY_FEES = 'PAY_FEES', 'Pago de domicilios'


class LedgerEntry(models.Model):
    """
    Immutable record of one balance movement.

    Every ledger mutation writes exactly one entry with the applied
    deltas and the resulting balance.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    courier = models.CharField(
        max_length=20,
        choices=CourierName.choices,
        verbose_name="Domiciliario"
    )
    entry_type = models.CharField(
        max_length=20,
        choices=LedgerEntryType.choices,
        verbose_name="Tipo"
    )
    order = models.ForeignKey(
        'logistics.Order',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='ledger_entries',
        verbose_name="Pedido"
    )

    cash_delta = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    fees_delta = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    cash_after = models.DecimalField(max_digits=14, decimal_places=2)
    fees_after = models.DecimalField(max_digits=14, decimal_places=2)

    description = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ledger_entries',
        verbose_name="Registrado por"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Movimiento de saldo"
        verbose_name_plural = "Movimientos de saldo"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['courier', 'created_at'], name='ledger_courier_created_idx'),
            models.Index(fields=['entry_type'], name='ledger_entry_type_idx'),
        ]

    def __str__(self):
        return f"{self.courier} | {self.entry_type} | efectivo {self.cash_delta:+} | domicilios {self.fees_delta:+}"


class DepositStatus(models.TextChoices):
    PENDING_REVIEW = 'PENDING_REVIEW', 'Pendiente de verificación'
    VERIFIED = 'VERIFIED', 'Verificado'
    REJECTED = 'REJECTED', 'Rechazado'


class DepositReceipt(models.Model):
    """
    Proof of a cash deposit uploaded by a courier.

    Purely a review record: it never changes the balance. An administrator
    checks it and consigns the cash as a separate action.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    courier = models.CharField(
        max_length=20,
        choices=CourierName.choices,
        verbose_name="Domiciliario"
    )
    receipt = models.FileField(upload_to='receipts/%Y/%m/', verbose_name="Comprobante")
    status = models.CharField(
        max_length=20,
        choices=DepositStatus.choices,
        default=DepositStatus.PENDING_REVIEW,
        verbose_name="Estado"
    )

    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='submitted_deposits',
        verbose_name="Enviado por"
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_deposits',
        verbose_name="Revisado por"
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Comprobante de consignación"
        verbose_name_plural = "Comprobantes de consignación"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['courier', 'status'], name='deposit_courier_status_idx'),
        ]

    def __str__(self):
        return f"Comprobante {self.courier} - {self.status}"

    @property
    def receipt_url(self) -> str:
        return self.receipt.url if self.receipt else ''
