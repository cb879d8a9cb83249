"""
FINANCE App - Courier Balance Ledger for DOMICILIOS

Settle / reverse / consign / pay operations on CourierBalance.

settle() and reverse_settle() never open their own top-level transaction:
they run inside the order-state transaction that triggered them, so the
order write and the balance write commit or roll back together.
"""

import logging
from decimal import Decimal

from django.core.files.storage import default_storage
from django.db import transaction
from django.utils import timezone

from core.access import is_known_courier
from core.exceptions import CourierNotFound, LedgerIntegrityError, UpstreamFailure
from core.transactions import atomic_with_retry
from finance.models import (
    CourierBalance, DepositReceipt, DepositStatus, LedgerEntry, LedgerEntryType,
)

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def _check_courier(courier: str) -> None:
    if not is_known_courier(courier):
        raise CourierNotFound(f"Domiciliario desconocido: {courier}")


def _lock_balance(courier: str, create: bool = True):
    """Lock the courier's balance row, creating it at zero when allowed."""
    qs = CourierBalance.objects.select_for_update()
    if create:
        balance, created = qs.get_or_create(courier=courier)
        if created:
            logger.info(f"[LEDGER] Opened balance for {courier}")
        return balance
    return qs.filter(courier=courier).first()


def _record(balance, entry_type, cash_delta=ZERO, fees_delta=ZERO,
            order=None, actor=None, description='') -> LedgerEntry:
    return LedgerEntry.objects.create(
        courier=balance.courier,
        entry_type=entry_type,
        order=order,
        cash_delta=cash_delta,
        fees_delta=fees_delta,
        cash_after=balance.cash_collected,
        fees_after=balance.fees_owed,
        description=description,
        created_by=actor,
    )


def upload_receipt(receipt_file, prefix: str = 'receipts') -> str:
    """
    Store a receipt file and return its URL.

    Raises:
        UpstreamFailure: the storage backend rejected the file.
    """
    stamp = int(timezone.now().timestamp() * 1000)
    name = f"{prefix}/{stamp}-{receipt_file.name}"
    try:
        stored_name = default_storage.save(name, receipt_file)
        return default_storage.url(stored_name)
    except OSError as e:
        logger.error(f"[RECEIPTS] Upload failed for {name}: {e}")
        raise UpstreamFailure(f"No se pudo subir el comprobante: {e}", retryable=True) from e


class LedgerService:
    """
    Service class for courier balance operations.

    All mutations lock the balance row (keyed on courier identity) so
    concurrent deliveries for the same courier serialize.
    """

    @staticmethod
    @transaction.atomic
    def settle(order, actor=None) -> CourierBalance:
        """
        Apply a delivery to the courier's balance.

        Cash orders add total_value to cash_collected; every order adds
        delivery_cost to fees_owed.
        """
        balance = _lock_balance(order.courier)

        cash_delta = order.total_value if order.is_cash else ZERO
        fees_delta = order.delivery_cost

        balance.cash_collected += cash_delta
        balance.fees_owed += fees_delta
        balance.save(update_fields=['cash_collected', 'fees_owed', 'updated_at'])

        _record(
            balance, LedgerEntryType.SETTLE,
            cash_delta=cash_delta, fees_delta=fees_delta,
            order=order, actor=actor,
            description=f"Entrega pedido {order.order_number or order.id}",
        )

        logger.info(
            f"[LEDGER] Settle {order.id} -> {balance.courier}: "
            f"cash +{cash_delta}, fees +{fees_delta} "
            f"(now cash={balance.cash_collected}, fees={balance.fees_owed})"
        )
        return balance

    @staticmethod
    @transaction.atomic
    def reverse_settle(order, actor=None) -> CourierBalance:
        """
        Undo the settlement of a delivered order that came back.

        Raises:
            LedgerIntegrityError: the courier has no balance, so the
                delivery was never settled.

        Balances are clamped at zero: if the cash was already consigned
        (or the fees already paid) the shortfall is logged and written in
        the entry description instead of going negative.
        """
        balance = _lock_balance(order.courier, create=False)
        if balance is None:
            logger.error(
                f"[LEDGER] Cannot reverse {order.id}: no balance for {order.courier}"
            )
            raise LedgerIntegrityError(
                f"No existe saldo para {order.courier}; el pedido {order.id} "
                f"figura entregado pero nunca fue liquidado."
            )

        # Undo what was applied at delivery time, even if payment metadata
        # was re-confirmed afterwards
        settled = order.ledger_entries.filter(entry_type=LedgerEntryType.SETTLE).order_by('-created_at').first()
        if settled is not None:
            wanted_cash, wanted_fees = settled.cash_delta, settled.fees_delta
        else:
            wanted_cash = order.total_value if order.is_cash else ZERO
            wanted_fees = order.delivery_cost

        cash_delta = min(wanted_cash, balance.cash_collected)
        fees_delta = min(wanted_fees, balance.fees_owed)

        notes = [f"Devolución pedido {order.order_number or order.id}"]
        if cash_delta < wanted_cash:
            notes.append(f"faltante efectivo {wanted_cash - cash_delta}")
        if fees_delta < wanted_fees:
            notes.append(f"faltante domicilios {wanted_fees - fees_delta}")
        if len(notes) > 1:
            logger.warning(f"[LEDGER] Reverse {order.id} clamped at zero: {'; '.join(notes[1:])}")

        balance.cash_collected -= cash_delta
        balance.fees_owed -= fees_delta
        balance.save(update_fields=['cash_collected', 'fees_owed', 'updated_at'])

        _record(
            balance, LedgerEntryType.REVERSE,
            cash_delta=-cash_delta, fees_delta=-fees_delta,
            order=order, actor=actor,
            description='; '.join(notes),
        )

        logger.info(
            f"[LEDGER] Reverse {order.id} -> {balance.courier}: "
            f"cash -{cash_delta}, fees -{fees_delta}"
        )
        return balance

    @staticmethod
    @atomic_with_retry
    def consign_cash(courier: str, actor=None) -> CourierBalance:
        """Courier handed over the cash they held: cash_collected -> 0."""
        _check_courier(courier)
        balance = _lock_balance(courier)

        cash_delta = -balance.cash_collected
        balance.cash_collected = ZERO
        balance.save(update_fields=['cash_collected', 'updated_at'])

        _record(
            balance, LedgerEntryType.CONSIGN,
            cash_delta=cash_delta, actor=actor,
            description="Efectivo consignado",
        )
        logger.info(f"[LEDGER] Cash consigned for {courier} ({-cash_delta})")
        return balance

    @staticmethod
    @atomic_with_retry
    def pay_fees(courier: str, actor=None) -> CourierBalance:
        """Company paid the accrued delivery fees: fees_owed -> 0."""
        _check_courier(courier)
        balance = _lock_balance(courier)

        fees_delta = -balance.fees_owed
        balance.fees_owed = ZERO
        balance.save(update_fields=['fees_owed', 'updated_at'])

        _record(
            balance, LedgerEntryType.PAY_FEES,
            fees_delta=fees_delta, actor=actor,
            description="Domicilios pagados",
        )
        logger.info(f"[LEDGER] Fees paid to {courier} ({-fees_delta})")
        return balance

    @staticmethod
    def get_balance(courier: str) -> CourierBalance:
        """Current balance, or an unsaved zero balance if none exists yet."""
        _check_courier(courier)
        balance = CourierBalance.objects.filter(courier=courier).first()
        return balance or CourierBalance(courier=courier)

    # Deposit receipts awaiting manual verification

    @staticmethod
    def submit_deposit(courier: str, receipt_file, actor=None) -> DepositReceipt:
        """
        Store a courier's deposit receipt for review.

        Does not touch cash_collected; consign_cash is a separate action.
        """
        _check_courier(courier)

        deposit = DepositReceipt(courier=courier, submitted_by=actor)
        stamp = int(timezone.now().timestamp() * 1000)
        try:
            deposit.receipt.save(f"{courier}-{stamp}-{receipt_file.name}", receipt_file, save=False)
        except OSError as e:
            logger.error(f"[RECEIPTS] Deposit upload failed for {courier}: {e}")
            raise UpstreamFailure(f"No se pudo subir el comprobante: {e}", retryable=True) from e
        deposit.save()

        logger.info(f"[RECEIPTS] Deposit receipt for {courier} stored at {deposit.receipt.name}; needs review")
        return deposit

    @staticmethod
    @transaction.atomic
    def review_deposit(deposit: DepositReceipt, approve: bool, actor=None) -> DepositReceipt:
        if deposit.status != DepositStatus.PENDING_REVIEW:
            raise ValueError(f"Comprobante ya revisado (estado: {deposit.status})")

        deposit.status = DepositStatus.VERIFIED if approve else DepositStatus.REJECTED
        deposit.reviewed_by = actor
        deposit.reviewed_at = timezone.now()
        deposit.save(update_fields=['status', 'reviewed_by', 'reviewed_at'])
        return deposit
