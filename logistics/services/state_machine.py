"""
LOGISTICS App - Order State Machine for DOMICILIOS

Status changes for orders and the ledger side effects they trigger.

Every operation locks the order row and runs in one transaction together
with the courier balance write, so a delivery is never half-applied.
Invalid transitions are not errors: they come back with changed=False.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from core.exceptions import BackofficeError, OrderNotFound
from core.transactions import atomic_with_retry
from finance.services import LedgerService
from logistics.models import Order, OrderStatus, PaymentMethod, PaymentStatus

logger = logging.getLogger(__name__)


# ============================================
# TRANSITION TABLE
# ============================================

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PACKED, OrderStatus.CANCELLED},
    OrderStatus.PACKED: {OrderStatus.IN_TRANSIT, OrderStatus.CANCELLED},
    OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
}

ABSORBING_STATUSES = {OrderStatus.CANCELLED, OrderStatus.RETURNED}

# Couriers only take packed orders out; delivery goes through deliver_order
COURIER_TRANSITIONS = {
    OrderStatus.PACKED: {OrderStatus.IN_TRANSIT},
}

INVALID_TRANSITION = 'INVALID_TRANSITION'


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(OrderStatus(current), set())


def courier_can_transition(current: str, target: str) -> bool:
    return target in COURIER_TRANSITIONS.get(OrderStatus(current), set())


# ============================================
# PAYMENT CONFIRMATION
# ============================================

@dataclass(frozen=True)
class CashConfirmation:
    """Customer paid the courier in cash."""

    @property
    def method(self) -> str:
        return PaymentMethod.CASH

    @property
    def receipt_url(self) -> str:
        return ''


@dataclass(frozen=True)
class TransferConfirmation:
    """Customer paid by bank transfer; a receipt reference is mandatory."""
    receipt_url: str

    def __post_init__(self):
        if not (self.receipt_url or '').strip():
            raise ValueError("Una transferencia requiere el comprobante de pago.")

    @property
    def method(self) -> str:
        return PaymentMethod.TRANSFER


def build_confirmation(method: str, receipt_url: str = ''):
    """Map an API payload onto a confirmation variant. Raises ValueError."""
    if method == PaymentMethod.CASH:
        return CashConfirmation()
    if method == PaymentMethod.TRANSFER:
        return TransferConfirmation(receipt_url=receipt_url)
    raise ValueError(f"Método de pago no válido para entrega: {method}")


# ============================================
# RESULTS
# ============================================

@dataclass
class TransitionResult:
    order: Order
    changed: bool


@dataclass
class BulkResult:
    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str, str]] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            'succeeded': self.succeeded,
            'failed': [
                {'id': order_id, 'code': code, 'detail': detail}
                for order_id, code, detail in self.failed
            ],
        }


# ============================================
# OPERATIONS
# ============================================

def _lock_order(order_id: str) -> Order:
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFound(f"El pedido {order_id} no existe.")


@atomic_with_retry
def set_status(order_id: str, new_status: str, actor=None) -> TransitionResult:
    """
    Move an order to ``new_status`` if the transition table allows it.

    Entering DELIVERED settles the courier balance; DELIVERED -> RETURNED
    reverses that settlement.

    Raises:
        OrderNotFound: no order with that id.
        ValueError: ``new_status`` is not a known status.
    """
    target = OrderStatus(new_status)
    order = _lock_order(order_id)
    current = order.status

    if not can_transition(current, target):
        logger.info(f"[ORDERS] Ignored {order.id}: {current} -> {target}")
        return TransitionResult(order=order, changed=False)

    order.status = target
    order.save(update_fields=['status', 'updated_at'])

    if target == OrderStatus.DELIVERED:
        LedgerService.settle(order, actor=actor)
    elif target == OrderStatus.RETURNED:
        LedgerService.reverse_settle(order, actor=actor)

    logger.info(f"[ORDERS] {order.id}: {current} -> {target}")
    return TransitionResult(order=order, changed=True)


@atomic_with_retry
def deliver_order(order_id: str, confirmation, actor=None) -> TransitionResult:
    """
    Confirm delivery with the payment actually collected.

    Settles only the first time; re-confirming a delivered order just
    refreshes its payment data. Cancelled and returned orders are left as
    they are.
    """
    order = _lock_order(order_id)
    current = order.status

    if current in ABSORBING_STATUSES:
        logger.info(f"[ORDERS] Ignored delivery of {order.id}: order is {current}")
        return TransitionResult(order=order, changed=False)

    before = (order.payment_method, order.payment_status, order.transfer_receipt_url)

    order.payment_method = confirmation.method
    order.payment_status = PaymentStatus.PAID
    order.status = OrderStatus.DELIVERED
    if confirmation.receipt_url:
        order.transfer_receipt_url = confirmation.receipt_url
    order.save(update_fields=[
        'payment_method', 'payment_status', 'status', 'transfer_receipt_url', 'updated_at'
    ])

    if current != OrderStatus.DELIVERED:
        LedgerService.settle(order, actor=actor)
        logger.info(f"[ORDERS] {order.id}: {current} -> DELIVERED ({order.payment_method})")
        return TransitionResult(order=order, changed=True)

    after = (order.payment_method, order.payment_status, order.transfer_receipt_url)
    logger.info(f"[ORDERS] {order.id} delivery re-confirmed, ledger untouched")
    return TransitionResult(order=order, changed=before != after)


def bulk_set_status(order_ids, new_status: str, actor=None) -> BulkResult:
    """
    Apply set_status to each id independently.

    One failing order never rolls back the others; failures are reported
    as (id, code, detail).
    """
    target = OrderStatus(new_status)
    result = BulkResult()

    for order_id in dict.fromkeys(order_ids):
        try:
            outcome = set_status(order_id, target, actor=actor)
        except BackofficeError as e:
            logger.warning(f"[ORDERS] Bulk {target} failed for {order_id}: {e.code}")
            result.failed.append((order_id, e.code, str(e)))
            continue

        if outcome.changed:
            result.succeeded.append(order_id)
        else:
            result.failed.append((
                order_id,
                INVALID_TRANSITION,
                f"{outcome.order.status} -> {target} no permitido",
            ))

    logger.info(
        f"[ORDERS] Bulk {target}: {len(result.succeeded)} ok, {len(result.failed)} failed"
    )
    return result
