"""
Integrations App - Shopify import service

Turns Shopify order payloads into Orders. Zone is inferred from the
address text; courier and delivery cost follow from the zone.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil import parser as date_parser
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from logistics.models import (
    DELIVERY_COSTS, ZONE_TO_COURIER, Order, OrderStatus,
    PaymentMethod, PaymentStatus, Zone,
)

logger = logging.getLogger(__name__)


# ============================================
# ZONE LOOKUP
# ============================================

METRO_CITIES = ['medellin', 'medellín', 'envigado', 'sabaneta', 'bello', 'la estrella', 'itagui', 'itagüí']
SAN_ANTONIO_PLACES = ['san antonio de prado', 'caldas', 'copacabana', 'girardota', 'san cristobal']
ORIENTE_PLACES = ['rionegro', 'llanogrande', 'el retiro', 'la ceja', 'guarne', 'marinilla', 'carmen de viboral', 'barbosa']
BOGOTA_CITIES = ['bogota', 'bogotá']

ANONYMOUS_CUSTOMER = 'Cliente Anónimo'
UNKNOWN = 'N/A'


def resolve_zone(address, city) -> str:
    """
    Match address/city text against the lookup table.

    Metro and Bogotá match on the city only; San Antonio and Oriente also
    match on the street address. Anything unmatched is Área Metropolitana.
    """
    city = str(city or '').lower()
    address = str(address or '').lower()

    if any(c in city for c in METRO_CITIES):
        return Zone.AREA_METROPOLITANA
    if any(p in address or p in city for p in SAN_ANTONIO_PLACES):
        return Zone.SAN_ANTONIO
    if any(p in address or p in city for p in ORIENTE_PLACES):
        return Zone.ORIENTE
    if any(c in city for c in BOGOTA_CITIES):
        return Zone.BOGOTA
    return Zone.AREA_METROPOLITANA


def _first(*values):
    for value in values:
        if value:
            return value
    return None


def _parse_total(raw) -> Decimal:
    try:
        total = Decimal(str(raw))
    except (InvalidOperation, TypeError):
        raise ValueError(f"total_price inválido: {raw!r}")
    if not total.is_finite() or total < 0:
        raise ValueError(f"total_price inválido: {raw!r}")
    try:
        return total.quantize(Decimal('0.01'))
    except InvalidOperation:
        raise ValueError(f"total_price inválido: {raw!r}")


def _parse_created_at(raw):
    if not raw:
        return timezone.now()
    created_at = date_parser.isoparse(str(raw))
    if timezone.is_naive(created_at):
        created_at = timezone.make_aware(created_at)
    return created_at


def transform_shopify_order(payload) -> Optional[dict]:
    """
    Map a Shopify order payload onto Order field values.

    Returns None when the order has no usable address (not deliverable).

    Raises:
        ValueError: the payload is malformed (no id, bad total, bad date).
    """
    if not isinstance(payload, dict):
        raise ValueError("El pedido no es un objeto JSON")
    if payload.get('id') in (None, ''):
        raise ValueError("Pedido de Shopify sin id")

    customer = payload.get('customer') or {}
    shipping = payload.get('shipping_address') or {}
    billing = payload.get('billing_address') or {}

    address_info = _first(shipping, billing, customer.get('default_address'))
    if not address_info:
        logger.warning(
            f"[SHOPIFY] Skipping order {payload.get('id')} ({payload.get('name')}): no address"
        )
        return None

    zone = resolve_zone(address_info.get('address1'), address_info.get('city'))
    is_paid = str(payload.get('financial_status') or '').lower() == 'paid'

    full_name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip()
    customer_name = _first(
        full_name,
        shipping.get('name'),
        billing.get('name'),
        payload.get('email'),
    ) or ANONYMOUS_CUSTOMER

    phone = _first(
        payload.get('phone'),
        shipping.get('phone'),
        billing.get('phone'),
        customer.get('phone'),
    ) or UNKNOWN

    address = ', '.join(
        str(part) for part in (
            address_info.get('address1'),
            address_info.get('address2'),
            address_info.get('city'),
            address_info.get('province_code'),
            address_info.get('country_code'),
        ) if part
    )

    line_items = [
        {
            'name': str(item.get('title') or 'Producto sin nombre'),
            'quantity': int(item.get('quantity') or 1),
        }
        for item in (payload.get('line_items') or [])
        if isinstance(item, dict)
    ]

    return {
        'id': f"shopify-{payload['id']}",
        'order_number': str(payload.get('name') or '')[:50],
        'customer_name': str(customer_name)[:150],
        'phone': str(phone)[:30],
        'address': address[:255],
        'customer_id': str(customer['id']) if customer.get('id') else UNKNOWN,
        'total_value': _parse_total(payload.get('total_price')),
        'payment_method': PaymentMethod.GATEWAY if is_paid else PaymentMethod.CASH,
        'payment_status': PaymentStatus.PAID if is_paid else PaymentStatus.PENDING_PAYMENT,
        'zone': zone,
        'courier': ZONE_TO_COURIER[zone],
        'delivery_cost': DELIVERY_COSTS[zone],
        'status': OrderStatus.PENDING,
        'created_at': _parse_created_at(payload.get('created_at')),
        'line_items': line_items,
    }


@transaction.atomic
def import_orders(payloads) -> dict:
    """
    Create Orders from Shopify payloads.

    Malformed or address-less records are skipped, ids that already exist
    are left untouched (a reimport never resets an order's status). Each
    record is validated and saved in its own savepoint, so a value the
    columns cannot hold only skips that record.

    Returns:
        {'imported': n, 'skipped': n, 'duplicates': n}
    """
    summary = {'imported': 0, 'skipped': 0, 'duplicates': 0}

    candidates = []
    for payload in payloads or []:
        try:
            data = transform_shopify_order(payload)
        except (ValueError, TypeError, AttributeError, OverflowError) as e:
            logger.warning(f"[SHOPIFY] Malformed order skipped: {e}")
            data = None
        if data is None:
            summary['skipped'] += 1
            continue
        candidates.append(data)

    existing = set(
        Order.objects.filter(pk__in=[c['id'] for c in candidates]).values_list('pk', flat=True)
    )
    for data in candidates:
        if data['id'] in existing:
            summary['duplicates'] += 1
            continue
        order = Order(**data)
        try:
            order.full_clean(validate_unique=False)
            with transaction.atomic():
                order.save(force_insert=True)
        except (ValidationError, DatabaseError) as e:
            logger.warning(f"[SHOPIFY] Order {data['id'][:80]} skipped: {e}")
            summary['skipped'] += 1
            continue
        existing.add(data['id'])
        summary['imported'] += 1

    logger.info(
        f"[SHOPIFY] Import: {summary['imported']} imported, "
        f"{summary['skipped']} skipped, {summary['duplicates']} duplicates"
    )

    if summary['imported']:
        from alerts.engine import AlertEngine
        count = summary['imported']
        transaction.on_commit(lambda: AlertEngine.orders_imported(count))

    return summary


def sync_from_store(client=None, max_pages: int = 5, page_size: int = 50) -> dict:
    """
    Pull recent orders from the store and import the new ones.

    Orders come newest first, so paging stops at the first page that
    brings nothing new.
    """
    from integrations.shopify_client import ShopifyClient

    client = client or ShopifyClient()
    totals = {'imported': 0, 'skipped': 0, 'duplicates': 0, 'pages': 0}
    page_info = None

    for _ in range(max_pages):
        page = client.fetch_orders(limit=page_size, page_info=page_info)
        result = import_orders(page['orders'])
        totals['pages'] += 1
        for key in ('imported', 'skipped', 'duplicates'):
            totals[key] += result[key]

        page_info = page['page_info'].get('next')
        if not result['imported'] or not page_info:
            break

    logger.info(f"[SHOPIFY] Sync finished: {totals}")
    return totals
