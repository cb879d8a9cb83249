"""
DOMICILIOS Integrations Tests
=============================

Tests for:
1. Zone lookup from address text
2. Shopify payload -> Order mapping
3. Batch import (skips, duplicates, alert)
4. Shopify client error mapping and pagination
5. Store sync, Celery task and API views
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from alerts.models import Alert, AlertKind
from core.exceptions import UpstreamFailure
from core.models import User, UserRole
from integrations.services import (
    ANONYMOUS_CUSTOMER, import_orders, resolve_zone, sync_from_store, transform_shopify_order,
)
from integrations.shopify_client import ShopifyClient, mask_secret, parse_link_header
from integrations.tasks import sync_shopify_orders
from logistics.models import (
    CourierName, Order, OrderStatus, PaymentMethod, PaymentStatus, Zone,
)


def shopify_order(order_id=5001, **overrides):
    payload = {
        'id': order_id,
        'name': f'#{order_id}',
        'created_at': '2024-03-01T10:15:00-05:00',
        'email': 'cliente@example.com',
        'phone': None,
        'financial_status': 'pending',
        'total_price': '89900.00',
        'customer': {
            'id': 777,
            'first_name': 'Carolina',
            'last_name': 'Restrepo',
            'phone': '+573001112233',
        },
        'shipping_address': {
            'name': 'Carolina Restrepo',
            'address1': 'Calle 49 # 50-21',
            'address2': 'Apto 301',
            'city': 'Medellín',
            'province_code': 'ANT',
            'country_code': 'CO',
            'phone': '+573004445566',
        },
        'line_items': [
            {'title': 'Caja de galletas', 'quantity': 2},
            {'title': 'Café de origen', 'quantity': 1},
        ],
    }
    payload.update(overrides)
    return payload


def fake_response(status_code=200, json_data=None, content_type='application/json', link=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = str(json_data)
    response.headers = {'Content-Type': content_type}
    if link:
        response.headers['Link'] = link
    if json_data is None:
        response.json.side_effect = ValueError('No JSON object could be decoded')
    else:
        response.json.return_value = json_data
    return response


class TestResolveZone(TestCase):
    """Zone lookup from city / street text."""

    def test_metro_cities(self):
        self.assertEqual(resolve_zone('Cra 43A # 1-50', 'Envigado'), Zone.AREA_METROPOLITANA)
        self.assertEqual(resolve_zone('', 'MEDELLÍN'), Zone.AREA_METROPOLITANA)

    def test_san_antonio(self):
        self.assertEqual(resolve_zone('Calle 10', 'Caldas'), Zone.SAN_ANTONIO)
        self.assertEqual(resolve_zone('Vereda San Antonio de Prado', 'Antioquia'), Zone.SAN_ANTONIO)

    def test_oriente(self):
        self.assertEqual(resolve_zone('Calle 50', 'Rionegro'), Zone.ORIENTE)
        self.assertEqual(resolve_zone('Llanogrande km 3', ''), Zone.ORIENTE)

    def test_bogota(self):
        self.assertEqual(resolve_zone('Av 68 # 20-10', 'Bogotá D.C.'), Zone.BOGOTA)

    def test_city_wins_over_street(self):
        """A metro city beats an Oriente street name."""
        self.assertEqual(resolve_zone('Barrio Rionegro', 'Bello'), Zone.AREA_METROPOLITANA)

    def test_unmatched_defaults_to_metro(self):
        self.assertEqual(resolve_zone('Calle 5', 'Cali'), Zone.AREA_METROPOLITANA)
        self.assertEqual(resolve_zone(None, None), Zone.AREA_METROPOLITANA)


class TestTransformShopifyOrder(TestCase):

    def test_full_payload(self):
        data = transform_shopify_order(shopify_order())

        self.assertEqual(data['id'], 'shopify-5001')
        self.assertEqual(data['order_number'], '#5001')
        self.assertEqual(data['customer_name'], 'Carolina Restrepo')
        self.assertEqual(data['phone'], '+573004445566')
        self.assertEqual(data['address'], 'Calle 49 # 50-21, Apto 301, Medellín, ANT, CO')
        self.assertEqual(data['customer_id'], '777')
        self.assertEqual(data['total_value'], Decimal('89900.00'))
        self.assertEqual(data['zone'], Zone.AREA_METROPOLITANA)
        self.assertEqual(data['courier'], CourierName.JAMES)
        self.assertEqual(data['delivery_cost'], Decimal('9000'))
        self.assertEqual(data['payment_method'], PaymentMethod.CASH)
        self.assertEqual(data['payment_status'], PaymentStatus.PENDING_PAYMENT)
        self.assertEqual(data['status'], OrderStatus.PENDING)
        self.assertEqual(data['line_items'], [
            {'name': 'Caja de galletas', 'quantity': 2},
            {'name': 'Café de origen', 'quantity': 1},
        ])

    def test_paid_order(self):
        data = transform_shopify_order(shopify_order(financial_status='paid'))
        self.assertEqual(data['payment_method'], PaymentMethod.GATEWAY)
        self.assertEqual(data['payment_status'], PaymentStatus.PAID)

    def test_name_and_phone_cascade(self):
        """Falls back through shipping, billing and email."""
        payload = shopify_order(customer=None, shipping_address=None, billing_address={
            'address1': 'Calle 1', 'city': 'Rionegro', 'phone': '3100000000',
        })
        data = transform_shopify_order(payload)
        self.assertEqual(data['customer_name'], 'cliente@example.com')
        self.assertEqual(data['phone'], '3100000000')
        self.assertEqual(data['customer_id'], 'N/A')
        self.assertEqual(data['zone'], Zone.ORIENTE)

    def test_anonymous_customer(self):
        payload = shopify_order(customer={}, email=None, shipping_address={
            'address1': 'Calle 1', 'city': 'Bogotá',
        })
        data = transform_shopify_order(payload)
        self.assertEqual(data['customer_name'], ANONYMOUS_CUSTOMER)
        self.assertEqual(data['phone'], 'N/A')

    def test_no_address_is_not_deliverable(self):
        payload = shopify_order(shipping_address=None, customer={'first_name': 'Ana'})
        self.assertIsNone(transform_shopify_order(payload))

    def test_malformed(self):
        with self.assertRaises(ValueError):
            transform_shopify_order(shopify_order(id=None))
        with self.assertRaises(ValueError):
            transform_shopify_order(shopify_order(total_price='gratis'))
        with self.assertRaises(ValueError):
            transform_shopify_order('no soy un pedido')


class TestImportOrders(TestCase):

    def test_import_counts(self):
        payloads = [
            shopify_order(1),
            shopify_order(2, shipping_address={'address1': 'Calle 3', 'city': 'Guarne'}),
            shopify_order(3, shipping_address=None, customer=None),
            shopify_order(4, total_price='NaN'),
            'basura',
        ]
        summary = import_orders(payloads)

        self.assertEqual(summary, {'imported': 2, 'skipped': 3, 'duplicates': 0})
        order = Order.objects.get(pk='shopify-2')
        self.assertEqual(order.courier, CourierName.BELTRAN)
        self.assertEqual(order.delivery_cost, Decimal('25000'))

    def test_oversized_values_only_skip_their_record(self):
        """A total or id the columns cannot hold is skipped; the rest of the batch is kept."""
        payloads = [
            shopify_order(40),
            shopify_order(41, total_price='99999999999999'),
            shopify_order('9' * 70),
            shopify_order(42),
        ]
        summary = import_orders(payloads)

        self.assertEqual(summary, {'imported': 2, 'skipped': 2, 'duplicates': 0})
        self.assertCountEqual(
            Order.objects.values_list('pk', flat=True), ['shopify-40', 'shopify-42']
        )

    def test_reimport_never_resets_status(self):
        """Existing ids are duplicates and keep their progress."""
        import_orders([shopify_order(10)])
        Order.objects.filter(pk='shopify-10').update(status=OrderStatus.PACKED)

        summary = import_orders([shopify_order(10), shopify_order(10), shopify_order(11)])

        self.assertEqual(summary, {'imported': 1, 'skipped': 0, 'duplicates': 2})
        self.assertEqual(Order.objects.get(pk='shopify-10').status, OrderStatus.PACKED)

    def test_import_raises_alert(self):
        with self.captureOnCommitCallbacks(execute=True):
            import_orders([shopify_order(20), shopify_order(21)])

        alert = Alert.objects.get(kind=AlertKind.ORDERS_IMPORTED)
        self.assertIn('2 pedido(s)', alert.title)

    def test_nothing_imported_no_alert(self):
        with self.captureOnCommitCallbacks(execute=True):
            import_orders([shopify_order(30, shipping_address=None, customer=None)])
        self.assertFalse(Alert.objects.exists())


class TestShopifyClient(TestCase):
    """Shopify Admin API failures map to stable codes."""

    def setUp(self):
        self.client = ShopifyClient()

    def fetch_error(self, response=None, side_effect=None):
        with patch('integrations.shopify_client.requests.get', return_value=response, side_effect=side_effect):
            with self.assertRaises(UpstreamFailure) as ctx:
                self.client.fetch_orders()
        return ctx.exception

    def test_fetch_orders(self):
        link = (
            '<https://tienda-test.myshopify.com/admin/api/2024-10/orders.json?limit=50&page_info=abc123>; '
            'rel="next"'
        )
        response = fake_response(json_data={'orders': [shopify_order()]}, link=link)

        with patch('integrations.shopify_client.requests.get', return_value=response) as mock_get:
            page = self.client.fetch_orders(limit=50)

        self.assertEqual(len(page['orders']), 1)
        self.assertEqual(page['page_info'], {'next': 'abc123', 'prev': None})
        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], 'https://tienda-test.myshopify.com/admin/api/2024-10/orders.json')
        self.assertEqual(kwargs['headers']['X-Shopify-Access-Token'], 'shpat_test')
        self.assertEqual(kwargs['params']['status'], 'any')

    def test_page_info_drops_filters(self):
        response = fake_response(json_data={'orders': []})
        with patch('integrations.shopify_client.requests.get', return_value=response) as mock_get:
            self.client.fetch_orders(page_info='abc123')
        params = mock_get.call_args[1]['params']
        self.assertEqual(params['page_info'], 'abc123')
        self.assertNotIn('status', params)

    @override_settings(SHOPIFY_ADMIN_TOKEN='')
    def test_missing_config(self):
        client = ShopifyClient()
        with patch('integrations.shopify_client.requests.get') as mock_get:
            with self.assertRaises(UpstreamFailure) as ctx:
                client.fetch_orders()
        self.assertEqual(ctx.exception.code, 'MISSING_CONFIG')
        mock_get.assert_not_called()

    def test_network_error(self):
        error = self.fetch_error(side_effect=requests.ConnectionError('timeout'))
        self.assertEqual(error.code, 'NETWORK_ERROR')
        self.assertTrue(error.retryable)

    def test_unauthorized(self):
        error = self.fetch_error(fake_response(401, {'errors': 'Invalid API key'}))
        self.assertEqual(error.code, 'UNAUTHORIZED')
        self.assertFalse(error.retryable)

    def test_missing_scope(self):
        error = self.fetch_error(fake_response(403, {'errors': 'Forbidden'}))
        self.assertEqual(error.code, 'MISSING_SCOPE')

    def test_rate_limited(self):
        error = self.fetch_error(fake_response(429, {'errors': 'Exceeded 2 calls per second'}))
        self.assertEqual(error.code, 'RATE_LIMITED')
        self.assertTrue(error.retryable)

    def test_html_error_page(self):
        error = self.fetch_error(fake_response(404, None, content_type='text/html'))
        self.assertEqual(error.code, 'BAD_DOMAIN_OR_PATH')

    def test_html_success_page(self):
        error = self.fetch_error(fake_response(200, None, content_type='text/html'))
        self.assertEqual(error.code, 'BAD_DOMAIN_OR_PATH')

    def test_server_error_is_retryable(self):
        error = self.fetch_error(fake_response(502, {'errors': 'Bad gateway'}))
        self.assertEqual(error.code, 'SHOPIFY_API_ERROR')
        self.assertTrue(error.retryable)

    def test_parse_link_header(self):
        header = (
            '<https://x.myshopify.com/admin/api/2024-10/orders.json?page_info=prev1>; rel="previous", '
            '<https://x.myshopify.com/admin/api/2024-10/orders.json?page_info=next1>; rel="next"'
        )
        self.assertEqual(parse_link_header(header), {'next': 'next1', 'prev': 'prev1'})
        self.assertEqual(parse_link_header(None), {'next': None, 'prev': None})

    def test_mask_secret(self):
        self.assertEqual(mask_secret('shpat_test'), 'shpa••••••')
        self.assertEqual(mask_secret(''), '(sin configurar)')


class TestSyncFromStore(TestCase):

    def test_follows_pages_until_last(self):
        client = MagicMock()
        client.fetch_orders.side_effect = [
            {'orders': [shopify_order(1), shopify_order(2)], 'page_info': {'next': 'p2', 'prev': None}},
            {'orders': [shopify_order(3)], 'page_info': {'next': None, 'prev': 'p1'}},
        ]

        totals = sync_from_store(client=client)

        self.assertEqual(totals, {'imported': 3, 'skipped': 0, 'duplicates': 0, 'pages': 2})
        self.assertEqual(client.fetch_orders.call_args_list[1][1]['page_info'], 'p2')

    def test_stops_at_page_with_nothing_new(self):
        import_orders([shopify_order(1)])
        client = MagicMock()
        client.fetch_orders.return_value = {
            'orders': [shopify_order(1)],
            'page_info': {'next': 'p2', 'prev': None},
        }

        totals = sync_from_store(client=client)

        self.assertEqual(totals['pages'], 1)
        self.assertEqual(totals['duplicates'], 1)

    def test_task_reports_permanent_failure(self):
        with patch(
            'integrations.services.sync_from_store',
            side_effect=UpstreamFailure('sin token', code='UNAUTHORIZED'),
        ):
            result = sync_shopify_orders()
        self.assertEqual(result, {'error': 'UNAUTHORIZED'})


class TestShopifyAPI(TestCase):
    """Shopify endpoints are SuperAdmin only."""

    def setUp(self):
        self.superadmin = User.objects.create_user(
            'admin', password='clave-segura-123', role=UserRole.SUPERADMIN
        )
        self.logistics = User.objects.create_user(
            'logi', password='clave-segura-123', role=UserRole.LOGISTICS, zones=[Zone.BOGOTA]
        )
        self.client = APIClient()

    def test_import(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.post(
            '/api/integrations/shopify/import/',
            {'orders': [shopify_order(1), shopify_order(2, shipping_address=None, customer=None)]},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'imported': 1, 'skipped': 1, 'duplicates': 0})

    def test_import_forbidden_for_logistics(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.post(
            '/api/integrations/shopify/import/', {'orders': [shopify_order()]}, format='json'
        )
        self.assertEqual(response.status_code, 403)

    def test_sync_upstream_error(self):
        self.client.force_authenticate(user=self.superadmin)
        with patch(
            'integrations.views.sync_from_store',
            side_effect=UpstreamFailure('Límite', code='RATE_LIMITED', retryable=True),
        ):
            response = self.client.post('/api/integrations/shopify/sync/')
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data['code'], 'RATE_LIMITED')
        self.assertTrue(response.data['retryable'])

    def test_diagnostics_masks_token(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.get('/api/integrations/shopify/diagnostics/')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['ok'])
        self.assertEqual(response.data['effective_store_domain'], 'tienda-test.myshopify.com')
        self.assertNotIn('shpat_test', str(response.data))
