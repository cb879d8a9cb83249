"""
DOMICILIOS Core Tests
=====================

Tests for:
1. Custom User Model (creation, role validation)
2. Role scoping (zones / couriers per role)
3. Transactional retry helper
4. Error responses
5. Users API and health probes
"""

from unittest.mock import MagicMock

from django.core.exceptions import ValidationError
from django.db import InterfaceError, OperationalError, transaction
from django.test import TestCase, TransactionTestCase
from rest_framework.test import APIClient

from core.access import (
    allowed_couriers, allowed_zones, can_access_courier, can_access_order,
    scope_balances, scope_orders,
)
from core.exceptions import (
    CourierNotFound, LedgerIntegrityError, OrderNotFound, TransientConflict,
    UpstreamFailure, error_response,
)
from core.models import User, UserRole
from core.transactions import atomic_with_retry, is_transient
from finance.models import CourierBalance
from logistics.models import CourierName, Order, Zone


def make_users():
    superadmin = User.objects.create_user(
        'admin', password='clave-segura-123', role=UserRole.SUPERADMIN, name='Admin'
    )
    logistics = User.objects.create_user(
        'oriente', password='clave-segura-123', role=UserRole.LOGISTICS,
        name='Logística Oriente', zones=[Zone.ORIENTE, Zone.BOGOTA],
    )
    courier = User.objects.create_user(
        'james', password='clave-segura-123', role=UserRole.COURIER,
        name='James', courier_name=CourierName.JAMES,
    )
    return superadmin, logistics, courier


class TestUserModel(TestCase):
    """Tests for the custom User model."""

    def test_create_user_with_username(self):
        user = User.objects.create_user('ana', password='clave-segura-123', email='ANA@Example.com')
        self.assertEqual(user.username, 'ana')
        self.assertTrue(user.check_password('clave-segura-123'))
        self.assertEqual(user.role, UserRole.LOGISTICS)

    def test_create_user_without_password_is_unusable(self):
        user = User.objects.create_user('sinclave')
        self.assertFalse(user.has_usable_password())

    def test_create_superuser(self):
        user = User.objects.create_superuser('root', password='clave-segura-123')
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)
        self.assertTrue(user.is_superadmin)

    def test_courier_requires_courier_name(self):
        user = User(username='x', role=UserRole.COURIER)
        with self.assertRaises(ValidationError):
            user.clean()

    def test_unknown_zone_rejected(self):
        user = User(username='x', role=UserRole.LOGISTICS, zones=['CALI'])
        with self.assertRaises(ValidationError):
            user.clean()

    def test_superadmin_cannot_carry_zones(self):
        user = User(username='x', role=UserRole.SUPERADMIN, zones=[Zone.ORIENTE])
        with self.assertRaises(ValidationError):
            user.clean()

    def test_valid_logistics_user(self):
        user = User(username='x', role=UserRole.LOGISTICS, zones=[Zone.ORIENTE])
        user.clean()


class TestAccessScoping(TestCase):
    """Role -> allowed zones / couriers."""

    def setUp(self):
        self.superadmin, self.logistics, self.courier = make_users()
        self.metro = Order.objects.create(
            customer_name='Ana', total_value=50000, zone=Zone.AREA_METROPOLITANA
        )
        self.oriente = Order.objects.create(
            customer_name='Luis', total_value=30000, zone=Zone.ORIENTE
        )

    def test_superadmin_unrestricted(self):
        self.assertIsNone(allowed_zones(self.superadmin))
        self.assertIsNone(allowed_couriers(self.superadmin))
        self.assertEqual(scope_orders(self.superadmin, Order.objects.all()).count(), 2)

    def test_logistics_scoped_by_zone(self):
        self.assertEqual(allowed_zones(self.logistics), {Zone.ORIENTE, Zone.BOGOTA})
        self.assertEqual(allowed_couriers(self.logistics), {CourierName.BELTRAN, CourierName.ISMAEL})

        visible = scope_orders(self.logistics, Order.objects.all())
        self.assertEqual(list(visible), [self.oriente])
        self.assertTrue(can_access_order(self.logistics, self.oriente))
        self.assertFalse(can_access_order(self.logistics, self.metro))

    def test_courier_scoped_by_identity(self):
        visible = scope_orders(self.courier, Order.objects.all())
        self.assertEqual(list(visible), [self.metro])
        self.assertTrue(can_access_courier(self.courier, CourierName.JAMES))
        self.assertFalse(can_access_courier(self.courier, CourierName.BELTRAN))

    def test_balance_scoping(self):
        for courier in CourierName.values:
            CourierBalance.objects.create(courier=courier)
        couriers = set(
            scope_balances(self.logistics, CourierBalance.objects.all()).values_list('courier', flat=True)
        )
        self.assertEqual(couriers, {CourierName.BELTRAN, CourierName.ISMAEL})


class TestAtomicWithRetry(TransactionTestCase):
    """
    Bounded retry on transient write conflicts.

    TransactionTestCase: the retry loop only runs outside an atomic block.
    """

    def test_retries_transient_then_succeeds(self):
        calls = MagicMock(side_effect=[
            OperationalError('database is locked'),
            OperationalError('deadlock detected'),
            'ok',
        ])

        @atomic_with_retry(attempts=3, backoff=0)
        def write():
            return calls()

        self.assertEqual(write(), 'ok')
        self.assertEqual(calls.call_count, 3)

    def test_gives_up_with_transient_conflict(self):
        calls = MagicMock(side_effect=OperationalError('could not serialize access'))

        @atomic_with_retry(attempts=2, backoff=0)
        def write():
            return calls()

        with self.assertRaises(TransientConflict) as ctx:
            write()
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(calls.call_count, 2)

    def test_non_transient_error_is_upstream_failure(self):
        @atomic_with_retry(attempts=3, backoff=0)
        def write():
            raise OperationalError('no such table: logistics_order')

        with self.assertRaises(UpstreamFailure):
            write()

    def test_lost_connection_is_upstream_failure(self):
        @atomic_with_retry
        def write():
            raise InterfaceError('connection already closed')

        with self.assertRaises(UpstreamFailure) as ctx:
            write()
        self.assertTrue(ctx.exception.retryable)

    def test_domain_errors_pass_through(self):
        @atomic_with_retry
        def write():
            raise OrderNotFound("El pedido x no existe.")

        with self.assertRaises(OrderNotFound):
            write()

    def test_no_retry_inside_caller_transaction(self):
        """The caller's transaction is aborted; a single attempt, then TransientConflict."""
        calls = MagicMock(side_effect=[OperationalError('deadlock detected'), 'ok'])

        @atomic_with_retry(attempts=3, backoff=0)
        def write():
            return calls()

        with self.assertRaises(TransientConflict):
            with transaction.atomic():
                write()
        self.assertEqual(calls.call_count, 1)

    def test_is_transient_by_pgcode(self):
        cause = MagicMock(pgcode='40001')
        exc = OperationalError('serialization failure')
        exc.__cause__ = cause
        self.assertTrue(is_transient(exc))


class TestErrorResponses(TestCase):

    def test_status_codes(self):
        self.assertEqual(error_response(CourierNotFound('x')).status_code, 404)
        self.assertEqual(error_response(LedgerIntegrityError('x')).status_code, 409)
        self.assertEqual(error_response(TransientConflict('x')).status_code, 503)
        self.assertEqual(error_response(UpstreamFailure('x')).status_code, 502)

    def test_payload(self):
        response = error_response(UpstreamFailure('Shopify caído', code='RATE_LIMITED', retryable=True))
        self.assertEqual(response.data, {
            'error': 'Shopify caído',
            'code': 'RATE_LIMITED',
            'retryable': True,
        })


class TestUsersAPI(TestCase):
    """Users API: SuperAdmin manages users, everybody reads /me."""

    def setUp(self):
        self.superadmin, self.logistics, self.courier = make_users()
        self.client = APIClient()

    def test_superadmin_creates_courier_user(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.post('/api/users/', {
            'username': 'beltran',
            'password': 'Entregas-Seguras-2024',
            'name': 'Beltran',
            'role': UserRole.COURIER,
            'courier_name': CourierName.BELTRAN,
        }, format='json')

        self.assertEqual(response.status_code, 201)
        user = User.objects.get(username='beltran')
        self.assertEqual(user.courier_name, CourierName.BELTRAN)
        self.assertEqual(user.zones, [])
        self.assertTrue(user.check_password('Entregas-Seguras-2024'))

    def test_logistics_user_needs_zones(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.post('/api/users/', {
            'username': 'logi2',
            'password': 'Entregas-Seguras-2024',
            'role': UserRole.LOGISTICS,
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('zones', response.data)

    def test_non_superadmin_cannot_list_users(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.get('/api/users/')
        self.assertEqual(response.status_code, 403)

    def test_me(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.get('/api/users/me/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['courier_name'], CourierName.JAMES)

    def test_token_obtain(self):
        response = self.client.post('/api/auth/token/', {
            'username': 'admin',
            'password': 'clave-segura-123',
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)


class TestHealth(TestCase):

    def test_liveness(self):
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'ok')

    def test_readiness(self):
        response = self.client.get('/health/ready/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['checks']['database']['status'], 'healthy')
