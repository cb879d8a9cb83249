"""
DOMICILIOS Alerts Tests
=======================

Tests for:
1. Stale order escalation (24h / 48h / 72h tiers)
2. Courier cash and payment day alerts (raised once)
3. Signals (delivered, cancelled, stale resolution)
4. Visibility per role
5. Alerts API (read, resolve, clear)
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from alerts.engine import AlertEngine, raise_alert, stale_tier_for
from alerts.models import Alert, AlertAudience, AlertKind, AlertPriority
from alerts.tasks import sweep_alerts
from core.models import User, UserRole
from finance.models import CourierBalance
from finance.services import LedgerService
from logistics.models import CourierName, Order, OrderStatus, Zone
from logistics.services.state_machine import set_status

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=dt_timezone.utc)
PAYMENT_DAY = datetime(2024, 3, 15, 17, 0, tzinfo=dt_timezone.utc)


def make_order(age_hours=0, zone=Zone.AREA_METROPOLITANA, now=NOW):
    return Order.objects.create(
        customer_name='Ana Pérez',
        address='Calle 10 # 43-12',
        total_value=Decimal('50000'),
        zone=zone,
        created_at=now - timedelta(hours=age_hours),
    )


class TestStaleOrders(TestCase):
    """Pending orders escalate with age."""

    def setUp(self):
        cache.clear()
        self.engine = AlertEngine(payment_days=[15, 30])

    def test_tier_for_age(self):
        self.assertIsNone(stale_tier_for(timedelta(hours=23)))
        self.assertEqual(stale_tier_for(timedelta(hours=24)), (24, AlertPriority.LOW))
        self.assertEqual(stale_tier_for(timedelta(hours=50)), (48, AlertPriority.LOW))
        self.assertEqual(stale_tier_for(timedelta(hours=72)), (72, AlertPriority.HIGH))

    def test_sweep_raises_one_alert_per_tier(self):
        make_order(age_hours=5)
        make_order(age_hours=25)
        make_order(age_hours=50)
        old = make_order(age_hours=80)

        counts = self.engine.sweep(NOW)

        self.assertEqual(counts, {'STALE_ORDER': 3, 'COURIER_CASH': 0, 'PAYMENT_DAY': 0})
        alert = Alert.objects.get(related_id=old.pk)
        self.assertEqual(alert.tier, 72)
        self.assertEqual(alert.priority, AlertPriority.HIGH)
        self.assertEqual(alert.zone, Zone.AREA_METROPOLITANA)

    def test_sweep_is_idempotent(self):
        make_order(age_hours=30)
        self.engine.sweep(NOW)
        counts = self.engine.sweep(NOW + timedelta(minutes=5))

        self.assertEqual(counts['STALE_ORDER'], 0)
        self.assertEqual(Alert.objects.count(), 1)

    def test_escalation_supersedes_lower_tier(self):
        """Crossing 48h opens a new alert and retires the 24h one."""
        order = make_order(age_hours=30)
        self.engine.sweep(NOW)
        self.engine.sweep(NOW + timedelta(hours=20))

        alerts = Alert.objects.filter(related_id=order.pk).order_by('tier')
        self.assertEqual([(a.tier, a.superseded) for a in alerts], [(24, True), (48, False)])
        self.assertEqual(Alert.objects.open().filter(related_id=order.pk).count(), 1)

    def test_non_pending_orders_ignored(self):
        order = make_order(age_hours=100)
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.PACKED)
        self.assertEqual(self.engine.check_stale_orders(NOW), 0)


class TestConditionAlerts(TestCase):

    def setUp(self):
        cache.clear()
        self.engine = AlertEngine(payment_days=[15, 30])

    # ==========================================
    # Courier cash
    # ==========================================

    def test_cash_alert_raised_once(self):
        CourierBalance.objects.create(courier=CourierName.JAMES, cash_collected=Decimal('50000'))
        CourierBalance.objects.create(courier=CourierName.ISMAEL)

        self.assertEqual(self.engine.check_courier_cash(), 1)
        self.assertEqual(self.engine.check_courier_cash(), 0)

        alert = Alert.objects.get(kind=AlertKind.COURIER_CASH)
        self.assertEqual(alert.related_id, CourierName.JAMES)
        self.assertEqual(alert.courier, CourierName.JAMES)
        self.assertEqual(alert.zone, '')

    def test_consignment_resolves_cash_alert(self):
        CourierBalance.objects.create(courier=CourierName.JAMES, cash_collected=Decimal('50000'))
        self.engine.check_courier_cash()

        with self.captureOnCommitCallbacks(execute=True):
            LedgerService.consign_cash(CourierName.JAMES)

        alert = Alert.objects.get(kind=AlertKind.COURIER_CASH)
        self.assertTrue(alert.is_resolved)
        self.assertEqual(self.engine.check_courier_cash(), 0)

    # ==========================================
    # Payment day
    # ==========================================

    def test_payment_day_raised_once(self):
        self.assertEqual(self.engine.check_payment_day(PAYMENT_DAY), 1)
        self.assertEqual(self.engine.check_payment_day(PAYMENT_DAY + timedelta(hours=2)), 0)

        alert = Alert.objects.get(kind=AlertKind.PAYMENT_DAY)
        self.assertEqual(alert.related_id, '2024-03-15')
        self.assertEqual(alert.audience, AlertAudience.SUPERADMIN)
        self.assertEqual(alert.priority, AlertPriority.HIGH)

    def test_payment_day_not_repeated_after_clear(self):
        self.engine.check_payment_day(PAYMENT_DAY)
        Alert.objects.all().delete()
        self.assertEqual(self.engine.check_payment_day(PAYMENT_DAY), 0)

    def test_not_a_payment_day(self):
        self.assertEqual(self.engine.check_payment_day(NOW), 0)

    def test_payment_day_uses_local_date(self):
        """03:00 UTC on the 16th is still the 15th in Bogotá."""
        late = datetime(2024, 3, 16, 3, 0, tzinfo=dt_timezone.utc)
        self.assertEqual(self.engine.check_payment_day(late), 1)
        self.assertEqual(Alert.objects.get().related_id, '2024-03-15')

    def test_sweep_task(self):
        with patch('alerts.engine.timezone.now', return_value=NOW):
            counts = sweep_alerts()
        self.assertEqual(sum(counts.values()), 0)


class TestAlertSignals(TestCase):
    """Order status changes raise and resolve alerts after commit."""

    def setUp(self):
        cache.clear()

    def test_delivery_raises_low_alert(self):
        order = make_order(now=datetime.now(dt_timezone.utc))
        with self.captureOnCommitCallbacks(execute=True):
            for status in (OrderStatus.PACKED, OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED):
                set_status(order.pk, status)

        alert = Alert.objects.get(kind=AlertKind.ORDER_DELIVERED)
        self.assertEqual(alert.related_id, order.pk)
        self.assertEqual(alert.priority, AlertPriority.LOW)

    def test_cancellation_raises_high_alert(self):
        order = make_order(zone=Zone.ORIENTE, now=datetime.now(dt_timezone.utc))
        with self.captureOnCommitCallbacks(execute=True):
            set_status(order.pk, OrderStatus.CANCELLED)

        alert = Alert.objects.get(kind=AlertKind.ORDER_CANCELLED)
        self.assertEqual(alert.priority, AlertPriority.HIGH)
        self.assertEqual(alert.zone, Zone.ORIENTE)
        self.assertEqual(alert.courier, CourierName.BELTRAN)

    def test_leaving_pending_resolves_stale_alert(self):
        order = make_order(age_hours=30)
        AlertEngine(payment_days=[15, 30]).check_stale_orders(NOW)

        with self.captureOnCommitCallbacks(execute=True):
            set_status(order.pk, OrderStatus.PACKED)

        self.assertFalse(Alert.objects.open().filter(kind=AlertKind.STALE_ORDER).exists())

    def test_unchanged_status_raises_nothing(self):
        order = make_order()
        with self.captureOnCommitCallbacks(execute=True):
            set_status(order.pk, OrderStatus.DELIVERED)
        self.assertFalse(Alert.objects.exists())


class TestAlertVisibility(TestCase):

    def setUp(self):
        cache.clear()
        self.superadmin = User.objects.create_user('admin', role=UserRole.SUPERADMIN)
        self.logistics = User.objects.create_user('oriente', role=UserRole.LOGISTICS, zones=[Zone.ORIENTE])
        self.courier = User.objects.create_user(
            'beltran', role=UserRole.COURIER, courier_name=CourierName.BELTRAN
        )

        self.oriente, _ = raise_alert(
            AlertKind.ORDER_CANCELLED, 'o-1', title='Oriente', zone=Zone.ORIENTE, courier=CourierName.BELTRAN
        )
        self.metro, _ = raise_alert(
            AlertKind.ORDER_CANCELLED, 'o-2', title='Metro', zone=Zone.AREA_METROPOLITANA, courier=CourierName.JAMES
        )
        self.cash, _ = raise_alert(AlertKind.COURIER_CASH, CourierName.BELTRAN, title='Efectivo', courier=CourierName.BELTRAN)
        self.payday, _ = raise_alert(
            AlertKind.PAYMENT_DAY, '2024-03-15', title='Pago', audience=AlertAudience.SUPERADMIN
        )
        self.imported, _ = raise_alert(AlertKind.ORDERS_IMPORTED, 'batch-1', title='Importados')

    def visible(self, user):
        return set(Alert.objects.visible_to(user).values_list('title', flat=True))

    def test_superadmin_sees_everything(self):
        self.assertEqual(self.visible(self.superadmin), {'Oriente', 'Metro', 'Efectivo', 'Pago', 'Importados'})

    def test_logistics_sees_zone_and_global(self):
        self.assertEqual(self.visible(self.logistics), {'Oriente', 'Efectivo', 'Importados'})

    def test_courier_sees_own_courier_alerts(self):
        self.assertEqual(self.visible(self.courier), {'Efectivo'})


class TestAlertsAPI(TestCase):
    """Alert feed endpoints."""

    def setUp(self):
        cache.clear()
        self.superadmin = User.objects.create_user('admin', role=UserRole.SUPERADMIN)
        self.client = APIClient()
        self.client.force_authenticate(user=self.superadmin)

    def test_list_hides_superseded(self):
        raise_alert(AlertKind.STALE_ORDER, 'o-1', tier=24, title='24h', superseded=True)
        raise_alert(AlertKind.STALE_ORDER, 'o-1', tier=48, title='48h')

        response = self.client.get('/api/alerts/')
        self.assertEqual([row['title'] for row in response.data['results']], ['48h'])

        response = self.client.get('/api/alerts/', {'include_superseded': 'true'})
        self.assertEqual(response.data['count'], 2)

    def test_read_and_read_all(self):
        first, _ = raise_alert(AlertKind.ORDER_DELIVERED, 'o-1', title='Uno')
        raise_alert(AlertKind.ORDER_DELIVERED, 'o-2', title='Dos')

        response = self.client.post(f'/api/alerts/{first.pk}/read/')
        self.assertTrue(response.data['is_read'])

        response = self.client.post('/api/alerts/read-all/')
        self.assertEqual(response.data, {'updated': 1})

    def test_resolve(self):
        alert, _ = raise_alert(AlertKind.ORDER_CANCELLED, 'o-1', title='Cancelado', priority=AlertPriority.HIGH)
        response = self.client.post(f'/api/alerts/{alert.pk}/resolve/')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['is_resolved'])
        self.assertFalse(response.data['is_open'])

    def test_clear_keeps_open_high_and_conditions(self):
        """Only read alerts go; open HIGH and standing conditions stay."""
        raise_alert(AlertKind.ORDER_DELIVERED, 'o-1', title='leída', is_read=True)
        raise_alert(AlertKind.ORDER_CANCELLED, 'o-2', title='alta abierta', priority=AlertPriority.HIGH, is_read=True)
        raise_alert(AlertKind.COURIER_CASH, CourierName.JAMES, title='efectivo', is_read=True)
        raise_alert(AlertKind.ORDER_DELIVERED, 'o-3', title='sin leer')
        raise_alert(
            AlertKind.ORDER_CANCELLED, 'o-4', title='alta resuelta',
            priority=AlertPriority.HIGH, is_read=True, is_resolved=True,
        )

        response = self.client.post('/api/alerts/clear/')

        self.assertEqual(response.data, {'deleted': 2})
        self.assertEqual(
            set(Alert.objects.values_list('title', flat=True)),
            {'alta abierta', 'efectivo', 'sin leer'},
        )

    def test_requires_authentication(self):
        response = APIClient().get('/api/alerts/')
        self.assertEqual(response.status_code, 401)
