"""
DOMICILIOS Logistics Tests
==========================

Tests for:
1. Order model (zone -> courier / delivery cost)
2. Order state machine (transitions, delivery, returns)
3. Ledger side effects of status changes
4. Bulk status changes
5. Orders API (scoping, status, deliver, bulk, zones)
"""

from decimal import Decimal
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from core.exceptions import LedgerIntegrityError, OrderNotFound
from core.models import User, UserRole
from finance.models import CourierBalance, LedgerEntry, LedgerEntryType
from finance.services import LedgerService
from logistics.models import (
    CourierName, Order, OrderStatus, PaymentMethod, PaymentStatus, Zone,
)
from logistics.services.state_machine import (
    INVALID_TRANSITION, CashConfirmation, TransferConfirmation,
    build_confirmation, bulk_set_status, can_transition, deliver_order, set_status,
)


def make_order(zone=Zone.AREA_METROPOLITANA, total=Decimal('50000'), **kwargs):
    kwargs.setdefault('customer_name', 'Ana Pérez')
    kwargs.setdefault('address', 'Calle 10 # 43-12')
    return Order.objects.create(zone=zone, total_value=total, **kwargs)


def advance_to(order, status):
    """Walk an order along the happy path up to ``status``."""
    path = [OrderStatus.PACKED, OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED]
    for step in path:
        set_status(order.pk, step)
        if step == status:
            break
    order.refresh_from_db()
    return order


class TestOrderModel(TestCase):
    """Zone decides courier and delivery cost."""

    def test_zone_tables(self):
        """Each zone maps to its courier and flat fee."""
        expected = {
            Zone.AREA_METROPOLITANA: (CourierName.JAMES, Decimal('9000')),
            Zone.SAN_ANTONIO: (CourierName.JAMES, Decimal('13500')),
            Zone.ORIENTE: (CourierName.BELTRAN, Decimal('25000')),
            Zone.BOGOTA: (CourierName.ISMAEL, Decimal('10000')),
        }
        for zone, (courier, cost) in expected.items():
            order = make_order(zone=zone)
            self.assertEqual(order.courier, courier)
            self.assertEqual(order.delivery_cost, cost)

    def test_courier_frozen_after_creation(self):
        """Changing the zone later does not reassign the order."""
        order = make_order(zone=Zone.BOGOTA)
        order.zone = Zone.ORIENTE
        order.save()
        order.refresh_from_db()
        self.assertEqual(order.courier, CourierName.ISMAEL)
        self.assertEqual(order.delivery_cost, Decimal('10000'))

    def test_defaults(self):
        order = make_order()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.payment_status, PaymentStatus.PENDING_PAYMENT)
        self.assertTrue(order.id.startswith('man-'))


class TestTransitionTable(TestCase):

    def test_allowed(self):
        self.assertTrue(can_transition(OrderStatus.PENDING, OrderStatus.PACKED))
        self.assertTrue(can_transition(OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED))
        self.assertTrue(can_transition(OrderStatus.DELIVERED, OrderStatus.RETURNED))

    def test_disallowed(self):
        self.assertFalse(can_transition(OrderStatus.PENDING, OrderStatus.DELIVERED))
        self.assertFalse(can_transition(OrderStatus.DELIVERED, OrderStatus.CANCELLED))
        self.assertFalse(can_transition(OrderStatus.CANCELLED, OrderStatus.PENDING))
        self.assertFalse(can_transition(OrderStatus.RETURNED, OrderStatus.DELIVERED))


class TestPaymentConfirmation(TestCase):

    def test_transfer_requires_receipt(self):
        """A transfer without receipt cannot even be built."""
        with self.assertRaises(ValueError):
            TransferConfirmation(receipt_url='  ')
        with self.assertRaises(ValueError):
            build_confirmation(PaymentMethod.TRANSFER, '')

    def test_cash(self):
        confirmation = build_confirmation(PaymentMethod.CASH)
        self.assertEqual(confirmation.method, PaymentMethod.CASH)
        self.assertEqual(confirmation.receipt_url, '')

    def test_gateway_is_not_a_delivery_payment(self):
        with self.assertRaises(ValueError):
            build_confirmation(PaymentMethod.GATEWAY)


class TestSetStatus(TestCase):
    """Status changes through the state machine."""

    def setUp(self):
        self.order = make_order()

    def test_valid_transition(self):
        result = set_status(self.order.pk, OrderStatus.PACKED)
        self.assertTrue(result.changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.PACKED)

    def test_invalid_transition_is_noop(self):
        """PENDING -> DELIVERED is ignored and settles nothing."""
        result = set_status(self.order.pk, OrderStatus.DELIVERED)
        self.assertFalse(result.changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.PENDING)
        self.assertFalse(CourierBalance.objects.exists())

    def test_unknown_order(self):
        with self.assertRaises(OrderNotFound):
            set_status('man-no-existe', OrderStatus.PACKED)

    def test_unknown_status(self):
        with self.assertRaises(ValueError):
            set_status(self.order.pk, 'LOST')

    def test_cancelled_is_absorbing(self):
        set_status(self.order.pk, OrderStatus.CANCELLED)
        for target in OrderStatus.values:
            self.assertFalse(set_status(self.order.pk, target).changed)

    def test_delivery_settles_cash_order(self):
        """Cash order: cash += total, fees += delivery cost."""
        advance_to(self.order, OrderStatus.DELIVERED)

        balance = CourierBalance.objects.get(courier=CourierName.JAMES)
        self.assertEqual(balance.cash_collected, Decimal('50000'))
        self.assertEqual(balance.fees_owed, Decimal('9000'))

    def test_delivery_settles_prepaid_order(self):
        """Gateway orders only accrue the fee."""
        order = make_order(zone=Zone.ORIENTE, payment_method=PaymentMethod.GATEWAY)
        advance_to(order, OrderStatus.DELIVERED)

        balance = CourierBalance.objects.get(courier=CourierName.BELTRAN)
        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertEqual(balance.fees_owed, Decimal('25000'))

    def test_repeated_delivery_settles_once(self):
        advance_to(self.order, OrderStatus.DELIVERED)
        result = set_status(self.order.pk, OrderStatus.DELIVERED)

        self.assertFalse(result.changed)
        self.assertEqual(
            LedgerEntry.objects.filter(order=self.order, entry_type=LedgerEntryType.SETTLE).count(), 1
        )

    def test_delivered_only_moves_to_returned(self):
        advance_to(self.order, OrderStatus.DELIVERED)
        for target in (OrderStatus.PENDING, OrderStatus.PACKED, OrderStatus.IN_TRANSIT, OrderStatus.CANCELLED):
            self.assertFalse(set_status(self.order.pk, target).changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.DELIVERED)

    def test_return_reverses_settlement(self):
        """DELIVERED -> RETURNED brings the balance back where it was."""
        advance_to(self.order, OrderStatus.DELIVERED)
        result = set_status(self.order.pk, OrderStatus.RETURNED)

        self.assertTrue(result.changed)
        balance = CourierBalance.objects.get(courier=CourierName.JAMES)
        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertEqual(balance.fees_owed, Decimal('0'))
        self.assertCountEqual(
            LedgerEntry.objects.filter(order=self.order).values_list('entry_type', flat=True),
            [LedgerEntryType.SETTLE, LedgerEntryType.REVERSE],
        )

    def test_returned_is_absorbing(self):
        advance_to(self.order, OrderStatus.DELIVERED)
        set_status(self.order.pk, OrderStatus.RETURNED)

        for target in OrderStatus.values:
            self.assertFalse(set_status(self.order.pk, target).changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.RETURNED)
        self.assertEqual(
            LedgerEntry.objects.filter(order=self.order, entry_type=LedgerEntryType.REVERSE).count(), 1
        )

    def test_return_of_prepaid_order_restores_prior_balance(self):
        """A gateway order on top of an existing balance: only its fee goes back."""
        advance_to(self.order, OrderStatus.DELIVERED)
        prepaid = make_order(zone=Zone.SAN_ANTONIO, total=Decimal('70000'), payment_method=PaymentMethod.GATEWAY)

        advance_to(prepaid, OrderStatus.DELIVERED)
        settled = CourierBalance.objects.get(courier=CourierName.JAMES)
        self.assertEqual(settled.cash_collected, Decimal('50000'))
        self.assertEqual(settled.fees_owed, Decimal('22500'))

        set_status(prepaid.pk, OrderStatus.RETURNED)
        balance = CourierBalance.objects.get(courier=CourierName.JAMES)
        self.assertEqual(balance.cash_collected, Decimal('50000'))
        self.assertEqual(balance.fees_owed, Decimal('9000'))

    def test_return_of_transfer_order_restores_prior_balance(self):
        advance_to(self.order, OrderStatus.DELIVERED)
        transfer = make_order(total=Decimal('30000'))
        advance_to(transfer, OrderStatus.IN_TRANSIT)
        deliver_order(transfer.pk, TransferConfirmation(receipt_url='/media/receipts/t.jpg'))

        set_status(transfer.pk, OrderStatus.RETURNED)
        balance = CourierBalance.objects.get(courier=CourierName.JAMES)
        self.assertEqual(balance.cash_collected, Decimal('50000'))
        self.assertEqual(balance.fees_owed, Decimal('9000'))

    def test_cancel_touches_no_balance(self):
        set_status(self.order.pk, OrderStatus.PACKED)
        set_status(self.order.pk, OrderStatus.CANCELLED)
        self.assertFalse(CourierBalance.objects.exists())

    def test_failed_settlement_rolls_back_status(self):
        """If the ledger write fails the order stays IN_TRANSIT."""
        advance_to(self.order, OrderStatus.IN_TRANSIT)

        with patch(
            'logistics.services.state_machine.LedgerService.settle',
            side_effect=LedgerIntegrityError('fallo'),
        ):
            with self.assertRaises(LedgerIntegrityError):
                set_status(self.order.pk, OrderStatus.DELIVERED)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.IN_TRANSIT)


class TestDeliverOrder(TestCase):
    """Delivery confirmation with the collected payment."""

    def setUp(self):
        self.order = make_order(zone=Zone.BOGOTA, total=Decimal('80000'))

    def test_cash_delivery_from_pending(self):
        result = deliver_order(self.order.pk, CashConfirmation())

        self.assertTrue(result.changed)
        self.assertEqual(result.order.status, OrderStatus.DELIVERED)
        self.assertEqual(result.order.payment_status, PaymentStatus.PAID)
        balance = CourierBalance.objects.get(courier=CourierName.ISMAEL)
        self.assertEqual(balance.cash_collected, Decimal('80000'))
        self.assertEqual(balance.fees_owed, Decimal('10000'))

    def test_transfer_delivery_accrues_fee_only(self):
        result = deliver_order(self.order.pk, TransferConfirmation('https://cdn.example.com/r.jpg'))

        self.assertEqual(result.order.payment_method, PaymentMethod.TRANSFER)
        self.assertEqual(result.order.transfer_receipt_url, 'https://cdn.example.com/r.jpg')
        balance = CourierBalance.objects.get(courier=CourierName.ISMAEL)
        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertEqual(balance.fees_owed, Decimal('10000'))

    def test_reconfirmation_does_not_settle_again(self):
        """A second confirmation only refreshes payment data."""
        deliver_order(self.order.pk, CashConfirmation())
        result = deliver_order(self.order.pk, TransferConfirmation('https://cdn.example.com/r.jpg'))

        self.assertTrue(result.changed)
        self.assertEqual(result.order.payment_method, PaymentMethod.TRANSFER)
        self.assertEqual(LedgerEntry.objects.filter(order=self.order).count(), 1)

        same = deliver_order(self.order.pk, TransferConfirmation('https://cdn.example.com/r.jpg'))
        self.assertFalse(same.changed)

    def test_return_after_reconfirmation_mirrors_settlement(self):
        """Reversal undoes what was settled, not the current payment method."""
        deliver_order(self.order.pk, CashConfirmation())
        deliver_order(self.order.pk, TransferConfirmation('https://cdn.example.com/r.jpg'))
        set_status(self.order.pk, OrderStatus.RETURNED)

        balance = CourierBalance.objects.get(courier=CourierName.ISMAEL)
        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertEqual(balance.fees_owed, Decimal('0'))

    def test_transfer_keeps_prior_cash(self):
        """Transfer delivery on an existing balance only adds the fee."""
        CourierBalance.objects.create(
            courier=CourierName.JAMES, cash_collected=Decimal('20000'), fees_owed=Decimal('5000')
        )
        order = make_order(zone=Zone.SAN_ANTONIO, total=Decimal('80000'))

        deliver_order(order.pk, TransferConfirmation('https://cdn.example.com/r.jpg'))

        balance = CourierBalance.objects.get(courier=CourierName.JAMES)
        self.assertEqual(balance.cash_collected, Decimal('20000'))
        self.assertEqual(balance.fees_owed, Decimal('18500'))

    def test_cancelled_order_is_left_alone(self):
        set_status(self.order.pk, OrderStatus.CANCELLED)
        result = deliver_order(self.order.pk, CashConfirmation())

        self.assertFalse(result.changed)
        self.assertEqual(result.order.status, OrderStatus.CANCELLED)
        self.assertFalse(CourierBalance.objects.exists())

    def test_returned_order_is_left_alone(self):
        deliver_order(self.order.pk, CashConfirmation())
        set_status(self.order.pk, OrderStatus.RETURNED)
        result = deliver_order(self.order.pk, CashConfirmation())

        self.assertFalse(result.changed)
        self.assertEqual(result.order.status, OrderStatus.RETURNED)


class TestBulkSetStatus(TestCase):

    def test_each_order_on_its_own(self):
        """Failures are reported per id, the rest still move."""
        ok = make_order()
        delivered = make_order()
        deliver_order(delivered.pk, CashConfirmation())

        result = bulk_set_status([ok.pk, delivered.pk, 'man-fantasma', ok.pk], OrderStatus.PACKED)

        self.assertEqual(result.succeeded, [ok.pk])
        codes = {order_id: code for order_id, code, _ in result.failed}
        self.assertEqual(codes, {
            delivered.pk: INVALID_TRANSITION,
            'man-fantasma': OrderNotFound.code,
        })

    def test_missing_order_does_not_block_batch(self):
        """Two valid ids and one missing: two move, one NotFound."""
        first, second = make_order(), make_order(zone=Zone.BOGOTA)

        result = bulk_set_status([first.pk, 'man-no-existe', second.pk], OrderStatus.PACKED)

        self.assertEqual(result.succeeded, [first.pk, second.pk])
        self.assertEqual(len(result.failed), 1)
        self.assertEqual(result.failed[0][:2], ('man-no-existe', 'ORDER_NOT_FOUND'))
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.status, OrderStatus.PACKED)
        self.assertEqual(second.status, OrderStatus.PACKED)

    def test_as_dict(self):
        order = make_order()
        data = bulk_set_status([order.pk], OrderStatus.CANCELLED).as_dict()
        self.assertEqual(data, {'succeeded': [order.pk], 'failed': []})


class TestOrdersAPI(TestCase):
    """Orders API with role scoping."""

    def setUp(self):
        self.superadmin = User.objects.create_user(
            'admin', password='clave-segura-123', role=UserRole.SUPERADMIN
        )
        self.logistics = User.objects.create_user(
            'oriente', password='clave-segura-123', role=UserRole.LOGISTICS, zones=[Zone.ORIENTE]
        )
        self.courier = User.objects.create_user(
            'james', password='clave-segura-123', role=UserRole.COURIER, courier_name=CourierName.JAMES
        )
        self.metro = make_order(zone=Zone.AREA_METROPOLITANA)
        self.oriente = make_order(zone=Zone.ORIENTE, customer_name='Luis Gómez')
        self.client = APIClient()

    # ==========================================
    # Listing & scoping
    # ==========================================

    def test_superadmin_lists_everything(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.get('/api/orders/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 2)

    def test_logistics_sees_own_zones(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.get('/api/orders/')
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [self.oriente.pk])

    def test_out_of_scope_order_is_not_found(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.get(f'/api/orders/{self.metro.pk}/')
        self.assertEqual(response.status_code, 404)

    def test_filter_by_status(self):
        set_status(self.metro.pk, OrderStatus.PACKED)
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.get('/api/orders/', {'status': OrderStatus.PACKED})
        self.assertEqual([row['id'] for row in response.data['results']], [self.metro.pk])

    # ==========================================
    # Creation
    # ==========================================

    def test_create_order(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.post('/api/orders/', {
            'customer_name': 'Marta Ruiz',
            'phone': '3001234567',
            'address': 'Vereda Llanogrande km 5',
            'total_value': '120000',
            'zone': Zone.ORIENTE,
            'line_items': [{'name': 'Torta de chocolate', 'quantity': 2}],
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['courier'], CourierName.BELTRAN)
        self.assertEqual(Decimal(response.data['delivery_cost']), Decimal('25000'))
        self.assertEqual(response.data['line_items'], [{'name': 'Torta de chocolate', 'quantity': 2}])

    def test_create_outside_zone_rejected(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.post('/api/orders/', {
            'customer_name': 'Marta Ruiz',
            'total_value': '120000',
            'zone': Zone.BOGOTA,
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_courier_cannot_create(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.post('/api/orders/', {
            'customer_name': 'Marta Ruiz', 'total_value': '1000', 'zone': Zone.AREA_METROPOLITANA,
        }, format='json')
        self.assertEqual(response.status_code, 403)

    # ==========================================
    # Status & delivery
    # ==========================================

    def test_change_status(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.post(
            f'/api/orders/{self.metro.pk}/status/', {'status': OrderStatus.PACKED}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['changed'])
        self.assertEqual(response.data['order']['status'], OrderStatus.PACKED)

    def test_courier_puts_packed_order_in_transit(self):
        set_status(self.metro.pk, OrderStatus.PACKED)
        self.client.force_authenticate(user=self.courier)
        response = self.client.post(
            f'/api/orders/{self.metro.pk}/status/', {'status': OrderStatus.IN_TRANSIT}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['order']['status'], OrderStatus.IN_TRANSIT)

    def test_courier_cannot_return_delivered_order(self):
        """Returning would wipe the cash the courier owes."""
        advance_to(self.metro, OrderStatus.DELIVERED)
        self.client.force_authenticate(user=self.courier)
        response = self.client.post(
            f'/api/orders/{self.metro.pk}/status/', {'status': OrderStatus.RETURNED}, format='json'
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['code'], 'FORBIDDEN_TRANSITION')
        self.metro.refresh_from_db()
        self.assertEqual(self.metro.status, OrderStatus.DELIVERED)
        balance = LedgerService.get_balance(CourierName.JAMES)
        self.assertEqual(balance.cash_collected, Decimal('50000'))
        self.assertEqual(balance.fees_owed, Decimal('9000'))

    def test_courier_cannot_cancel_or_pack(self):
        self.client.force_authenticate(user=self.courier)
        for target in (OrderStatus.CANCELLED, OrderStatus.PACKED):
            response = self.client.post(
                f'/api/orders/{self.metro.pk}/status/', {'status': target}, format='json'
            )
            self.assertEqual(response.status_code, 403)
        self.metro.refresh_from_db()
        self.assertEqual(self.metro.status, OrderStatus.PENDING)

    def test_back_office_returns_delivered_order(self):
        advance_to(self.metro, OrderStatus.DELIVERED)
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.post(
            f'/api/orders/{self.metro.pk}/status/', {'status': OrderStatus.RETURNED}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['changed'])
        self.assertEqual(LedgerService.get_balance(CourierName.JAMES).cash_collected, Decimal('0'))

    def test_disallowed_status_reports_unchanged(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.post(
            f'/api/orders/{self.metro.pk}/status/', {'status': OrderStatus.RETURNED}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['changed'])

    def test_deliver_cash(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.post(
            f'/api/orders/{self.metro.pk}/deliver/', {'method': PaymentMethod.CASH}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['order']['status'], OrderStatus.DELIVERED)
        self.assertEqual(
            LedgerService.get_balance(CourierName.JAMES).cash_collected, Decimal('50000')
        )

    def test_deliver_transfer_without_receipt(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.post(
            f'/api/orders/{self.metro.pk}/deliver/', {'method': PaymentMethod.TRANSFER}, format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.metro.refresh_from_db()
        self.assertEqual(self.metro.status, OrderStatus.PENDING)

    def test_deliver_transfer_with_uploaded_receipt(self):
        self.client.force_authenticate(user=self.courier)
        receipt = SimpleUploadedFile('comprobante.jpg', b'\xff\xd8\xff\xe0fake-jpeg', content_type='image/jpeg')
        response = self.client.post(
            f'/api/orders/{self.metro.pk}/deliver/',
            {'method': PaymentMethod.TRANSFER, 'receipt': receipt},
            format='multipart',
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn('receipts/', response.data['order']['transfer_receipt_url'])
        balance = LedgerService.get_balance(CourierName.JAMES)
        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertEqual(balance.fees_owed, Decimal('9000'))

    def test_deliver_cancelled_order_stores_no_receipt(self):
        set_status(self.metro.pk, OrderStatus.CANCELLED)
        self.client.force_authenticate(user=self.courier)
        receipt = SimpleUploadedFile('comprobante.jpg', b'\xff\xd8\xff\xe0fake-jpeg', content_type='image/jpeg')

        with patch('logistics.views.upload_receipt') as upload:
            response = self.client.post(
                f'/api/orders/{self.metro.pk}/deliver/',
                {'method': PaymentMethod.TRANSFER, 'receipt': receipt},
                format='multipart',
            )

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['changed'])
        self.assertEqual(response.data['order']['status'], OrderStatus.CANCELLED)
        upload.assert_not_called()

    def test_courier_cannot_deliver_foreign_order(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.post(
            f'/api/orders/{self.oriente.pk}/deliver/', {'method': PaymentMethod.CASH}, format='json'
        )
        self.assertEqual(response.status_code, 404)

    # ==========================================
    # Bulk & zones
    # ==========================================

    def test_bulk_status_hides_out_of_scope_orders(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.post('/api/orders/bulk-status/', {
            'order_ids': [self.oriente.pk, self.metro.pk],
            'status': OrderStatus.PACKED,
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['succeeded'], [self.oriente.pk])
        self.assertEqual(response.data['failed'][0]['id'], self.metro.pk)
        self.assertEqual(response.data['failed'][0]['code'], 'ORDER_NOT_FOUND')
        self.metro.refresh_from_db()
        self.assertEqual(self.metro.status, OrderStatus.PENDING)

    def test_zones_for_logistics(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.get('/api/orders/zones/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['courier'], CourierName.BELTRAN)

    def test_zones_for_superadmin(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.get('/api/orders/zones/')
        self.assertEqual(len(response.data), 4)
