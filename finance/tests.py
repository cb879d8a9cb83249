"""
DOMICILIOS Finance Tests
========================

Tests for:
1. LedgerService (settle, reverse, consign, pay fees)
2. Ledger audit entries
3. Deposit receipts (upload, storage failure, review)
4. Balances API permissions and scoping
"""

from decimal import Decimal
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from core.exceptions import CourierNotFound, LedgerIntegrityError, UpstreamFailure
from core.models import User, UserRole
from finance.models import (
    CourierBalance, DepositReceipt, DepositStatus, LedgerEntry, LedgerEntryType,
)
from finance.services import LedgerService, upload_receipt
from logistics.models import CourierName, Order, PaymentMethod, Zone


def make_receipt(name='consignacion.jpg'):
    return SimpleUploadedFile(name, b'\xff\xd8\xff\xe0fake-jpeg', content_type='image/jpeg')


class TestLedgerService(TestCase):
    """Balance arithmetic for one courier."""

    def setUp(self):
        self.admin = User.objects.create_user(
            'admin', password='clave-segura-123', role=UserRole.SUPERADMIN
        )
        self.cash_order = Order.objects.create(
            customer_name='Ana', total_value=Decimal('50000'), zone=Zone.AREA_METROPOLITANA
        )
        self.prepaid_order = Order.objects.create(
            customer_name='Luis', total_value=Decimal('70000'), zone=Zone.SAN_ANTONIO,
            payment_method=PaymentMethod.GATEWAY,
        )

    # ==========================================
    # Settle
    # ==========================================

    def test_settle_creates_balance(self):
        """First settlement opens the courier's balance."""
        balance = LedgerService.settle(self.cash_order, actor=self.admin)

        self.assertEqual(balance.courier, CourierName.JAMES)
        self.assertEqual(balance.cash_collected, Decimal('50000'))
        self.assertEqual(balance.fees_owed, Decimal('9000'))

    def test_settle_accumulates(self):
        LedgerService.settle(self.cash_order)
        balance = LedgerService.settle(self.prepaid_order)

        self.assertEqual(balance.cash_collected, Decimal('50000'))
        self.assertEqual(balance.fees_owed, Decimal('22500'))

    def test_settle_writes_entry(self):
        LedgerService.settle(self.cash_order, actor=self.admin)

        entry = LedgerEntry.objects.get(order=self.cash_order)
        self.assertEqual(entry.entry_type, LedgerEntryType.SETTLE)
        self.assertEqual(entry.cash_delta, Decimal('50000'))
        self.assertEqual(entry.fees_delta, Decimal('9000'))
        self.assertEqual(entry.cash_after, Decimal('50000'))
        self.assertEqual(entry.created_by, self.admin)

    # ==========================================
    # Reverse
    # ==========================================

    def test_reverse_without_balance_is_integrity_error(self):
        """Nothing to reverse if the courier was never settled."""
        with self.assertRaises(LedgerIntegrityError):
            LedgerService.reverse_settle(self.cash_order)

    def test_reverse_restores_balance(self):
        LedgerService.settle(self.cash_order)
        LedgerService.settle(self.prepaid_order)
        balance = LedgerService.reverse_settle(self.cash_order)

        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertEqual(balance.fees_owed, Decimal('13500'))

    def test_reverse_after_consignment_clamps_at_zero(self):
        """Cash already consigned: balance stays at zero and the shortfall is recorded."""
        LedgerService.settle(self.cash_order)
        LedgerService.consign_cash(CourierName.JAMES)

        balance = LedgerService.reverse_settle(self.cash_order)

        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertEqual(balance.fees_owed, Decimal('0'))
        entry = LedgerEntry.objects.get(order=self.cash_order, entry_type=LedgerEntryType.REVERSE)
        self.assertEqual(entry.cash_delta, Decimal('0'))
        self.assertEqual(entry.fees_delta, Decimal('-9000'))
        self.assertIn('faltante efectivo 50000', entry.description)

    # ==========================================
    # Consign & pay
    # ==========================================

    def test_consign_cash(self):
        LedgerService.settle(self.cash_order)
        balance = LedgerService.consign_cash(CourierName.JAMES, actor=self.admin)

        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertEqual(balance.fees_owed, Decimal('9000'))
        entry = LedgerEntry.objects.get(entry_type=LedgerEntryType.CONSIGN)
        self.assertEqual(entry.cash_delta, Decimal('-50000'))

    def test_pay_fees(self):
        LedgerService.settle(self.cash_order)
        balance = LedgerService.pay_fees(CourierName.JAMES)

        self.assertEqual(balance.cash_collected, Decimal('50000'))
        self.assertEqual(balance.fees_owed, Decimal('0'))

    def test_consign_without_balance_opens_it_at_zero(self):
        balance = LedgerService.consign_cash(CourierName.ISMAEL)
        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertTrue(CourierBalance.objects.filter(courier=CourierName.ISMAEL).exists())

    def test_unknown_courier(self):
        with self.assertRaises(CourierNotFound):
            LedgerService.consign_cash('PEDRO')
        with self.assertRaises(CourierNotFound):
            LedgerService.get_balance('PEDRO')

    def test_get_balance_defaults_to_zero(self):
        balance = LedgerService.get_balance(CourierName.BELTRAN)
        self.assertEqual(balance.cash_collected, Decimal('0'))
        self.assertFalse(CourierBalance.objects.exists())


class TestDepositReceipts(TestCase):
    """Deposit receipts never move the balance."""

    def setUp(self):
        self.admin = User.objects.create_user(
            'admin', password='clave-segura-123', role=UserRole.SUPERADMIN
        )
        order = Order.objects.create(
            customer_name='Ana', total_value=Decimal('40000'), zone=Zone.ORIENTE
        )
        LedgerService.settle(order)

    def test_submit_keeps_balance(self):
        deposit = LedgerService.submit_deposit(CourierName.BELTRAN, make_receipt(), actor=self.admin)

        self.assertEqual(deposit.status, DepositStatus.PENDING_REVIEW)
        self.assertTrue(deposit.receipt.name.startswith('receipts/'))
        self.assertEqual(
            LedgerService.get_balance(CourierName.BELTRAN).cash_collected, Decimal('40000')
        )

    def test_storage_failure_is_upstream_failure(self):
        with patch('django.core.files.storage.FileSystemStorage.save', side_effect=OSError('disco lleno')):
            with self.assertRaises(UpstreamFailure) as ctx:
                LedgerService.submit_deposit(CourierName.BELTRAN, make_receipt())
        self.assertTrue(ctx.exception.retryable)
        self.assertFalse(DepositReceipt.objects.exists())

    def test_upload_receipt_failure(self):
        with patch('django.core.files.storage.FileSystemStorage.save', side_effect=OSError('disco lleno')):
            with self.assertRaises(UpstreamFailure):
                upload_receipt(make_receipt())

    def test_review_once(self):
        deposit = LedgerService.submit_deposit(CourierName.BELTRAN, make_receipt())
        deposit = LedgerService.review_deposit(deposit, approve=True, actor=self.admin)

        self.assertEqual(deposit.status, DepositStatus.VERIFIED)
        self.assertEqual(deposit.reviewed_by, self.admin)
        with self.assertRaises(ValueError):
            LedgerService.review_deposit(deposit, approve=False, actor=self.admin)


class TestBalancesAPI(TestCase):
    """Balances API: who may see and settle what."""

    def setUp(self):
        self.superadmin = User.objects.create_user(
            'admin', password='clave-segura-123', role=UserRole.SUPERADMIN
        )
        self.logistics = User.objects.create_user(
            'oriente', password='clave-segura-123', role=UserRole.LOGISTICS, zones=[Zone.ORIENTE]
        )
        self.courier = User.objects.create_user(
            'beltran', password='clave-segura-123', role=UserRole.COURIER,
            courier_name=CourierName.BELTRAN,
        )
        order = Order.objects.create(
            customer_name='Ana', total_value=Decimal('40000'), zone=Zone.ORIENTE
        )
        LedgerService.settle(order)
        self.client = APIClient()

    def test_superadmin_lists_all_couriers(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.get('/api/balances/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row['courier'] for row in response.data], CourierName.values)

    def test_logistics_lists_zone_couriers(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.get('/api/balances/')
        self.assertEqual([row['courier'] for row in response.data], [CourierName.BELTRAN])

    def test_retrieve_out_of_scope(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.get(f'/api/balances/{CourierName.JAMES}/')
        self.assertEqual(response.status_code, 403)

    def test_retrieve_unknown_courier(self):
        self.client.force_authenticate(user=self.superadmin)
        response = self.client.get('/api/balances/PEDRO/')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['code'], 'COURIER_NOT_FOUND')

    def test_logistics_consigns(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.post(f'/api/balances/{CourierName.BELTRAN}/consign/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.data['cash_collected']), Decimal('0'))

    def test_courier_cannot_consign(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.post(f'/api/balances/{CourierName.BELTRAN}/consign/')
        self.assertEqual(response.status_code, 403)

    def test_only_superadmin_pays_fees(self):
        self.client.force_authenticate(user=self.logistics)
        response = self.client.post(f'/api/balances/{CourierName.BELTRAN}/pay-fees/')
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(user=self.superadmin)
        response = self.client.post(f'/api/balances/{CourierName.BELTRAN}/pay-fees/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.data['fees_owed']), Decimal('0'))

    def test_courier_uploads_deposit(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.post(
            f'/api/balances/{CourierName.BELTRAN}/deposit/',
            {'receipt': make_receipt()},
            format='multipart',
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['status'], DepositStatus.PENDING_REVIEW)
        self.assertIn('receipts/', response.data['receipt_url'])

    def test_entries(self):
        self.client.force_authenticate(user=self.courier)
        response = self.client.get(f'/api/balances/{CourierName.BELTRAN}/entries/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['entry_type'], LedgerEntryType.SETTLE)

    def test_review_deposit_api(self):
        deposit = LedgerService.submit_deposit(CourierName.BELTRAN, make_receipt())

        self.client.force_authenticate(user=self.courier)
        response = self.client.post(f'/api/deposits/{deposit.pk}/review/', {'approve': True}, format='json')
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(user=self.superadmin)
        response = self.client.post(f'/api/deposits/{deposit.pk}/review/', {'approve': False}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], DepositStatus.REJECTED)

        response = self.client.post(f'/api/deposits/{deposit.pk}/review/', {'approve': True}, format='json')
        self.assertEqual(response.status_code, 400)
