"""
Finance App Serializers - Balances, ledger entries & deposit receipts
"""

from rest_framework import serializers
from .models import CourierBalance, DepositReceipt, LedgerEntry


class CourierBalanceSerializer(serializers.ModelSerializer):
    """Serializer for CourierBalance model."""

    courier_display = serializers.CharField(source='get_courier_display', read_only=True)
    has_cash_pending = serializers.ReadOnlyField()

    class Meta:
        model = CourierBalance
        fields = [
            'courier', 'courier_display', 'cash_collected', 'fees_owed',
            'has_cash_pending', 'updated_at'
        ]
        read_only_fields = ['courier', 'cash_collected', 'fees_owed', 'updated_at']


class LedgerEntrySerializer(serializers.ModelSerializer):
    """Serializer for ledger audit entries."""

    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = LedgerEntry
        fields = [
            'id', 'courier', 'entry_type', 'order',
            'cash_delta', 'fees_delta', 'cash_after', 'fees_after',
            'description', 'created_by', 'created_by_username', 'created_at'
        ]


class DepositReceiptSerializer(serializers.ModelSerializer):
    """Serializer for deposit receipts."""

    receipt_url = serializers.ReadOnlyField()

    class Meta:
        model = DepositReceipt
        fields = [
            'id', 'courier', 'receipt_url', 'status',
            'submitted_by', 'reviewed_by', 'reviewed_at', 'created_at'
        ]


class DepositUploadSerializer(serializers.Serializer):
    """Multipart upload of a deposit receipt."""

    receipt = serializers.FileField()


class DepositReviewSerializer(serializers.Serializer):
    approve = serializers.BooleanField()
