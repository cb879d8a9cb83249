"""
Django Admin configuration for FINANCE app.
"""

from django.contrib import admin
from .models import CourierBalance, DepositReceipt, LedgerEntry


@admin.register(CourierBalance)
class CourierBalanceAdmin(admin.ModelAdmin):
    """Balances are read-only here; they move through the ledger service."""

    list_display = ('courier', 'cash_collected', 'fees_owed', 'updated_at')
    readonly_fields = ('courier', 'cash_collected', 'fees_owed', 'updated_at')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """Admin for LedgerEntry with audit trail."""

    list_display = (
        'created_at',
        'courier',
        'entry_type',
        'order',
        'cash_delta',
        'fees_delta',
        'cash_after',
        'fees_after',
        'created_by'
    )
    list_filter = ('entry_type', 'courier', 'created_at')
    search_fields = ('order__id', 'order__order_number', 'description')
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    readonly_fields = (
        'id', 'courier', 'entry_type', 'order',
        'cash_delta', 'fees_delta', 'cash_after', 'fees_after',
        'description', 'created_by', 'created_at'
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(DepositReceipt)
class DepositReceiptAdmin(admin.ModelAdmin):
    list_display = ('courier', 'status', 'submitted_by', 'reviewed_by', 'created_at')
    list_filter = ('status', 'courier')
    readonly_fields = ('submitted_by', 'reviewed_by', 'reviewed_at', 'created_at')
    ordering = ('-created_at',)
