"""
Django Admin configuration for LOGISTICS app.
"""

from django.contrib import admin
from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Admin for Orders. Status and balances change through the API only."""

    list_display = (
        'id',
        'order_number',
        'customer_name',
        'zone',
        'courier',
        'status',
        'payment_method',
        'payment_status',
        'total_value',
        'created_at'
    )
    list_filter = ('status', 'zone', 'courier', 'payment_method', 'payment_status', 'created_at')
    search_fields = ('id', 'order_number', 'customer_name', 'phone', 'address')
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    readonly_fields = (
        'id', 'courier', 'delivery_cost', 'status',
        'payment_status', 'transfer_receipt_url', 'created_at', 'updated_at'
    )

    def has_delete_permission(self, request, obj=None):
        return False
