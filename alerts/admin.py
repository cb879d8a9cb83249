"""
Django Admin configuration for ALERTS app.
"""

from django.contrib import admin
from .models import Alert


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ('title', 'kind', 'priority', 'tier', 'zone', 'courier', 'is_read', 'is_resolved', 'superseded', 'created_at')
    list_filter = ('kind', 'priority', 'is_read', 'is_resolved', 'superseded')
    search_fields = ('title', 'related_id')
    ordering = ('-created_at',)
