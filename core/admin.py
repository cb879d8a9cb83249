"""
Django Admin configuration for CORE app.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom admin for User model with username-based auth."""

    list_display = (
        'username',
        'name',
        'role',
        'zones',
        'courier_name',
        'is_active',
        'date_joined'
    )
    list_filter = ('role', 'courier_name', 'is_active', 'is_staff')
    search_fields = ('username', 'name', 'email')
    ordering = ('name',)

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        ('Perfil', {
            'fields': ('name', 'email', 'role')
        }),
        ('Alcance', {
            'fields': ('zones', 'courier_name'),
            'description': 'Zonas solo para Logística; domiciliario solo para el rol Domiciliario'
        }),
        ('Permisos', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',)
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = ('date_joined',)

    actions = ['block_users', 'unblock_users']

    @admin.action(description="Bloquear los usuarios seleccionados")
    def block_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} usuario(s) bloqueado(s).")

    @admin.action(description="Desbloquear los usuarios seleccionados")
    def unblock_users(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} usuario(s) desbloqueado(s).")
