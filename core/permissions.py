"""
Core App Permissions - role checks shared by every API
"""

from rest_framework import permissions

from .models import UserRole


class IsSuperAdmin(permissions.BasePermission):
    """Permission for SuperAdmin users only."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == UserRole.SUPERADMIN


class IsBackOffice(permissions.BasePermission):
    """SuperAdmin or Logística: the roles that manage orders."""

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.role in [UserRole.SUPERADMIN, UserRole.LOGISTICS]
