"""
Role scoping: which orders and courier balances a user may observe or mutate.

None means "no restriction" (SuperAdmin).
"""

from typing import Optional

from logistics.models import CourierName, Zone, couriers_for_zones

from .models import UserRole


def allowed_zones(user) -> Optional[set]:
    if user.role == UserRole.SUPERADMIN:
        return None
    if user.role == UserRole.LOGISTICS:
        return set(user.zones or [])
    # Couriers are scoped by courier identity, not by zone
    return set()


def allowed_couriers(user) -> Optional[set]:
    if user.role == UserRole.SUPERADMIN:
        return None
    if user.role == UserRole.LOGISTICS:
        return set(couriers_for_zones(user.zones))
    if user.role == UserRole.COURIER and user.courier_name:
        return {user.courier_name}
    return set()


def scope_orders(user, queryset):
    """Filter an Order queryset down to what the user may see."""
    if user.role == UserRole.SUPERADMIN:
        return queryset
    if user.role == UserRole.LOGISTICS:
        return queryset.filter(zone__in=allowed_zones(user))
    if user.role == UserRole.COURIER and user.courier_name:
        return queryset.filter(courier=user.courier_name)
    return queryset.none()


def scope_balances(user, queryset):
    couriers = allowed_couriers(user)
    if couriers is None:
        return queryset
    return queryset.filter(courier__in=couriers)


def can_access_order(user, order) -> bool:
    if user.role == UserRole.SUPERADMIN:
        return True
    if user.role == UserRole.LOGISTICS:
        return order.zone in allowed_zones(user)
    if user.role == UserRole.COURIER:
        return bool(user.courier_name) and order.courier == user.courier_name
    return False


def can_access_courier(user, courier: str) -> bool:
    couriers = allowed_couriers(user)
    return couriers is None or courier in couriers


def is_known_courier(courier: str) -> bool:
    return courier in CourierName.values


def is_known_zone(zone: str) -> bool:
    return zone in Zone.values
