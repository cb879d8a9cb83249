"""
Finance App URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import CourierBalanceViewSet, DepositReceiptViewSet

router = DefaultRouter()
router.register(r'balances', CourierBalanceViewSet, basename='balance')
router.register(r'deposits', DepositReceiptViewSet, basename='deposit')

urlpatterns = [
    path('', include(router.urls)),
]
