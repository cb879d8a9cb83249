"""
Integrations App - URL Configuration
"""

from django.urls import path
from .views import ShopifyDiagnosticsView, ShopifyImportView, ShopifySyncView

app_name = 'integrations'

urlpatterns = [
    path('shopify/import/', ShopifyImportView.as_view(), name='shopify-import'),
    path('shopify/sync/', ShopifySyncView.as_view(), name='shopify-sync'),
    path('shopify/diagnostics/', ShopifyDiagnosticsView.as_view(), name='shopify-diagnostics'),
]
