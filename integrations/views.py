"""
Integrations App - Shopify API Views

Import of Shopify order payloads, on-demand sync and configuration
diagnostics. SuperAdmin only.
"""

import logging

from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BackofficeError, error_response
from core.permissions import IsSuperAdmin

from .services import import_orders, sync_from_store
from .shopify_client import ShopifyClient, mask_secret

logger = logging.getLogger(__name__)


class ImportRequestSerializer(serializers.Serializer):
    orders = serializers.ListField(child=serializers.JSONField(), allow_empty=False, max_length=1000)


class ShopifyImportView(APIView):
    """
    POST {orders: [...]} with raw Shopify order payloads.

    Returns {imported, skipped, duplicates}. Bad records never fail the batch.
    """

    permission_classes = [IsSuperAdmin]

    def post(self, request):
        serializer = ImportRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        summary = import_orders(serializer.validated_data['orders'])
        logger.info(f"[SHOPIFY] Manual import by {request.user.username}: {summary}")
        return Response(summary, status=status.HTTP_200_OK)


class ShopifySyncView(APIView):
    """Pull the latest orders from the store now."""

    permission_classes = [IsSuperAdmin]

    def post(self, request):
        try:
            totals = sync_from_store()
        except BackofficeError as e:
            return error_response(e)
        return Response(totals)


class ShopifyDiagnosticsView(APIView):
    """Which Shopify settings are present, without exposing secrets."""

    permission_classes = [IsSuperAdmin]

    def get(self, request):
        client = ShopifyClient()
        missing = []
        if not client.store_domain:
            missing.append('SHOPIFY_STORE_DOMAIN')
        if not client.admin_token:
            missing.append('SHOPIFY_ADMIN_TOKEN')

        return Response({
            'ok': not missing,
            'has_store_domain': bool(client.store_domain),
            'has_admin_token': bool(client.admin_token),
            'effective_store_domain': client.store_domain or None,
            'admin_token': mask_secret(client.admin_token),
            'api_version': client.api_version,
            'missing': missing,
        })
