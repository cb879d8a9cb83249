"""
Shopify Admin API client for DOMICILIOS

Reads orders from the store's REST Admin API.
API Reference: https://shopify.dev/docs/api/admin-rest/latest/resources/order
"""

import logging
from typing import Optional
from urllib.parse import parse_qs, urlparse

import requests
from django.conf import settings

from core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)


def mask_secret(value: str, visible_chars: int = 4) -> str:
    """
    Mask a secret value for logs.

    Returns:
        Masked string like 'shpa••••••••••'
    """
    if not value:
        return '(sin configurar)'
    if len(value) <= visible_chars:
        return '•' * len(value)
    return value[:visible_chars] + '•' * min(12, len(value) - visible_chars)


def parse_link_header(link_header: Optional[str]) -> dict:
    """
    Extract page_info cursors from Shopify's Link header.

    '<https://x/orders.json?page_info=abc>; rel="next"' -> {'next': 'abc'}
    """
    links = {}
    for part in (link_header or '').split(','):
        section = part.split(';')
        if len(section) < 2:
            continue
        url = section[0].strip().strip('<>')
        rel = section[1].strip()
        if not rel.startswith('rel='):
            continue
        page_info = parse_qs(urlparse(url).query).get('page_info')
        if page_info:
            links[rel[4:].strip('"')] = page_info[0]

    return {'next': links.get('next'), 'prev': links.get('previous')}


class ShopifyClient:
    """
    Minimal Shopify Admin REST client.

    Every failure is raised as UpstreamFailure carrying a code the API
    layer passes through unchanged:
    MISSING_CONFIG, NETWORK_ERROR, UNAUTHORIZED, MISSING_SCOPE,
    RATE_LIMITED, BAD_DOMAIN_OR_PATH, SHOPIFY_API_ERROR.
    """

    ORDERS_PATH = "/admin/api/{version}/orders.json"
    ORDER_FIELDS = (
        'id,name,order_number,created_at,phone,email,customer,shipping_address,'
        'billing_address,total_price,currency,financial_status,fulfillment_status,'
        'line_items,note,tags'
    )
    DEFAULT_TIMEOUT = 20

    def __init__(self, store_domain: str = None, admin_token: str = None,
                 api_version: str = None, timeout: int = DEFAULT_TIMEOUT):
        self.store_domain = store_domain or getattr(settings, 'SHOPIFY_STORE_DOMAIN', '')
        self.admin_token = admin_token or getattr(settings, 'SHOPIFY_ADMIN_TOKEN', '')
        self.api_version = api_version or getattr(settings, 'SHOPIFY_API_VERSION', '2024-10')
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.store_domain and self.admin_token)

    @property
    def orders_url(self) -> str:
        return f"https://{self.store_domain}{self.ORDERS_PATH.format(version=self.api_version)}"

    def fetch_orders(self, limit: int = 50, page_info: str = None) -> dict:
        """
        Fetch one page of orders, newest first.

        Returns:
            Dict with 'orders' (raw Shopify payloads) and 'page_info'
            ({'next': cursor or None, 'prev': cursor or None}).
        """
        if not self.is_configured:
            logger.error("[SHOPIFY] Missing store domain or admin token")
            raise UpstreamFailure(
                "Las credenciales de Shopify no están configuradas.",
                code='MISSING_CONFIG',
            )

        # Shopify rejects filters other than limit/fields alongside page_info
        if page_info:
            params = {'limit': limit, 'page_info': page_info, 'fields': self.ORDER_FIELDS}
        else:
            params = {
                'status': 'any',
                'limit': limit,
                'order': 'created_at desc',
                'fields': self.ORDER_FIELDS,
            }

        logger.debug(
            f"[SHOPIFY] GET {self.orders_url} (token {mask_secret(self.admin_token)}, "
            f"page_info={page_info or '-'})"
        )

        try:
            response = requests.get(
                self.orders_url,
                params=params,
                headers={
                    'X-Shopify-Access-Token': self.admin_token,
                    'Accept': 'application/json',
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"[SHOPIFY] Network error: {e}")
            raise UpstreamFailure(
                "Error de red al intentar conectar con Shopify.",
                code='NETWORK_ERROR',
                retryable=True,
            ) from e

        if not response.ok:
            self._raise_for_response(response)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFailure(
                "Shopify devolvió una respuesta no-JSON. Verifica el dominio de la tienda.",
                code='BAD_DOMAIN_OR_PATH',
            ) from e

        orders = data.get('orders') or []
        logger.info(f"[SHOPIFY] Fetched {len(orders)} order(s)")
        return {
            'orders': orders,
            'page_info': parse_link_header(response.headers.get('Link')),
        }

    def _raise_for_response(self, response):
        status_code = response.status_code
        logger.error(f"[SHOPIFY] API error {status_code}: {response.text[:200]}")

        if status_code == 403:
            raise UpstreamFailure(
                "La app de Shopify no tiene los permisos necesarios (read_orders, read_customers).",
                code='MISSING_SCOPE',
            )
        content_type = response.headers.get('Content-Type', '')
        if 'application/json' not in content_type:
            raise UpstreamFailure(
                f"Shopify devolvió una respuesta no-JSON (status {status_code}). "
                f"Verifica el dominio de la tienda.",
                code='BAD_DOMAIN_OR_PATH',
            )
        if status_code == 401:
            raise UpstreamFailure(
                "Token de acceso de Shopify inválido o con permisos insuficientes.",
                code='UNAUTHORIZED',
            )
        if status_code == 429:
            raise UpstreamFailure(
                "Se ha excedido el límite de peticiones de la API de Shopify.",
                code='RATE_LIMITED',
                retryable=True,
            )
        raise UpstreamFailure(
            f"Error en la API de Shopify (status {status_code}).",
            code='SHOPIFY_API_ERROR',
            retryable=status_code >= 500,
        )
