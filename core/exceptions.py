"""
Error taxonomy shared by the order/ledger core and its API.

An invalid status transition is not an error: operations report it as
changed=False and leave the order untouched.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BackofficeError(Exception):
    """Base class for domain errors surfaced to callers."""

    code = 'ERROR'
    http_status = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, message: str = '', code: str = None, retryable: bool = None):
        super().__init__(message or self.__class__.__doc__)
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable

    def as_response_data(self) -> dict:
        return {
            'error': str(self),
            'code': self.code,
            'retryable': self.retryable,
        }


class NotFound(BackofficeError):
    """Referenced entity does not exist."""
    code = 'NOT_FOUND'
    http_status = status.HTTP_404_NOT_FOUND


class OrderNotFound(NotFound):
    """El pedido no fue encontrado."""
    code = 'ORDER_NOT_FOUND'


class CourierNotFound(NotFound):
    """Domiciliario desconocido."""
    code = 'COURIER_NOT_FOUND'


class LedgerIntegrityError(BackofficeError):
    """Ledger reversal requested for a courier that was never settled."""
    code = 'INTEGRITY_VIOLATION'
    http_status = status.HTTP_409_CONFLICT


class TransientConflict(BackofficeError):
    """Concurrent writers kept colliding; the request can be retried."""
    code = 'TRANSIENT_CONFLICT'
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class UpstreamFailure(BackofficeError):
    """An external dependency (database, storage, Shopify) failed."""
    code = 'UPSTREAM_FAILURE'
    http_status = status.HTTP_502_BAD_GATEWAY


def error_response(exc: BackofficeError) -> Response:
    return Response(exc.as_response_data(), status=exc.http_status)


def api_exception_handler(exc, context):
    """DRF exception handler that also understands BackofficeError."""
    if isinstance(exc, BackofficeError):
        view = context.get('view')
        logger.warning(
            f"[API] {exc.code} in {view.__class__.__name__ if view else '?'}: {exc}"
        )
        return error_response(exc)
    return exception_handler(exc, context)
