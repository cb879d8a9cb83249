"""
DOMICILIOS Health Check Endpoints
=================================

1. /health/ - liveness (process up)
2. /health/ready/ - readiness (database and cache reachable)
"""

import time
import logging
from django.http import JsonResponse
from django.db import DatabaseError, connection
from django.core.cache import cache
from django.views.decorators.http import require_GET
from django.views.decorators.csrf import csrf_exempt
from django.utils import timezone

logger = logging.getLogger(__name__)

SERVICE_NAME = 'domicilios'


@csrf_exempt
@require_GET
def health_check(request):
    """Basic liveness probe for load balancers and Docker."""
    return JsonResponse({
        'status': 'ok',
        'service': SERVICE_NAME,
        'timestamp': timezone.now().isoformat(),
    })


@csrf_exempt
@require_GET
def readiness_check(request):
    """
    Readiness probe.
    Returns 503 when the database or the cache is not answering.
    """
    checks = {}
    all_healthy = True

    try:
        start = time.time()
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        checks['database'] = {
            'status': 'healthy',
            'response_time_ms': round((time.time() - start) * 1000, 2),
            'vendor': connection.vendor,
        }
    except DatabaseError as e:
        checks['database'] = {'status': 'unhealthy', 'error': str(e)}
        all_healthy = False
        logger.error(f"[HEALTH] Database unhealthy: {e}")

    try:
        start = time.time()
        cache.set('_healthcheck_ping', 'pong', 10)
        if cache.get('_healthcheck_ping') != 'pong':
            raise ConnectionError("Cache read/write mismatch")
        checks['cache'] = {
            'status': 'healthy',
            'response_time_ms': round((time.time() - start) * 1000, 2),
        }
    except Exception as e:
        # Redis client errors do not share a common base with stdlib ones
        checks['cache'] = {'status': 'unhealthy', 'error': str(e)}
        all_healthy = False
        logger.error(f"[HEALTH] Cache unhealthy: {e}")

    return JsonResponse({
        'status': 'healthy' if all_healthy else 'unhealthy',
        'service': SERVICE_NAME,
        'timestamp': timezone.now().isoformat(),
        'checks': checks,
    }, status=200 if all_healthy else 503)
