"""
Transactional boundary with bounded retry on write conflicts.

Order and balance writes share one transaction.atomic() block; rows are
locked with select_for_update() by the callers. When the database aborts
the transaction because of a concurrent writer, the whole unit is rerun.
"""

import functools
import logging
import time

from django.conf import settings
from django.db import InterfaceError, OperationalError, transaction

from .exceptions import TransientConflict, UpstreamFailure

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure, deadlock_detected, lock_not_available
TRANSIENT_PGCODES = {'40001', '40P01', '55P03'}
TRANSIENT_MESSAGES = (
    'could not serialize',
    'deadlock detected',
    'database is locked',
    'lock timeout',
)


def is_transient(exc: Exception) -> bool:
    cause = exc.__cause__ or exc
    pgcode = getattr(cause, 'pgcode', None) or getattr(getattr(cause, 'diag', None), 'sqlstate', None)
    if pgcode in TRANSIENT_PGCODES:
        return True
    message = str(exc).lower()
    return any(fragment in message for fragment in TRANSIENT_MESSAGES)


def atomic_with_retry(func=None, *, attempts: int = None, backoff: float = None):
    """
    Run ``func`` inside transaction.atomic(), retrying transient conflicts.

    Raises TransientConflict once the attempts are exhausted and
    UpstreamFailure for database errors that a retry will not fix.

    Called inside a caller's atomic block there is a single attempt: the
    outer transaction is already aborted after a conflict, so only the
    caller can rerun it.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or getattr(settings, 'LEDGER_MAX_RETRIES', 3)
            delay = backoff if backoff is not None else getattr(settings, 'LEDGER_RETRY_BACKOFF', 0.05)
            if transaction.get_connection().in_atomic_block:
                max_attempts = 1

            for attempt in range(1, max_attempts + 1):
                try:
                    with transaction.atomic():
                        return fn(*args, **kwargs)
                except OperationalError as e:
                    if not is_transient(e):
                        logger.error(f"[TX] {fn.__name__} failed: {e}")
                        raise UpstreamFailure(f"Base de datos no disponible: {e}", retryable=True) from e
                    if attempt == max_attempts:
                        logger.warning(f"[TX] {fn.__name__} gave up after {attempt} attempts: {e}")
                        raise TransientConflict(
                            f"Conflicto concurrente persistente tras {attempt} intentos."
                        ) from e
                    logger.info(f"[TX] {fn.__name__} conflict (attempt {attempt}/{max_attempts}), retrying")
                    if delay:
                        time.sleep(delay * attempt)
                except InterfaceError as e:
                    logger.error(f"[TX] {fn.__name__} lost the database connection: {e}")
                    raise UpstreamFailure(f"Conexión a la base de datos perdida: {e}", retryable=True) from e

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
