import time
import logging
from functools import wraps
from django.db import OperationalError

logger = logging.getLogger(__name__)

# PostgreSQL: serialization_failure / deadlock_detected
PG_RETRY_ERRCODES = {'40001', '40P01'}
RETRY_MESSAGES = ('deadlock detected', 'could not serialize access', 'database is locked')


def _pgcode_from(exc: Exception):
    return getattr(exc, 'pgcode', None) or getattr(getattr(exc, '__cause__', None), 'pgcode', None)


def is_retryable(exc: Exception) -> bool:
    code = _pgcode_from(exc)
    if code and code in PG_RETRY_ERRCODES:
        return True
    msg = str(exc).lower()
    return any(k in msg for k in RETRY_MESSAGES)


def retry_on_tx_failure(max_attempts=3, backoff=0.05):
    """
    Re-run a whole transaction when the database aborted it for
    serialization/deadlock reasons. Wrap the function that OPENS the
    transaction, never one that runs inside an outer atomic block.

    `max_attempts` / `backoff` may be callables so settings are read per call.
    """
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            attempts = max_attempts() if callable(max_attempts) else max_attempts
            delay = backoff() if callable(backoff) else backoff
            attempt = 0
            while True:
                attempt += 1
                try:
                    return fn(*args, **kwargs)
                except OperationalError as e:
                    if attempt >= attempts or not is_retryable(e):
                        raise
                    logger.warning(
                        "Retrying %s after transaction failure (attempt %s/%s): %s",
                        fn.__name__, attempt, attempts, e,
                    )
                    time.sleep(delay * attempt)
        return wrapper
    return deco
