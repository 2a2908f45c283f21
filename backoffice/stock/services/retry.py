"""
Retry helper for stock writes.

Operations decorated with ``retry_on_conflict`` are re-run when they lose
a compare-and-swap race on a product's stock or hit a transient database
error. Only the outermost caller retries: inside an enclosing atomic block
the error propagates so the whole outer transaction is rolled back and
retried as one unit.
"""

import functools
import logging
import time

from django.conf import settings
from django.db import OperationalError, transaction

from ..exceptions import StockConflictException, ServiceUnavailableException

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (StockConflictException, OperationalError)


def retry_on_conflict(func):
    """Re-run ``func`` with exponential backoff on retryable errors."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if transaction.get_connection().in_atomic_block:
            return func(*args, **kwargs)

        attempts = max(1, settings.STOCK_RETRY_ATTEMPTS)
        backoff = settings.STOCK_RETRY_BACKOFF
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except RETRYABLE_ERRORS as exc:
                if attempt == attempts:
                    logger.error(
                        f"{func.__qualname__} failed after {attempts} attempts: {exc}"
                    )
                    raise ServiceUnavailableException(func.__qualname__, attempts) from exc
                delay = backoff * (2 ** (attempt - 1))
                logger.warning(
                    f"{func.__qualname__} attempt {attempt}/{attempts} failed ({exc}); retrying in {delay:.3f}s"
                )
                time.sleep(delay)

    return wrapper
