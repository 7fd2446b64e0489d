"""Exponential backoff with HTTP 429 Retry-After support."""

import functools
import logging
import random
import time
from typing import Callable, Optional, Tuple, Type

import requests

logger = logging.getLogger(__name__)


def _retry_after_seconds(error: Exception) -> Optional[float]:
    """Return the server-requested delay for a 429 response, if any."""
    response = getattr(error, "response", None)
    if response is None or getattr(response, "status_code", None) != 429:
        return None
    value = response.headers.get("Retry-After") if response.headers else None
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (requests.RequestException,),
) -> Callable:
    """Retry the decorated function on ``exceptions``.

    Waits ``base_delay * 2**attempt`` (plus jitter, capped at ``max_delay``)
    between attempts, or the Retry-After header when the server sent one.
    The last exception is re-raised once the retries run out.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        logger.error(f"{func.__name__} failed after {attempt + 1} attempts: {e}")
                        raise
                    delay = _retry_after_seconds(e)
                    if delay is None:
                        delay = base_delay * (2 ** attempt) + random.uniform(0, base_delay)
                    delay = min(delay, max_delay)
                    logger.warning(
                        f"{func.__name__} failed ({e}), retrying in {delay:.1f}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
