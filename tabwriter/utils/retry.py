"""
Retry and backoff configuration for outbound search calls.

Only rate limiting (HTTP 429) is retried; every other provider failure is
isolated by the research aggregator on the first attempt.
"""

import logging
import os
from datetime import datetime
from typing import Optional

import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from tabwriter.core import config
from tabwriter.core.exceptions import RateLimitedError

logger = structlog.get_logger(__name__)


class RetryConfig:
    """Backoff settings loaded from environment."""

    RATE_LIMIT_BASE_DELAY = float(os.getenv("SEARCH_RATE_LIMIT_BASE_DELAY", "1"))
    RATE_LIMIT_BACKOFF_FACTOR = float(os.getenv("SEARCH_RATE_LIMIT_BACKOFF_FACTOR", "2"))
    RATE_LIMIT_MAX_DELAY = float(os.getenv("SEARCH_RATE_LIMIT_MAX_DELAY", "30"))


def parse_retry_after(retry_after: Optional[str]) -> Optional[float]:
    """
    Parse Retry-After header value (seconds or HTTP date).

    Returns:
        Delay in seconds or None if parsing fails
    """
    if not retry_after:
        return None

    value = str(retry_after).strip()

    try:
        return max(0.0, float(value))
    except ValueError:
        pass

    from email.utils import parsedate_to_datetime

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when is None:
        return None
    now = datetime.now(when.tzinfo)
    return max(0.0, (when - now).total_seconds())


def get_search_retry_decorator(max_attempts: Optional[int] = None):
    """
    Get standardized retry decorator for search operations.

    Retries ``RateLimitedError`` only and re-raises the last error once
    attempts are exhausted.
    """
    return retry(
        stop=stop_after_attempt(max_attempts or config.SEARCH_MAX_RETRIES),
        wait=wait_random_exponential(
            multiplier=RetryConfig.RATE_LIMIT_BACKOFF_FACTOR,
            min=RetryConfig.RATE_LIMIT_BASE_DELAY,
            max=RetryConfig.RATE_LIMIT_MAX_DELAY,
        ),
        retry=retry_if_exception_type(RateLimitedError),
        before_sleep=before_sleep_log(logging.getLogger(__name__), logging.INFO),
        reraise=True,
    )
