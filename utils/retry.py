"""
Retry and backoff configuration for calls to the AI collaborators.
"""

import logging
from typing import Optional, Tuple, Type

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from core.config import AI_MAX_ATTEMPTS, AI_BACKOFF_MIN_SEC, AI_BACKOFF_MAX_SEC


# Only transport-level failures are retried; an HTTP error status is an
# answer from the collaborator and is surfaced as-is.
TRANSIENT_ERRORS: Tuple[Type[BaseException], ...] = (
    httpx.TransportError,
)


class RetryConfig:
    """Retry settings loaded from environment via core.config."""

    MAX_ATTEMPTS = AI_MAX_ATTEMPTS
    BACKOFF_MIN_SEC = AI_BACKOFF_MIN_SEC
    BACKOFF_MAX_SEC = AI_BACKOFF_MAX_SEC


def get_ai_retry_decorator(
    max_attempts: Optional[int] = None,
    exceptions: Optional[Tuple[Type[BaseException], ...]] = None,
    min_wait: Optional[float] = None,
    max_wait: Optional[float] = None,
):
    """
    Get standardized retry decorator for AI endpoint calls.
    """
    max_attempts = max_attempts or RetryConfig.MAX_ATTEMPTS
    exceptions = exceptions or TRANSIENT_ERRORS
    min_wait = RetryConfig.BACKOFF_MIN_SEC if min_wait is None else min_wait
    max_wait = RetryConfig.BACKOFF_MAX_SEC if max_wait is None else max_wait

    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logging.getLogger(__name__), logging.INFO),
        reraise=True,
    )
