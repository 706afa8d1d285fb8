"""Resilience utilities for cluster API calls.

This module provides the retry policy used by cluster clients when talking to
the Kubernetes control plane. The discovery engine itself never retries: a
query that still fails after the client's retries surfaces to the caller.
"""

import logging
from typing import Any, Callable, Dict, Optional, TypeVar

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    RetryCallState,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_retry_attempt(retry_state: RetryCallState) -> None:
    """Log a retry with the failing call and exception."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"[Resilience] Retry attempt {retry_state.attempt_number} for "
        f"{getattr(retry_state.fn, '__name__', retry_state.fn)} after {retry_state.seconds_since_start:.1f}s. "
        f"Exception: {exception or 'Unknown'}"
    )


def create_custom_retry(
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 8,
    multiplier: float = 1,
    retry_on: Optional[Callable[[BaseException], bool]] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a retry decorator with exponential backoff.

    Args:
        max_attempts: Total attempts including the first call
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        multiplier: Exponential backoff multiplier
        retry_on: Predicate selecting retryable exceptions (default: all)

    Returns:
        A retry decorator that re-raises the last exception once attempts
        are exhausted

    Example:
        ```python
        api_retry = create_custom_retry(max_attempts=5, retry_on=is_transient)

        @api_retry
        def list_services():
            return core_api.list_service_for_all_namespaces()
        ```
    """
    kwargs: Dict[str, Any] = {}
    if retry_on is not None:
        kwargs["retry"] = retry_if_exception(retry_on)

    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
        before_sleep=_log_retry_attempt,
        reraise=True,
        **kwargs,
    )
