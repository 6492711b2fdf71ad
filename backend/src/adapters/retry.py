"""Retry with exponential backoff for embedding and chat calls."""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

import openai
import requests
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from config import get_float_value, get_int_value

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 15.0

_TIMEOUT_PATTERN = re.compile(r"timeout|timed out", re.IGNORECASE)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    The wait before attempt k+1 is min(base_delay * 2 ** (k - 1), max_delay)
    seconds, so the defaults give 1, 2, 4, 8 seconds across five attempts.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "RetryPolicy":
        return cls(
            max_attempts=get_int_value(config, "retry.max_attempts", DEFAULT_MAX_ATTEMPTS),
            base_delay=get_float_value(config, "retry.base_delay", DEFAULT_BASE_DELAY),
            max_delay=get_float_value(config, "retry.max_delay", DEFAULT_MAX_DELAY),
        )

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-indexed) failed attempt."""
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)


def get_status_code(exc: BaseException) -> Optional[int]:
    """Extract an HTTP status from provider or requests exceptions."""
    for attr in ("status_code", "status"):
        status = getattr(exc, attr, None)
        if isinstance(status, int):
            return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def is_retryable(exc: BaseException) -> bool:
    """Rate limits, server errors and timeouts are worth another attempt."""
    if isinstance(exc, (requests.exceptions.Timeout, openai.APITimeoutError)):
        return True
    status = get_status_code(exc)
    if status is not None and (status == 429 or status >= 500):
        return True
    message = str(exc)
    return "429" in message or bool(_TIMEOUT_PATTERN.search(message))


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception()
    logger.warning(
        f"Attempt {retry_state.attempt_number} failed ({exc}); "
        f"retrying in {retry_state.next_action.sleep:.1f}s"
    )


def call_with_retry(
    fn: Callable[[], T],
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call fn until it succeeds, fails with a non-retryable error, or
    policy.max_attempts is reached. The last error is re-raised unchanged.

    Args:
        fn: Zero-argument callable performing the external call.
        policy: Retry policy; defaults to 5 attempts, 1s doubling to a 15s cap.
        sleep: Called with the delay in seconds between attempts.
    """
    policy = policy or RetryPolicy()
    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(
            multiplier=policy.base_delay, min=0, max=policy.max_delay
        ),
        retry=retry_if_exception(is_retryable),
        sleep=sleep,
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(fn)
