"""Retry utilities using tenacity.

The Layer executor retries every failed attempt (transport error or status
outside the accepted range) with capped exponential backoff and no jitter:
the delay before attempt k (0-indexed, k > 0) is min(max_delay, min_delay * 2**k).
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Optional

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt
from tenacity.wait import wait_base

from layerkit.domain.errors import AttemptFailure

if TYPE_CHECKING:
    from layerkit.infrastructure.http_client import BackoffPolicy

logger = logging.getLogger(__name__)

# Inclusive bounds of the status codes treated as success by the executor.
SUCCESS_STATUS_MIN = 200
SUCCESS_STATUS_MAX = 398


def is_success_status(status_code: int) -> bool:
    """Check if a status code counts as a successful attempt (200..398 inclusive)"""
    return SUCCESS_STATUS_MIN <= status_code <= SUCCESS_STATUS_MAX


def attempt_budget(max_attempts: int) -> int:
    """Number of attempts actually made; always at least one"""
    return max(1, max_attempts)


def backoff_delay(min_delay: float, max_delay: float, attempt_index: int) -> float:
    """Delay in seconds to wait before the given 0-indexed attempt

    Args:
        min_delay: Base delay, doubled for every attempt
        max_delay: Hard ceiling for the delay
        attempt_index: Index of the attempt about to run

    Returns:
        0.0 for the first attempt or a zero min_delay, otherwise
        min(max_delay, min_delay * 2**attempt_index)
    """
    if attempt_index <= 0 or min_delay == 0:
        return 0.0
    try:
        exponential = min_delay * 2 ** attempt_index
    except OverflowError:
        return max_delay
    return min(max_delay, exponential)


class wait_capped_exponential(wait_base):
    """Tenacity wait strategy computing backoff_delay for the next attempt"""

    def __init__(self, min_delay: float, max_delay: float) -> None:
        self.min_delay = min_delay
        self.max_delay = max_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        # attempt_number counts finished attempts, i.e. the index of the next one
        return backoff_delay(self.min_delay, self.max_delay, retry_state.attempt_number)


def _before_sleep_log(max_attempts: int) -> Callable[[RetryCallState], None]:
    def _log(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        exception = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        message = str(exception)
        first_line = message.splitlines()[0] if message else repr(exception)
        logger.warning(
            f"Layer request failed (attempt {retry_state.attempt_number}/{max_attempts}): "
            f"{first_line}. Retrying in {delay:.3f}s..."
        )

    return _log


def create_retrying(
    policy: "BackoffPolicy",
    sleep: Optional[Callable[[float], None]] = None,
) -> Retrying:
    """Create a tenacity controller for one logical request.

    Args:
        policy: Backoff policy (attempt budget and delay bounds)
        sleep: Blocking sleep function (defaults to time.sleep)

    Returns:
        Retrying instance; iterate it and wrap each attempt in ``with attempt:``.
        Raises tenacity.RetryError once the budget is exhausted.
    """
    budget = attempt_budget(policy.max_attempts)
    return Retrying(
        stop=stop_after_attempt(budget),
        wait=wait_capped_exponential(policy.min_delay, policy.max_delay),
        retry=retry_if_exception_type(AttemptFailure),
        sleep=sleep if sleep is not None else time.sleep,
        before_sleep=_before_sleep_log(budget),
        reraise=False,
    )
