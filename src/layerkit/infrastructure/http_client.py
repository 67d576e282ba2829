"""Shared HTTP execution for the Layer API (requests + tenacity backoff).

Every request goes through send_with_backoff so retry, latency measurement
and failure aggregation behave the same for all resources.
"""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests
from tenacity import RetryError

from layerkit.domain.errors import AggregatedFailure, AttemptFailure, HTTPStatusError, TransportError
from layerkit.infrastructure.retry import backoff_delay, create_retrying, is_success_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttemptRecord:
    """Outcome of a single attempt, handed to the attempt observer"""

    attempt_index: int
    latency: float  # seconds
    method: str
    url: str
    status_code: Optional[int] = None
    transport_error: Optional[BaseException] = None

    @property
    def latency_ms(self) -> int:
        return int(self.latency * 1000)

    @property
    def succeeded(self) -> bool:
        return (
            self.transport_error is None
            and self.status_code is not None
            and is_success_status(self.status_code)
        )


AttemptObserver = Callable[[AttemptRecord], None]


def log_attempt(record: AttemptRecord) -> None:
    """Default observer: one log line per completed attempt"""
    if record.transport_error is not None:
        logger.warning(
            f"Layer request failed after {record.latency_ms}ms with transport error "
            f"({record.transport_error}) for {record.method} request to {record.url}"
        )
    elif record.succeeded:
        logger.info(
            f"Layer responded after {record.latency_ms}ms with status code {record.status_code} "
            f"for {record.method} request to {record.url}"
        )
    else:
        logger.warning(
            f"Layer responded after {record.latency_ms}ms with status code {record.status_code} "
            f"for {record.method} request to {record.url}"
        )


@dataclass(frozen=True)
class BackoffPolicy:
    """Retry budget and delay bounds for one logical request.

    max_attempts <= 1 means a single attempt with no delay. Delays are in
    seconds; before attempt k > 0 the executor sleeps
    min(max_delay, min_delay * 2**k).
    """

    max_attempts: int = 3
    min_delay: float = 0.1
    max_delay: float = 5.0
    observer: Optional[AttemptObserver] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.min_delay < 0:
            raise ValueError("min_delay must be >= 0")
        if self.max_delay < 0:
            raise ValueError("max_delay must be >= 0")

    def delay_before(self, attempt_index: int) -> float:
        """Delay in seconds slept before the given 0-indexed attempt"""
        return backoff_delay(self.min_delay, self.max_delay, attempt_index)


def backoff_policy_from_dict(config: Dict[str, Any]) -> BackoffPolicy:
    """Parse a backoff policy from a dict, supporting legacy millisecond keys."""
    # Preferred keys, delays in seconds
    max_attempts = config.get("max_attempts")
    min_delay = config.get("min_delay")
    max_delay = config.get("max_delay")

    # Legacy keys: num_tries, min_time/max_time in milliseconds
    if max_attempts is None:
        max_attempts = config.get("num_tries", 3)
    if min_delay is None and config.get("min_time") is not None:
        min_delay = _ms_to_seconds(config["min_time"])
    if max_delay is None and config.get("max_time") is not None:
        max_delay = _ms_to_seconds(config["max_time"])

    try:
        max_attempts_i = int(max_attempts)
    except (TypeError, ValueError):
        max_attempts_i = 3

    try:
        min_delay_f = float(min_delay if min_delay is not None else 0.1)
    except (TypeError, ValueError):
        min_delay_f = 0.1

    try:
        max_delay_f = float(max_delay if max_delay is not None else 5.0)
    except (TypeError, ValueError):
        max_delay_f = 5.0

    if min_delay_f < 0:
        min_delay_f = 0.0
    if max_delay_f < 0:
        max_delay_f = 0.0

    return BackoffPolicy(
        max_attempts=max_attempts_i,
        min_delay=min_delay_f,
        max_delay=max_delay_f,
    )


def _ms_to_seconds(value: Any) -> Optional[float]:
    try:
        return float(value) / 1000.0
    except (TypeError, ValueError):
        return None


@functools.lru_cache(maxsize=None)
def default_session() -> requests.Session:
    """Process-wide session used when the caller does not supply one"""
    return requests.Session()


def _buffer_body(request: requests.PreparedRequest) -> Optional[bytes]:
    """Read the request body exactly once so it can be re-sent on every attempt"""
    body = request.body
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")

    if hasattr(body, "read"):
        data = body.read()
    else:
        data = b"".join(
            chunk.encode("utf-8") if isinstance(chunk, str) else chunk for chunk in body
        )
    if isinstance(data, str):
        data = data.encode("utf-8")

    # Streams were sent chunked or with a length of their own; now it is plain bytes
    request.headers.pop("Transfer-Encoding", None)
    request.headers["Content-Length"] = str(len(data))
    return data


def _send_once(
    session: requests.Session,
    request: requests.PreparedRequest,
    attempt_index: int,
    observer: AttemptObserver,
    timeout: Optional[float],
    settings: Dict[str, Any],
) -> requests.Response:
    start = time.monotonic()
    try:
        response = session.send(request, timeout=timeout, **settings)
    except requests.exceptions.RequestException as e:
        latency = time.monotonic() - start
        observer(
            AttemptRecord(
                attempt_index=attempt_index,
                latency=latency,
                method=request.method,
                url=request.url,
                transport_error=e,
            )
        )
        raise TransportError(
            f"Request to Layer failed!\n"
            f"{request.method} {request.url}: {e}\n"
            f"Latency: {int(latency * 1000)}ms",
            attempt_index=attempt_index,
            latency=latency,
        ) from e
    latency = time.monotonic() - start

    observer(
        AttemptRecord(
            attempt_index=attempt_index,
            latency=latency,
            method=request.method,
            url=request.url,
            status_code=response.status_code,
        )
    )

    if is_success_status(response.status_code):
        return response

    body = response.text
    response.close()
    raise HTTPStatusError(
        response.status_code, body, attempt_index=attempt_index, latency=latency
    )


def send_with_backoff(
    request: requests.PreparedRequest,
    policy: BackoffPolicy,
    *,
    session: Optional[requests.Session] = None,
    observer: Optional[AttemptObserver] = None,
    sleep: Optional[Callable[[float], None]] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """Send a prepared request, retrying failed attempts with capped exponential backoff.

    An attempt succeeds when the transport completes and the status code is
    in 200..398. The first success is returned immediately. Transport errors
    and other status codes are retried until the policy's budget is spent.

    Args:
        request: Fully built request; its body is buffered once up front
        policy: Backoff policy
        session: Transport (defaults to a shared requests.Session)
        observer: Called with an AttemptRecord after every attempt
            (defaults to policy.observer, then log_attempt)
        sleep: Blocking sleep used between attempts (defaults to time.sleep)
        timeout: Per-attempt transport timeout in seconds

    Returns:
        The successful response

    Raises:
        AggregatedFailure: If every attempt failed; holds each attempt's error in order
    """
    if session is None:
        session = default_session()
    if observer is None:
        observer = policy.observer or log_attempt

    body = _buffer_body(request)
    # Proxies, CA bundle and client cert from the session and environment, as Session.request does
    settings = session.merge_environment_settings(request.url, {}, None, None, None)
    failures: List[AttemptFailure] = []

    try:
        for attempt in create_retrying(policy, sleep=sleep):
            with attempt:
                attempt_index = attempt.retry_state.attempt_number - 1
                # bytes are immutable, so every attempt sees the complete body
                request.body = body
                try:
                    return _send_once(
                        session, request, attempt_index, observer, timeout, settings
                    )
                except AttemptFailure as failure:
                    failures.append(failure)
                    raise
    except RetryError:
        logger.error(
            f"Layer request {request.method} {request.url} failed after {len(failures)} attempt(s)"
        )
        raise AggregatedFailure(failures) from failures[-1]
