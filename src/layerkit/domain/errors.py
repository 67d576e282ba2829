"""Exception hierarchy for the Layer client"""

from __future__ import annotations

from typing import List, Optional


class LayerError(Exception):
    """Base exception for all Layer client errors"""


class RequestBuildError(LayerError):
    """Raised when a request cannot be built (e.g. body serialization failed).

    No attempt is made against the API when this is raised.
    """


class AttemptFailure(LayerError):
    """A single failed attempt inside the backoff loop"""

    def __init__(self, message: str, *, attempt_index: int = 0, latency: float = 0.0):
        super().__init__(message)
        self.attempt_index = attempt_index
        self.latency = latency

    @property
    def latency_ms(self) -> int:
        return int(self.latency * 1000)


class TransportError(AttemptFailure):
    """Connection, DNS or TLS failure before any response was obtained.

    The underlying ``requests`` exception is available as ``__cause__``.
    """


class HTTPStatusError(AttemptFailure):
    """Response obtained, but with a status code outside the accepted range"""

    def __init__(
        self,
        status_code: int,
        body: str,
        *,
        attempt_index: int = 0,
        latency: float = 0.0,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"Request to Layer failed!\n"
            f"Status Code: {status_code}\n"
            f"Response Body: {body}\n"
            f"Latency: {int(latency * 1000)}ms",
            attempt_index=attempt_index,
            latency=latency,
        )


class AggregatedFailure(LayerError):
    """Every attempt allowed by the backoff policy failed.

    Holds the per-attempt failures in the order they happened. The string
    form joins each failure message with blank lines.
    """

    def __init__(self, failures: List[AttemptFailure]):
        self.failures = list(failures)
        super().__init__("\n\n".join(str(failure) for failure in self.failures))

    @property
    def attempts(self) -> int:
        return len(self.failures)

    @property
    def last_failure(self) -> Optional[AttemptFailure]:
        return self.failures[-1] if self.failures else None

    @property
    def status_codes(self) -> List[Optional[int]]:
        """Status code per attempt (None for transport errors)"""
        return [getattr(failure, "status_code", None) for failure in self.failures]


class UnexpectedStatusError(LayerError):
    """The executor accepted the response but the operation expects another status"""

    def __init__(self, operation: str, status_code: int, body: str = ""):
        self.operation = operation
        self.status_code = status_code
        self.body = body
        super().__init__(f"{operation}: unexpected status code {status_code}: {body}")


class DecodeError(LayerError):
    """Response body could not be decoded into the expected resource"""
