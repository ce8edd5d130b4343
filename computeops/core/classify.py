"""Error Classifier — decides whether a failed call is worth another attempt.

Invariants:
    - classify_error is PURE: never sleeps, never mutates shared state
    - None → SUCCESS, not retryable
    - Status 429 → RATE_LIMITED; 500–599 → SERVER_ERROR; both retryable
    - Any other status (400, 403, 404, 409, ...) → CLIENT_ERROR, not retryable
    - No status code: transport error types and known transient substrings → TRANSIENT_NETWORK
    - Everything else → CLIENT_ERROR (fail fast, never guess)

Design Decisions:
    - Status code read structurally (ApiError.status_code or httpx response): callers
      may hand in errors from the transport or from their own submit closures
    - Substring fallback kept for wrapped errors that lost their type on the way up
    - retry_after_of reads the server's Retry-After; the executor treats it as a floor on the wait
"""

from dataclasses import dataclass

import httpx

from computeops.core.domain_types import ErrorClass
from computeops.core.errors import ApiError, ErrorCode


RATE_LIMIT_STATUS: int = 429
TRANSIENT_MESSAGE_MARKERS: tuple[str, ...] = (
    "connection reset",
    "unexpected eof",
    "timeout",
    "timed out",
)
_TRANSPORT_TRANSIENT_TYPES: tuple[type[BaseException], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
)
_RETRYABLE = frozenset({
    ErrorClass.TRANSIENT_NETWORK,
    ErrorClass.RATE_LIMITED,
    ErrorClass.SERVER_ERROR,
})


@dataclass(frozen=True)
class Classification:
    """Classifier verdict for one failed (or successful) call."""
    error_class: ErrorClass
    retry: bool
    status_code: int | None = None

    @property
    def error_code(self) -> ErrorCode:
        """Taxonomy tag the failure would carry if surfaced."""
        if self.error_class is ErrorClass.TRANSIENT_NETWORK:
            return ErrorCode.TRANSPORT_TRANSIENT
        if self.retry:
            return ErrorCode.SERVER_TRANSIENT
        return ErrorCode.CLIENT_REJECTED


def status_code_of(error: BaseException) -> int | None:
    """HTTP status carried by an error, if it has one."""
    if isinstance(error, ApiError):
        return error.status_code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    code = getattr(error, "status_code", None)
    return code if isinstance(code, int) else None


def retry_after_of(error: BaseException) -> float | None:
    """Server-requested wait in seconds (`Retry-After`), if the error carries one."""
    if isinstance(error, httpx.HTTPStatusError):
        value = error.response.headers.get("retry-after", "").strip()
        return float(value) if value.isdigit() else None
    value = getattr(error, "retry_after", None)
    return float(value) if isinstance(value, (int, float)) else None


def classify_status(status_code: int) -> ErrorClass:
    if status_code == RATE_LIMIT_STATUS:
        return ErrorClass.RATE_LIMITED
    if 500 <= status_code <= 599:
        return ErrorClass.SERVER_ERROR
    return ErrorClass.CLIENT_ERROR


def classify_error(error: BaseException | None, attempts_so_far: int = 0) -> Classification:
    """Classify a call outcome. `attempts_so_far` is informational; ceilings live in BackoffPolicy."""
    if error is None:
        return Classification(ErrorClass.SUCCESS, retry=False)

    status_code = status_code_of(error)
    if status_code is not None:
        error_class = classify_status(status_code)
        return Classification(error_class, error_class in _RETRYABLE, status_code)

    if isinstance(error, _TRANSPORT_TRANSIENT_TYPES):
        return Classification(ErrorClass.TRANSIENT_NETWORK, retry=True)

    message = str(error).lower()
    if any(marker in message for marker in TRANSIENT_MESSAGE_MARKERS):
        return Classification(ErrorClass.TRANSIENT_NETWORK, retry=True)

    return Classification(ErrorClass.CLIENT_ERROR, retry=False)


def should_retry(error: BaseException | None, attempts_so_far: int = 0) -> bool:
    """Boolean shortcut over classify_error."""
    return classify_error(error, attempts_so_far).retry
