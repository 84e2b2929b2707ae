"""
Error types for fetch_request.
"""
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .types import RequestConfig


CANCELLED = "CANCELLED"
RETRY_TIMEOUT = "RETRY_TIMEOUT"
TIMEOUT = "TIMEOUT"
NETWORK_ERROR = "NETWORK_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"


class RequestError(Exception):
    """Error raised for a failed request.

    Carries the HTTP status when the transport produced one, a machine
    readable code, the configuration of the request that failed and the
    underlying error when this one wraps another.
    """

    code: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        code: Optional[str] = None,
        config: Optional["RequestConfig"] = None,
        original_error: Any = None,
    ) -> None:
        super().__init__(message)
        self.name = type(self).__name__
        self.status = status
        self.status_text = status_text
        if code is not None:
            self.code = code
        self.config = config
        self.original_error = original_error

    @property
    def message(self) -> str:
        return str(self)


class CancelledRequestError(RequestError):
    """Error raised when a request is cancelled by the caller."""

    code = CANCELLED

    def __init__(self, message: str = "Request cancelled", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class RetryTimeoutError(RequestError):
    """Error raised when the retry total-timeout budget is exhausted."""

    code = RETRY_TIMEOUT

    def __init__(self, total_timeout_ms: float, **kwargs: Any) -> None:
        super().__init__(
            f"Retry total timeout exceeded ({total_timeout_ms:g}ms)", **kwargs
        )
        self.total_timeout_ms = total_timeout_ms


def is_cancelled_error(error: BaseException) -> bool:
    """Check if an error signals a caller-initiated cancellation."""
    return getattr(error, "code", None) == CANCELLED


def to_request_error(
    error: BaseException, config: Optional["RequestConfig"] = None
) -> BaseException:
    """
    Attach the request configuration to a failure.

    Any exception is returned as-is, gaining ``config`` only when it does
    not already carry one, so callers can still catch the transport's own
    exception types. Only an exception that refuses the attribute is
    wrapped in a RequestError with code UNKNOWN_ERROR, keeping the original
    in ``original_error`` and as the exception cause.

    Args:
        error: The failure
        config: Configuration of the request that failed

    Returns:
        The failure to surface
    """
    if getattr(error, "config", None) is not None or config is None:
        return error

    try:
        error.config = config  # type: ignore[attr-defined]
    except AttributeError:
        wrapped = RequestError(
            str(error) or type(error).__name__,
            code=UNKNOWN_ERROR,
            config=config,
            original_error=error,
        )
        wrapped.__cause__ = error
        return wrapped
    return error
