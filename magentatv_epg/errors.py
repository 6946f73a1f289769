"""
Error types

Exceptions raised by the MagentaTV adapter. Lookup misses are not errors and
are represented as None; malformed upstream envelopes degrade to empty lists.
"""
import httpx


class EPGAdapterError(Exception):
    """Base class for all adapter errors"""
    pass


class ConfigurationError(EPGAdapterError):
    """Raised when required configuration is missing or invalid"""
    pass


class UpstreamError(EPGAdapterError):
    """
    Raised when a remote call fails.

    Attributes:
        service: Name of the remote service ("magentatv" or "tmdb")
        status_code: HTTP status code, if a response was received
        retryable: True for transient failures (timeouts, connection errors,
            429 and 5xx responses), False for terminal ones
    """

    def __init__(
        self,
        message: str,
        *,
        service: str,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.service = service
        self.status_code = status_code
        self.retryable = retryable


class SessionError(UpstreamError):
    """Raised when the authenticate response did not carry a CSRF token"""

    def __init__(self, message: str) -> None:
        super().__init__(message, service="magentatv", retryable=True)


def is_retryable_status(status_code: int) -> bool:
    """Return True if an HTTP status code denotes a transient failure"""
    return status_code == 429 or status_code >= 500


def upstream_error_from(exc: httpx.HTTPError, service: str) -> UpstreamError:
    """
    Translate an httpx exception into an UpstreamError.

    Timeouts and connection errors are retryable. Status errors are retryable
    for 429 and 5xx responses only.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        return UpstreamError(
            f"{service} returned HTTP {status_code} for {exc.request.url}",
            service=service,
            status_code=status_code,
            retryable=is_retryable_status(status_code),
        )

    retryable = isinstance(exc, (httpx.TimeoutException, httpx.NetworkError))
    return UpstreamError(
        f"{service} request failed: {type(exc).__name__}: {exc}",
        service=service,
        retryable=retryable,
    )
