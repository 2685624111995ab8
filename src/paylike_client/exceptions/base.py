"""
Base exception classes for Paylike API calls.

Each exception carries a `final` flag. A final error is a well-formed
rejection from the service and must never be retried; everything else
(rate limiting, timeouts, network and server failures) is transient.
"""

from typing import Any, Mapping


class PaylikeError(Exception):
    """Base exception for all Paylike client errors."""

    def __init__(
        self,
        message: str,
        *,
        final: bool = False,
        status_code: int | None = None,
        request_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.final = final
        self.status_code = status_code
        self.request_id = request_id

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code:
            parts.append(f"(status: {self.status_code})")
        if self.request_id:
            parts.append(f"[request: {self.request_id}]")
        return " ".join(parts)


class RateLimitError(PaylikeError):
    """
    Raised on HTTP 429. Transient.

    `retry_after` is the server-suggested delay in milliseconds, or None
    when the server gave no hint.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: int | None = None,
        **kwargs,
    ):
        super().__init__(message, final=False, **kwargs)
        self.retry_after = retry_after


class TimeoutError(PaylikeError):
    """Raised when a request does not complete within its timeout. Transient."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        timeout: int | None = None,
        **kwargs,
    ):
        super().__init__(message, final=False, **kwargs)
        self.timeout = timeout


class ConnectionError(PaylikeError):
    """Raised when the service cannot be reached. Transient."""

    def __init__(self, message: str = "Connection failed", **kwargs):
        super().__init__(message, final=False, **kwargs)


class ServerError(PaylikeError):
    """Raised on an unsuccessful response without a structured body. Transient."""

    def __init__(
        self,
        message: str = "Server error",
        *,
        headers: Mapping[str, str] | None = None,
        **kwargs,
    ):
        super().__init__(message, final=False, **kwargs)
        self.headers = dict(headers or {})


class ResponseError(PaylikeError):
    """
    Raised when the service rejects a request with a structured body.

    Always final: retrying the same payload yields the same rejection.
    """

    def __init__(
        self,
        message: str = "Request rejected",
        *,
        code: str | None = None,
        errors: list[Any] | None = None,
        **kwargs,
    ):
        super().__init__(message, final=True, **kwargs)
        self.code = code
        self.errors = errors or []

    @classmethod
    def from_body(
        cls,
        body: Mapping[str, Any],
        *,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> "ResponseError":
        """Build from a decoded JSON error body (`code`, `message`, `errors`)."""
        return cls(
            body.get("message") or "Request rejected",
            code=body.get("code"),
            errors=body.get("errors"),
            status_code=status_code,
            request_id=request_id,
        )
