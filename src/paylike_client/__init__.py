"""
Paylike Client - Tokenization and payment requests with resilient retries.
"""

from .clients import ClientConfig, Hosts, PaylikeClient, RequestLog, request
from .exceptions import (
    PaylikeError,
    RateLimitError,
    TimeoutError,
    ConnectionError,
    ServerError,
    ResponseError,
)
from .retry import (
    RetrySchedule,
    RetryState,
    AsyncioClock,
    VirtualClock,
    default_retry_after,
    retry,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Clients
    "ClientConfig",
    "Hosts",
    "PaylikeClient",
    "RequestLog",
    "request",
    # Exceptions
    "PaylikeError",
    "RateLimitError",
    "TimeoutError",
    "ConnectionError",
    "ServerError",
    "ResponseError",
    # Retry
    "RetrySchedule",
    "RetryState",
    "AsyncioClock",
    "VirtualClock",
    "default_retry_after",
    "retry",
]
