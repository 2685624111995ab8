"""
Paylike Client - Exception Hierarchy.

Errors raised by API calls, split into final and transient failures.
"""

from .base import (
    PaylikeError,
    RateLimitError,
    TimeoutError,
    ConnectionError,
    ServerError,
    ResponseError,
)

__all__ = [
    "PaylikeError",
    "RateLimitError",
    "TimeoutError",
    "ConnectionError",
    "ServerError",
    "ResponseError",
]
