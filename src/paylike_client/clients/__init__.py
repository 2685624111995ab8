"""
Paylike Client - API Clients.

Public call surface, configuration and the default HTTP transport.
"""

from .base import ClientConfig, Hosts, DEFAULT_CLIENT_ID
from .paylike import PaylikeClient, Payments
from .request_log import RequestLog, next_request_id
from .transport import HttpRequest, request

__all__ = [
    "ClientConfig",
    "Hosts",
    "DEFAULT_CLIENT_ID",
    "PaylikeClient",
    "Payments",
    "RequestLog",
    "next_request_id",
    "HttpRequest",
    "request",
]
