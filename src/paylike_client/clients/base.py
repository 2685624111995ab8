"""
Client configuration.

Options are set once when the client is built and can be overridden per
call; call-site options win over construction-time defaults.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from .request_log import LogSink
from .transport import Transport, request
from ..retry import AsyncioClock, Clock, RetryPolicy, default_retry_after

DEFAULT_CLIENT_ID = "py-c-1"


@dataclass(frozen=True)
class Hosts:
    """Hosts of the two Paylike services."""

    api: str = "b.paylike.io"
    vault: str = "vault.paylike.io"


@dataclass(frozen=True)
class ClientConfig:
    """
    Options recognized by PaylikeClient.

    Attributes:
        hosts: Service hosts (api for payments, vault for tokenization)
        client_id: Identifier sent with every request
        timeout: Per-attempt timeout in milliseconds (default: 10s)
        clock: Time source for waits between attempts
        retry_after: Retry policy (default: default_retry_after)
        log: Sink for structured log entries, or None
        transport: Callable preparing one request attempt
        http_client: httpx client used by the default transport
    """

    hosts: Hosts = field(default_factory=Hosts)
    client_id: str = DEFAULT_CLIENT_ID
    timeout: int = 10000
    clock: Clock = field(default_factory=AsyncioClock)
    retry_after: RetryPolicy = default_retry_after
    log: LogSink | None = None
    transport: Transport = request
    http_client: httpx.AsyncClient | None = None

    @classmethod
    def option_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in dataclasses.fields(cls))

    def merge(self, **overrides: Any) -> "ClientConfig":
        """
        Return a copy with `overrides` applied.

        `hosts` may be a Hosts or a mapping overriding some of the hosts.
        Options set to None keep their current value, except `log` and
        `http_client` where None is meaningful.

        Raises:
            TypeError: On an unrecognized option name
        """
        unknown = set(overrides) - self.option_names()
        if unknown:
            raise TypeError(f"Unknown client option(s): {', '.join(sorted(unknown))}")

        changes = {
            name: value
            for name, value in overrides.items()
            if value is not None or name in ("log", "http_client")
        }
        hosts = changes.get("hosts")
        if isinstance(hosts, Mapping):
            changes["hosts"] = dataclasses.replace(self.hosts, **hosts)
        return dataclasses.replace(self, **changes)
