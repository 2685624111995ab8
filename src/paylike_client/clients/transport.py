"""
HTTP transport for the Paylike API.

One `request(...)` call describes one HTTP attempt; awaiting `first()` on
the returned object performs it and yields the first response event.
Retrying is not done here; the client wraps `first()` in the retry engine.
"""

import json
import math
from typing import Any, Callable, Protocol

import httpx

from .request_log import LogSink
from ..exceptions import (
    ConnectionError,
    RateLimitError,
    ResponseError,
    ServerError,
    TimeoutError,
)
from ..retry import Clock

NDJSON_TYPES = ("application/x-ndjson", "application/ndjson")


class Request(Protocol):
    """A prepared request attempt."""

    async def first(self) -> Any:
        """Perform the attempt and return its first event."""
        ...


Transport = Callable[..., Request]


def _url(endpoint: str) -> str:
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    return f"https://{endpoint}"


def _parse_retry_after(value: str | None) -> int | None:
    """Convert a Retry-After header (seconds) to milliseconds."""
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return int(seconds * 1000)


class HttpRequest:
    """
    A single POST to a Paylike endpoint.

    Log entries emitted through `log`:
    - {"t": "request", "method", "url", "timeout"} before sending
    - {"t": "aborted", "abort"} when no response arrived
    - {"t": "response", "status", "status_text", "request_id"} on any response
    - {"t": "closing stream"} after the first event was read
    """

    def __init__(
        self,
        endpoint: str,
        *,
        version: int = 1,
        data: Any = None,
        log: LogSink | None = None,
        timeout: int = 10000,
        client_id: str | None = None,
        clock: Clock | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            endpoint: Host and path, with or without scheme
            version: API version sent as Accept-Version
            data: JSON payload
            log: Sink for structured log entries
            timeout: Request timeout in milliseconds
            client_id: Identifier sent as X-Client
            clock: Unused by the HTTP transport; accepted for custom transports
            http_client: Client to send with (default: a fresh AsyncClient)
        """
        self.url = _url(endpoint)
        self.version = version
        self.data = data
        self.log = log or (lambda entry: None)
        self.timeout = timeout
        self.client_id = client_id
        self.clock = clock
        self.http_client = http_client

    def _get_headers(self) -> dict:
        headers = {
            "Accept-Version": str(self.version),
            "Content-Type": "application/json",
        }
        if self.client_id:
            headers["X-Client"] = self.client_id
        return headers

    async def _post(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.post(
            self.url,
            headers=self._get_headers(),
            json=self.data,
            timeout=self.timeout / 1000,
        )

    async def _send(self) -> httpx.Response:
        if self.http_client is not None:
            return await self._post(self.http_client)
        async with httpx.AsyncClient() as client:
            return await self._post(client)

    def _handle_error(self, response: httpx.Response, request_id: str | None) -> None:
        """Convert unsuccessful responses to domain exceptions."""
        status_code = response.status_code
        if status_code == 429:
            raise RateLimitError(
                retry_after=_parse_retry_after(response.headers.get("retry-after")),
                status_code=status_code,
                request_id=request_id,
            )

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                raise ResponseError.from_body(
                    body, status_code=status_code, request_id=request_id
                )

        raise ServerError(
            f"Unexpected response: {response.reason_phrase}",
            status_code=status_code,
            request_id=request_id,
            headers=response.headers,
        )

    def _first_event(self, response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if not response.content:
            return None
        if content_type.startswith(NDJSON_TYPES):
            for line in response.text.splitlines():
                if line.strip():
                    return json.loads(line)
            return None
        if content_type.startswith("application/json"):
            return response.json()
        return response.text

    async def first(self) -> Any:
        """
        Send the request and return its first event.

        Returns:
            The first NDJSON line or the JSON body, decoded; None for an
            empty body

        Raises:
            RateLimitError, ServerError, ResponseError: on unsuccessful status
            TimeoutError, ConnectionError: when no response arrived
        """
        self.log({"t": "request", "method": "POST", "url": self.url, "timeout": self.timeout})

        try:
            response = await self._send()
        except httpx.TimeoutException as e:
            self.log({"t": "aborted", "abort": e})
            raise TimeoutError(
                f"Request timed out after {self.timeout}ms", timeout=self.timeout
            ) from e
        except httpx.TransportError as e:
            self.log({"t": "aborted", "abort": e})
            raise ConnectionError(f"Failed to reach {self.url}: {e}") from e
        except Exception as e:
            self.log({"t": "aborted", "abort": e})
            raise

        request_id = response.headers.get("request-id")
        self.log(
            {
                "t": "response",
                "status": response.status_code,
                "status_text": response.reason_phrase,
                "request_id": request_id,
            }
        )

        if response.status_code >= 300:
            self._handle_error(response, request_id)

        event = self._first_event(response)
        self.log({"t": "closing stream"})
        return event


def request(endpoint: str, **options) -> HttpRequest:
    """Default transport: prepare one HTTP attempt against `endpoint`."""
    return HttpRequest(endpoint, **options)
