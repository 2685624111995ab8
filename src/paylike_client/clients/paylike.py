"""
Paylike API client.

Routes tokenize and payments.create calls to the right host and runs each
of them through the retry engine with its own correlation id.
"""

import logging
from typing import Any

from .base import ClientConfig
from .request_log import RequestLog, next_request_id
from .. import exceptions
from ..retry import retry

logger = logging.getLogger(__name__)

API_VERSION = 1


class Payments:
    """The `payments` namespace of a PaylikeClient."""

    def __init__(self, client: "PaylikeClient"):
        self._client = client

    async def create(
        self,
        payment: dict,
        hints: list | None = None,
        challenge_path: str | None = None,
        **options: Any,
    ) -> Any:
        """
        Create a payment, or continue one through a challenge path.

        Args:
            payment: Payment payload (amount, currency, card, ...)
            hints: Hints gathered from earlier challenges
            challenge_path: Path returned by a challenge (default: /payments)
            **options: Per-call overrides of ClientConfig options

        Returns:
            The first response event
        """
        config = self._client.config.merge(**options)
        endpoint = f"{config.hosts.api}{challenge_path or '/payments'}"
        data = {**payment, "hints": hints}
        return await self._client._first(endpoint, data, config)


class PaylikeClient:
    """
    Client for the Paylike tokenization and payment APIs.

    Features:
    - Retries transient failures with a pluggable policy
    - Never retries structured rejections (ResponseError)
    - Correlated structured logging for every logical call
    - Injectable clock, transport and httpx client for testing
    """

    RateLimitError = exceptions.RateLimitError
    TimeoutError = exceptions.TimeoutError
    ServerError = exceptions.ServerError
    ResponseError = exceptions.ResponseError

    def __init__(self, config: ClientConfig | None = None, **options: Any):
        """
        Initialize the client.

        Args:
            config: Base configuration (default: ClientConfig())
            **options: Overrides applied on top of `config`
        """
        self.config = (config or ClientConfig()).merge(**options)
        self.payments = Payments(self)

    async def tokenize(self, type: str, value: Any, **options: Any) -> Any:
        """
        Exchange a card number or CVC for a token.

        Args:
            type: Kind of value, e.g. "pcn" or "pcsc"
            value: The value to tokenize
            **options: Per-call overrides of ClientConfig options

        Returns:
            The first response event (the token)
        """
        config = self.config.merge(**options)
        return await self._first(
            config.hosts.vault, {"type": type, "value": value}, config
        )

    async def _first(self, endpoint: str, data: Any, config: ClientConfig) -> Any:
        log = RequestLog(config.log, next_request_id())
        policy = config.retry_after

        def retry_after(err: BaseException, attempts: int) -> Any:
            decision = policy(err, attempts)
            log(
                {
                    "t": "request failed",
                    "attempts": attempts,
                    "retry_after": decision,
                    "err": err,
                }
            )
            return decision

        def attempt():
            return config.transport(
                endpoint,
                version=API_VERSION,
                data=data,
                log=log,
                timeout=config.timeout,
                client_id=config.client_id,
                clock=config.clock,
                http_client=config.http_client,
            ).first()

        logger.debug(f"[request {log.request_id}] POST {endpoint}")
        return await retry(attempt, retry_after, clock=config.clock)
