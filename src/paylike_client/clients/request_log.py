"""
Per-call logging with correlation ids.

Every logical call (one tokenize or payments.create, retries included)
gets an id from a process-wide counter and a RequestLog bound to it.
"""

import itertools
import logging
import threading
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)

LogSink = Callable[[Mapping[str, Any]], None]

_ids = itertools.count()
_ids_lock = threading.Lock()


def next_request_id() -> int:
    """Return the next correlation id (0, 1, 2, ... for the process lifetime)."""
    with _ids_lock:
        return next(_ids)


class RequestLog:
    """
    Logging sink for one logical call.

    Entries are mappings with a `t` key naming the event. Each entry is
    passed unchanged to the caller's sink (if any) and written to the
    module logger at DEBUG with the correlation id attached.

    Entries themselves carry no id. A sink shared by concurrent calls
    cannot tell them apart from the entries alone; custom transports
    receive this object and should read `request_id` to correlate.
    """

    def __init__(self, sink: LogSink | None, request_id: int):
        self.sink = sink
        self.request_id = request_id

    def __call__(self, entry: Mapping[str, Any]) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            details = {k: v for k, v in entry.items() if k != "t"}
            logger.debug(
                f"[request {self.request_id}] {entry.get('t')} {details}",
                extra={"request_id": self.request_id},
            )
        if self.sink is not None:
            self.sink(entry)

    def __repr__(self) -> str:
        return f"RequestLog(request_id={self.request_id})"
