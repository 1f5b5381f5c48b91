"""In-process data channel.

Used by tests and by the replay CLI in place of a network connection.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

logger = logging.getLogger(__name__)

_CLOSED = object()


class MemoryDataChannel:
    """Data channel backed by an asyncio queue.

    Inbound events and errors are injected with push() and push_error();
    outbound messages are recorded in ``sent``.
    """

    def __init__(self, fail_sends: bool = False) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self.fail_sends = fail_sends
        self.sent: list[dict[str, Any]] = []

    @property
    def is_closed(self) -> bool:
        return self._closed

    def push(self, event: dict[str, Any]) -> None:
        """Queue an inbound event."""
        self._queue.put_nowait(event)

    def push_error(self, error: BaseException) -> None:
        """Queue a transport error, raised from the inbound stream in order."""
        self._queue.put_nowait(error)

    def close(self) -> None:
        """End the inbound stream after anything already queued."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def receive(self) -> AsyncIterator[dict[str, Any]]:
        while not (self._closed and self._queue.empty()):
            item = await self._queue.get()
            if item is _CLOSED:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    async def send(self, message: dict[str, Any]) -> None:
        if self.fail_sends:
            raise ConnectionError("Send failed (fail_sends is set)")
        self.sent.append(message)

    def sent_of_type(self, message_type: str) -> list[dict[str, Any]]:
        """Recorded outbound messages with the given type."""
        return [m for m in self.sent if m.get("type") == message_type]
