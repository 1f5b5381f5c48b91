"""WebSocket data channel.

Adapts an already-connected ``websockets`` client connection. Each text
frame carries one JSON object.

Usage:
    async with websockets.connect(url) as connection:
        channel = WebSocketDataChannel(connection)
        async with MessageHandler(channel, observer, tools=tools) as handler:
            await handler.wait_stopped()
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)


class WebSocketDataChannel:
    """DataChannel over a websockets connection.

    The connection is borrowed: this adapter never opens, reconnects or
    closes it.
    """

    def __init__(self, connection: Any) -> None:
        self._connection = connection  # websockets ClientConnection

    async def receive(self) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded JSON objects until the connection closes."""
        try:
            async for frame in self._connection:
                message = self._decode(frame)
                if message is not None:
                    yield message
        except ConnectionClosed as e:
            logger.info(f"WebSocket closed: {e}")

    async def send(self, message: dict[str, Any]) -> None:
        try:
            await self._connection.send(json.dumps(message))
        except ConnectionClosed as e:
            raise ConnectionError(f"WebSocket closed: {e}") from e

    @staticmethod
    def _decode(frame: str | bytes) -> dict[str, Any] | None:
        """Decode one frame, skipping anything that is not a JSON object."""
        if isinstance(frame, bytes):
            try:
                frame = frame.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.warning(f"Invalid WebSocket frame encoding: {e}")
                return None

        try:
            data = json.loads(frame)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid WebSocket message: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring non-object WebSocket message: {type(data).__name__}")
            return None
        return data
