"""Data channel protocol.

Key difference from a full transport: a DataChannel never connects or
reconnects. It is handed to the MessageHandler already open.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DataChannel(Protocol):
    """Protocol for the bidirectional channel to the agent.

    The transport handles:
    - Wire format (JSON text frames, data packets, ...)
    - Connection lifecycle and reconnection
    """

    def receive(self) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded inbound messages in delivery order.

        Raising from the iterator reports a transport error; the handler
        logs it and calls receive() again, so implementations should resume
        from where the stream left off. Returning ends the stream.
        """
        ...

    async def send(self, message: dict[str, Any]) -> None:
        """Send one outbound message.

        Raises:
            ConnectionError: If the message cannot be sent
        """
        ...
