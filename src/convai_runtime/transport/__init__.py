"""Transport adapters for the agent data channel.

The handler only needs a DataChannel: an inbound stream of decoded JSON
objects plus an async send. Connection management stays with the caller.
"""

from .base import DataChannel
from .memory import MemoryDataChannel
from .websocket import WebSocketDataChannel

__all__ = [
    "DataChannel",
    "MemoryDataChannel",
    "WebSocketDataChannel",
]
