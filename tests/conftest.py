"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from convai_runtime.config import HandlerConfig
from convai_runtime.observer import ConversationObserver
from convai_runtime.protocol.handler import MessageHandler
from convai_runtime.transport.memory import MemoryDataChannel


class RecordingObserver(ConversationObserver):
    """Observer that records every call in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def named(self, name: str) -> list[tuple[Any, ...]]:
        """Arguments of every call to the named method."""
        return [args for call_name, args in self.calls if call_name == name]

    @property
    def errors(self) -> list[tuple[Any, ...]]:
        return self.named("on_error")

    @property
    def debug_events(self) -> list[dict[str, Any]]:
        return [args[0] for args in self.named("on_debug")]

    def on_conversation_metadata(self, metadata: Any) -> None:
        self._record("on_conversation_metadata", metadata)

    def on_message(self, message: str, source: Any) -> None:
        self._record("on_message", message, source)

    def on_agent_response_part(self, part: Any) -> None:
        self._record("on_agent_response_part", part)

    def on_audio(self, chunk: str) -> None:
        self._record("on_audio", chunk)

    def on_interruption(self, event: Any) -> None:
        self._record("on_interruption", event)

    def on_unhandled_client_tool_call(self, call: Any) -> None:
        self._record("on_unhandled_client_tool_call", call)

    def on_mcp_tool_call(self, call: Any) -> None:
        self._record("on_mcp_tool_call", call)

    def on_mcp_connection_status(self, status: Any) -> None:
        self._record("on_mcp_connection_status", status)

    def on_agent_tool_response(self, response: Any) -> None:
        self._record("on_agent_tool_response", response)

    def on_end_call_requested(self) -> None:
        self._record("on_end_call_requested")

    def on_debug(self, event: dict[str, Any]) -> None:
        self._record("on_debug", event)

    def on_error(self, message: str, error: BaseException | None = None) -> None:
        self._record("on_error", message, error)


@pytest.fixture
def observer() -> RecordingObserver:
    """Observer recording every callback."""
    return RecordingObserver()


@pytest.fixture
def channel() -> MemoryDataChannel:
    """In-memory data channel recording outbound messages."""
    return MemoryDataChannel()


@pytest.fixture
def config() -> HandlerConfig:
    """Config with no resubscribe delay so tests run fast."""
    return HandlerConfig(resubscribe_delay=0)


@pytest.fixture
def handler(
    channel: MemoryDataChannel,
    observer: RecordingObserver,
    config: HandlerConfig,
) -> MessageHandler:
    """Handler with no client tools registered."""
    return MessageHandler(channel, observer, config=config)
