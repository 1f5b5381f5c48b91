"""Observer interface for conversation events.

The presentation layer receives everything the handler decodes through a
single ConversationObserver. Every method is a no-op by default, so an
observer only overrides the events it cares about.

Two ways to observe a session:

    class MyObserver(ConversationObserver):
        def on_message(self, message: str, source: Role) -> None:
            print(f"{source.value}: {message}")

    observer = CallbackObserver(on_message=lambda message, source: ...)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .protocol.events import (
        AgentResponsePart,
        AgentToolResponse,
        ClientToolCall,
        ConversationMetadata,
        InterruptionEvent,
        McpConnectionStatus,
        McpToolCall,
        Role,
    )

logger = logging.getLogger(__name__)


class ConversationObserver:
    """Capability set with one method per conversation event kind."""

    def on_conversation_metadata(self, metadata: ConversationMetadata) -> None:
        """Session metadata arrived (first event of a conversation)."""

    def on_message(self, message: str, source: Role) -> None:
        """A complete user transcript or agent response."""

    def on_agent_response_part(self, part: AgentResponsePart) -> None:
        """A streaming fragment of the agent response."""

    def on_audio(self, chunk: str) -> None:
        """An opaque base64 audio fragment."""

    def on_interruption(self, event: InterruptionEvent) -> None:
        """The user interrupted the agent."""

    def on_unhandled_client_tool_call(self, call: ClientToolCall) -> None:
        """The agent requested a client tool with no registered handler."""

    def on_mcp_tool_call(self, call: McpToolCall) -> None:
        """Progress of a tool call routed through an MCP server."""

    def on_mcp_connection_status(self, status: McpConnectionStatus) -> None:
        """Connection state of the agent's MCP integrations."""

    def on_agent_tool_response(self, response: AgentToolResponse) -> None:
        """The agent finished running one of its own tools."""

    def on_end_call_requested(self) -> None:
        """The agent asked to end the session."""

    def on_debug(self, event: dict[str, Any]) -> None:
        """Raw inbound event, for diagnostics."""

    def on_error(self, message: str, error: BaseException | None = None) -> None:
        """A non-fatal failure inside the session."""


class CallbackObserver(ConversationObserver):
    """Observer built from optional callables.

    Any callback left as None is silently skipped.
    """

    def __init__(
        self,
        *,
        on_conversation_metadata: Callable[[ConversationMetadata], None] | None = None,
        on_message: Callable[[str, Role], None] | None = None,
        on_agent_response_part: Callable[[AgentResponsePart], None] | None = None,
        on_audio: Callable[[str], None] | None = None,
        on_interruption: Callable[[InterruptionEvent], None] | None = None,
        on_unhandled_client_tool_call: Callable[[ClientToolCall], None] | None = None,
        on_mcp_tool_call: Callable[[McpToolCall], None] | None = None,
        on_mcp_connection_status: Callable[[McpConnectionStatus], None] | None = None,
        on_agent_tool_response: Callable[[AgentToolResponse], None] | None = None,
        on_end_call_requested: Callable[[], None] | None = None,
        on_debug: Callable[[dict[str, Any]], None] | None = None,
        on_error: Callable[[str, BaseException | None], None] | None = None,
    ) -> None:
        self._on_conversation_metadata = on_conversation_metadata
        self._on_message = on_message
        self._on_agent_response_part = on_agent_response_part
        self._on_audio = on_audio
        self._on_interruption = on_interruption
        self._on_unhandled_client_tool_call = on_unhandled_client_tool_call
        self._on_mcp_tool_call = on_mcp_tool_call
        self._on_mcp_connection_status = on_mcp_connection_status
        self._on_agent_tool_response = on_agent_tool_response
        self._on_end_call_requested = on_end_call_requested
        self._on_debug = on_debug
        self._on_error = on_error

    def on_conversation_metadata(self, metadata: ConversationMetadata) -> None:
        if self._on_conversation_metadata:
            self._on_conversation_metadata(metadata)

    def on_message(self, message: str, source: Role) -> None:
        if self._on_message:
            self._on_message(message, source)

    def on_agent_response_part(self, part: AgentResponsePart) -> None:
        if self._on_agent_response_part:
            self._on_agent_response_part(part)

    def on_audio(self, chunk: str) -> None:
        if self._on_audio:
            self._on_audio(chunk)

    def on_interruption(self, event: InterruptionEvent) -> None:
        if self._on_interruption:
            self._on_interruption(event)

    def on_unhandled_client_tool_call(self, call: ClientToolCall) -> None:
        if self._on_unhandled_client_tool_call:
            self._on_unhandled_client_tool_call(call)

    def on_mcp_tool_call(self, call: McpToolCall) -> None:
        if self._on_mcp_tool_call:
            self._on_mcp_tool_call(call)

    def on_mcp_connection_status(self, status: McpConnectionStatus) -> None:
        if self._on_mcp_connection_status:
            self._on_mcp_connection_status(status)

    def on_agent_tool_response(self, response: AgentToolResponse) -> None:
        if self._on_agent_tool_response:
            self._on_agent_tool_response(response)

    def on_end_call_requested(self) -> None:
        if self._on_end_call_requested:
            self._on_end_call_requested()

    def on_debug(self, event: dict[str, Any]) -> None:
        if self._on_debug:
            self._on_debug(event)

    def on_error(self, message: str, error: BaseException | None = None) -> None:
        if self._on_error:
            self._on_error(message, error)
        else:
            logger.debug(f"{message}: {error}")
