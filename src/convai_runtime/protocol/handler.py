"""Message Handler - routes inbound agent events.

Consumes the inbound stream of a DataChannel, tracks the session sequence
and dispatches every event to the observer, the keepalive responder or
the tool coordinator.

Usage:
    handler = MessageHandler(channel, observer, tools=tools)
    handler.start_listening()
    ...
    handler.dispose()

Scheduling:
    Events are routed one at a time in delivery order. Everything except
    client tool calls is handled synchronously before the next event is
    read. Tool calls start a task and return immediately; pong replies are
    sent from short background tasks.

Failures:
    Nothing here is fatal to the session. A bad event is logged and
    reported, a transport error is reported and the stream is read again,
    and only stop_listening()/dispose() end processing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from ..config import HandlerConfig
from ..coordinator import ToolInvocationCoordinator
from ..observer import ConversationObserver
from ..tools import ClientTool
from ..transport.base import DataChannel
from . import messages
from .events import (
    AgentResponsePart,
    AgentToolResponse,
    ConversationMetadata,
    InboundEventType,
    InterruptionEvent,
    McpConnectionStatus,
    McpToolCall,
    Role,
)

logger = logging.getLogger(__name__)


class MessageHandler:
    """Session-level protocol handler for one conversation.

    Owns the stream subscription and the sequence counter. The tool
    registry is borrowed and never modified. A new session needs a new
    handler.
    """

    def __init__(
        self,
        channel: DataChannel,
        observer: ConversationObserver | None = None,
        tools: Mapping[str, ClientTool] | None = None,
        config: HandlerConfig | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            channel: Open data channel to the agent
            observer: Receives decoded events (default: ignore everything)
            tools: Client tools the agent may invoke, keyed by name
            config: Handler configuration
        """
        self._channel = channel
        self._observer = observer or ConversationObserver()
        self._config = config or HandlerConfig()
        self._send_lock = asyncio.Lock() if self._config.serialize_sends else None
        self._tools = ToolInvocationCoordinator(tools, self._send, self._observer, self._config)

        self._listen_task: asyncio.Task[None] | None = None
        self._send_tasks: set[asyncio.Task[None]] = set()
        self._current_event_id = 0
        self._feedback_event_id: int | None = None
        self._disposed = False

    # =========================================================================
    # Session state
    # =========================================================================

    @property
    def current_event_id(self) -> int:
        """Most recent event_id seen in this session (0 before any)."""
        return self._current_event_id

    @property
    def is_listening(self) -> bool:
        return self._listen_task is not None and not self._listen_task.done()

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def pending_tool_calls(self) -> int:
        """Client tool invocations still running."""
        return self._tools.pending

    def _update_event_id(self, value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            logger.debug(f"Ignoring non-integer event_id: {value!r}")
            return
        if value < self._current_event_id:
            logger.debug(f"Ignoring stale event_id {value} (current {self._current_event_id})")
            return
        self._current_event_id = value

    # =========================================================================
    # Subscription lifecycle
    # =========================================================================

    def start_listening(self) -> None:
        """Start consuming the inbound stream.

        If already listening, the previous subscription is cancelled and
        replaced, so at most one is ever active.

        Raises:
            RuntimeError: If the handler was disposed or no event loop is running
        """
        if self._disposed:
            raise RuntimeError("MessageHandler has been disposed")

        if self._listen_task is not None:
            logger.debug("Replacing existing subscription")
            self.stop_listening()

        self._listen_task = asyncio.create_task(self._listen(), name="convai-listen")

    def stop_listening(self) -> None:
        """Detach from the inbound stream. Safe to call when not listening.

        In-flight tool invocations keep running.
        """
        task = self._listen_task
        self._listen_task = None
        if task is not None and not task.done():
            task.cancel()

    def dispose(self) -> None:
        """Stop listening and drop results of tools that finish afterwards."""
        self.stop_listening()
        self._tools.close()
        self._disposed = True

    async def wait_stopped(self) -> None:
        """Wait until the current subscription ends (stream closed or stopped)."""
        task = self._listen_task
        if task is not None:
            await asyncio.wait({task})

    async def drain(self) -> None:
        """Wait for in-flight tool invocations and background sends."""
        await self._tools.drain()
        if self._send_tasks:
            await asyncio.gather(*list(self._send_tasks), return_exceptions=True)

    async def cancel_tools(self) -> None:
        """Cancel in-flight tool invocations (dispose() leaves them running)."""
        await self._tools.cancel_all()

    async def __aenter__(self) -> MessageHandler:
        self.start_listening()
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.dispose()

    async def _listen(self) -> None:
        """Subscription loop; transport errors never end it.

        Once this task stops being the active subscription it routes no
        further events and reads no more from the channel, whether or not
        its cancellation has been delivered yet.
        """
        subscription = asyncio.current_task()
        while True:
            try:
                async for event in self._channel.receive():
                    if self._listen_task is subscription:
                        self.process_message(event)
                    if self._listen_task is not subscription:
                        logger.debug("Subscription detached, stopping")
                        return
                logger.debug("Inbound stream ended")
                return
            except Exception as e:
                logger.warning(f"Error in data stream: {e}")
                self._report_error("Data stream error", e)
                await asyncio.sleep(self._config.resubscribe_delay)

    # =========================================================================
    # Routing
    # =========================================================================

    def process_message(self, event: dict[str, Any]) -> None:
        """Route one decoded inbound event.

        Events without a ``type``, or arriving after dispose(), are discarded
        without error. The sequence
        counter is updated before dispatch, so it holds even if the handler
        for this event fails.
        """
        if self._disposed:
            logger.debug("Handler disposed, ignoring inbound event")
            return

        event_type = event.get("type") if isinstance(event, dict) else None
        if not isinstance(event_type, str):
            return

        if "event_id" in event:
            self._update_event_id(event["event_id"])

        kind = InboundEventType.classify(event_type)

        # on_debug sees every event except pings
        if kind is not InboundEventType.PING:
            self._emit_debug(event)

        try:
            self._dispatch(kind, event)
        except Exception as e:
            logger.exception(f"Error processing {event_type} message")
            self._report_error("Failed to process message", e)

    def _dispatch(self, kind: InboundEventType, event: dict[str, Any]) -> None:
        match kind:
            case InboundEventType.CONVERSATION_METADATA:
                metadata = ConversationMetadata.from_event(event)
                self._observer.on_conversation_metadata(metadata)

            case InboundEventType.USER_TRANSCRIPTION:
                self._handle_user_transcription(event)

            case InboundEventType.AGENT_RESPONSE:
                self._handle_agent_response(event)

            case InboundEventType.AGENT_RESPONSE_PART:
                self._handle_agent_response_part(event)

            case InboundEventType.AUDIO:
                self._handle_audio(event)

            case InboundEventType.INTERRUPTION:
                self._observer.on_interruption(InterruptionEvent.from_event(event))

            case InboundEventType.PING:
                self._handle_ping(event)

            case InboundEventType.CLIENT_TOOL_CALL:
                self._tools.dispatch(event)

            case InboundEventType.MCP_TOOL_CALL:
                self._handle_mcp_tool_call(event)

            case InboundEventType.MCP_CONNECTION_STATUS:
                self._handle_mcp_connection_status(event)

            case InboundEventType.AGENT_TOOL_RESPONSE:
                self._handle_agent_tool_response(event)

            case (
                InboundEventType.AGENT_CHAT_RESPONSE_PART
                | InboundEventType.INTERNAL_TENTATIVE_AGENT_RESPONSE
                | InboundEventType.VAD_SCORE
                | InboundEventType.TENTATIVE_USER_TRANSCRIPT
                | InboundEventType.USER_TRANSCRIPT
                | InboundEventType.AGENT_RESPONSE_CORRECTION
            ):
                pass  # already forwarded to on_debug

            case _:
                logger.debug(f"Unknown event type: {event.get('type')}")

    # =========================================================================
    # Conversation content
    # =========================================================================

    def _handle_user_transcription(self, event: dict[str, Any]) -> None:
        text = _nested_text(
            event,
            ("user_transcription_event", "user_transcript"),
            ("user_transcription", "transcript"),
        )
        if text:
            self._observer.on_message(text, Role.USER)

    def _handle_agent_response(self, event: dict[str, Any]) -> None:
        text = _nested_text(
            event,
            ("agent_response_event", "agent_response"),
            ("agent_response", "response"),
        )
        if text:
            self._observer.on_message(text, Role.AGENT)

    def _handle_agent_response_part(self, event: dict[str, Any]) -> None:
        try:
            part = AgentResponsePart.from_event(event)
        except ValueError as e:
            logger.warning(f"Error parsing agent response part: {e}")
            return
        self._observer.on_agent_response_part(part)

    def _handle_audio(self, event: dict[str, Any]) -> None:
        for container_key, chunk_key in (("audio_event", "audio_base_64"), ("audio", "chunk")):
            container = event.get(container_key)
            if isinstance(container, dict) and isinstance(container.get(chunk_key), str):
                self._observer.on_audio(container[chunk_key])
                return

    # =========================================================================
    # Keepalive
    # =========================================================================

    def _handle_ping(self, event: dict[str, Any]) -> None:
        ping_event = event.get("ping_event")
        ping_id = ping_event.get("event_id") if isinstance(ping_event, dict) else None
        if ping_id is None:
            logger.debug("Ping without event_id, not answering")
            return
        self._spawn_send(messages.pong(ping_id), "pong")

    # =========================================================================
    # Agent-side tools
    # =========================================================================

    def _handle_mcp_tool_call(self, event: dict[str, Any]) -> None:
        try:
            call = McpToolCall.from_event(event)
        except ValueError as e:
            logger.warning(f"Error parsing MCP tool call: {e}")
            return
        self._observer.on_mcp_tool_call(call)

    def _handle_mcp_connection_status(self, event: dict[str, Any]) -> None:
        try:
            status = McpConnectionStatus.from_event(event)
        except ValueError as e:
            logger.warning(f"Error parsing MCP connection status: {e}")
            return
        self._observer.on_mcp_connection_status(status)

    def _handle_agent_tool_response(self, event: dict[str, Any]) -> None:
        try:
            response = AgentToolResponse.from_event(event)
        except ValueError as e:
            logger.warning(f"Error parsing agent tool response: {e}")
            return

        self._observer.on_agent_tool_response(response)

        if response.tool_name == self._config.end_call_tool_name:
            logger.info("Agent requested end of call")
            self._observer.on_end_call_requested()

    # =========================================================================
    # Outbound
    # =========================================================================

    async def send_feedback(self, like: bool) -> bool:
        """Rate the agent's latest response.

        Feedback is tied to current_event_id and sent at most once per id.

        Returns:
            True if feedback was sent, False if there is nothing new to rate
            or the handler was disposed

        Raises:
            ConnectionError: If the channel rejects the message
        """
        if self._disposed:
            logger.debug("Handler disposed, not sending feedback")
            return False

        event_id = self._current_event_id
        if event_id <= 0 or event_id == self._feedback_event_id:
            return False
        await self._send(messages.feedback(like, event_id))
        self._feedback_event_id = event_id
        return True

    async def _send(self, message: dict[str, Any]) -> None:
        if self._send_lock is not None:
            async with self._send_lock:
                await self._channel.send(message)
        else:
            await self._channel.send(message)

    def _spawn_send(self, message: dict[str, Any], label: str) -> None:
        task = asyncio.create_task(self._send_quietly(message, label))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)

    async def _send_quietly(self, message: dict[str, Any], label: str) -> None:
        if self._disposed:
            logger.debug(f"Dropping {label}: handler disposed")
            return
        try:
            await self._send(message)
        except Exception as e:
            logger.warning(f"Failed to send {label}: {e}")

    # =========================================================================
    # Observer guards
    # =========================================================================

    def _emit_debug(self, event: dict[str, Any]) -> None:
        try:
            self._observer.on_debug(event)
        except Exception:
            logger.exception("Error in on_debug observer")

    def _report_error(self, message: str, error: BaseException) -> None:
        try:
            self._observer.on_error(message, error)
        except Exception:
            logger.exception("Error in on_error observer")


def _nested_text(event: dict[str, Any], *paths: tuple[str, str]) -> str | None:
    """First non-empty string found at one of the (object, field) paths."""
    for container_key, text_key in paths:
        container = event.get(container_key)
        if isinstance(container, dict):
            text = container.get(text_key)
            if isinstance(text, str) and text:
                return text
    return None
