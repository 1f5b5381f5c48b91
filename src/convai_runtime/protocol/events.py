"""Inbound event definitions.

Every message from the agent is a JSON object with a ``type`` discriminator
and, for most types, a sub-object carrying the payload:

    {
        "type": "client_tool_call",
        "event_id": 12,
        "client_tool_call": {
            "tool_call_id": "call_abc",
            "tool_name": "get_time",
            "parameters": {"timezone": "UTC"}
        }
    }

InboundEventType is the closed set of discriminators the handler knows
about. Anything else classifies as UNKNOWN rather than failing.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class InboundEventType(str, Enum):
    """All inbound event types in the protocol."""

    # Session
    CONVERSATION_METADATA = "conversation_initiation_metadata"
    PING = "ping"

    # Conversation content
    USER_TRANSCRIPTION = "user_transcription"
    AGENT_RESPONSE = "agent_response"
    AGENT_RESPONSE_PART = "agent_response_part"
    AUDIO = "audio"
    INTERRUPTION = "interruption"

    # Tools
    CLIENT_TOOL_CALL = "client_tool_call"
    MCP_TOOL_CALL = "mcp_tool_call"
    MCP_CONNECTION_STATUS = "mcp_connection_status"
    AGENT_TOOL_RESPONSE = "agent_tool_response"

    # Diagnostics only (forwarded, never processed)
    AGENT_CHAT_RESPONSE_PART = "agent_chat_response_part"
    INTERNAL_TENTATIVE_AGENT_RESPONSE = "internal_tentative_agent_response"
    VAD_SCORE = "vad_score"
    TENTATIVE_USER_TRANSCRIPT = "tentative_user_transcript"
    USER_TRANSCRIPT = "user_transcript"
    AGENT_RESPONSE_CORRECTION = "agent_response_correction"

    # Anything the handler does not recognise
    UNKNOWN = "unknown"

    @classmethod
    def classify(cls, raw_type: str) -> InboundEventType:
        """Map a wire discriminator onto a known variant, or UNKNOWN."""
        try:
            return cls(raw_type)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_diagnostic_only(self) -> bool:
        """Check if this type is only forwarded to diagnostics."""
        return self in DIAGNOSTIC_ONLY_TYPES


DIAGNOSTIC_ONLY_TYPES = frozenset(
    {
        InboundEventType.AGENT_CHAT_RESPONSE_PART,
        InboundEventType.INTERNAL_TENTATIVE_AGENT_RESPONSE,
        InboundEventType.VAD_SCORE,
        InboundEventType.TENTATIVE_USER_TRANSCRIPT,
        InboundEventType.USER_TRANSCRIPT,
        InboundEventType.AGENT_RESPONSE_CORRECTION,
    }
)


class Role(str, Enum):
    """Who produced a conversation message."""

    USER = "user"
    AGENT = "agent"


def _payload(event: dict[str, Any], key: str) -> dict[str, Any]:
    """Extract a payload sub-object, raising ValueError if it is missing."""
    payload = event.get(key)
    if not isinstance(payload, dict):
        raise ValueError(f"Event '{event.get('type')}' has no '{key}' object")
    return payload


# =============================================================================
# Session payloads
# =============================================================================


class ConversationMetadata(BaseModel):
    """Sent once when the conversation starts."""

    conversation_id: str
    agent_output_audio_format: str | None = None
    user_input_audio_format: str | None = None

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> ConversationMetadata:
        return cls.model_validate(_payload(event, "conversation_initiation_metadata_event"))


class InterruptionEvent(BaseModel):
    """The user started speaking over the agent."""

    event_id: int
    reason: str | None = None

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> InterruptionEvent:
        return cls.model_validate(_payload(event, "interruption_event"))


# =============================================================================
# Streaming response payloads
# =============================================================================


class ResponsePartType(str, Enum):
    """Position of a fragment within a streamed response."""

    START = "start"
    DELTA = "delta"
    STOP = "stop"


class AgentResponsePart(BaseModel):
    """One fragment of a streamed agent response."""

    text: str = ""
    type: ResponsePartType = ResponsePartType.DELTA

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> AgentResponsePart:
        if "text_response_part" in event:
            return cls.model_validate(_payload(event, "text_response_part"))
        return cls.model_validate(_payload(event, "agent_response_part"))


# =============================================================================
# Tool payloads
# =============================================================================


class ClientToolCall(BaseModel):
    """Request from the agent to run a tool on the client.

    tool_call_id is unique within the session and must be echoed back in
    the client_tool_result message.
    """

    tool_call_id: str
    tool_name: str
    parameters: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> ClientToolCall:
        return cls.model_validate(_payload(event, "client_tool_call"))


class McpToolCall(BaseModel):
    """State change of a tool call the agent routes through an MCP server."""

    service_id: str | None = None
    tool_call_id: str
    tool_name: str
    tool_parameters: dict[str, Any] = Field(default_factory=dict)
    state: str = "loading"  # loading | awaiting_approval | success | failure
    result: list[dict[str, Any]] | None = None
    error_message: str | None = None
    approval_timeout_secs: int | None = None

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> McpToolCall:
        return cls.model_validate(_payload(event, "mcp_tool_call"))


class McpIntegration(BaseModel):
    """One MCP server the agent is connected to."""

    integration_id: str
    integration_type: str | None = None
    is_connected: bool = False
    tool_count: int = 0


class McpConnectionStatus(BaseModel):
    """Connection state of every MCP integration."""

    integrations: list[McpIntegration] = Field(default_factory=list)

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> McpConnectionStatus:
        return cls.model_validate(_payload(event, "mcp_connection_status"))


class AgentToolResponse(BaseModel):
    """The agent finished running one of its own (server-side) tools."""

    tool_name: str
    tool_call_id: str | None = None
    tool_type: str | None = None
    is_error: bool = False

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> AgentToolResponse:
        return cls.model_validate(_payload(event, "agent_tool_response"))
