"""Unit tests for inbound event types and payload parsing."""

import pytest

from convai_runtime.protocol.events import (
    AgentResponsePart,
    AgentToolResponse,
    ClientToolCall,
    ConversationMetadata,
    InboundEventType,
    InterruptionEvent,
    McpConnectionStatus,
    McpToolCall,
    ResponsePartType,
)


class TestInboundEventType:
    """Tests for discriminator classification."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("conversation_initiation_metadata", InboundEventType.CONVERSATION_METADATA),
            ("user_transcription", InboundEventType.USER_TRANSCRIPTION),
            ("agent_response", InboundEventType.AGENT_RESPONSE),
            ("agent_response_part", InboundEventType.AGENT_RESPONSE_PART),
            ("audio", InboundEventType.AUDIO),
            ("interruption", InboundEventType.INTERRUPTION),
            ("ping", InboundEventType.PING),
            ("client_tool_call", InboundEventType.CLIENT_TOOL_CALL),
            ("mcp_tool_call", InboundEventType.MCP_TOOL_CALL),
            ("mcp_connection_status", InboundEventType.MCP_CONNECTION_STATUS),
            ("agent_tool_response", InboundEventType.AGENT_TOOL_RESPONSE),
        ],
    )
    def test_known_types(self, raw: str, expected: InboundEventType) -> None:
        """Every handled wire value maps to its own variant."""
        assert InboundEventType.classify(raw) is expected

    def test_unknown_type(self) -> None:
        """Unrecognised values classify as UNKNOWN instead of raising."""
        assert InboundEventType.classify("brand_new_event") is InboundEventType.UNKNOWN
        assert InboundEventType.classify("") is InboundEventType.UNKNOWN

    @pytest.mark.parametrize(
        "raw",
        [
            "agent_chat_response_part",
            "internal_tentative_agent_response",
            "vad_score",
            "tentative_user_transcript",
            "user_transcript",
            "agent_response_correction",
        ],
    )
    def test_diagnostic_only_types(self, raw: str) -> None:
        """Diagnostic-only types are known but flagged as such."""
        kind = InboundEventType.classify(raw)
        assert kind is not InboundEventType.UNKNOWN
        assert kind.is_diagnostic_only

    def test_handled_types_are_not_diagnostic_only(self) -> None:
        assert not InboundEventType.PING.is_diagnostic_only
        assert not InboundEventType.CLIENT_TOOL_CALL.is_diagnostic_only


class TestPayloadParsing:
    """Tests for typed payload projections."""

    def test_conversation_metadata(self) -> None:
        metadata = ConversationMetadata.from_event(
            {
                "type": "conversation_initiation_metadata",
                "conversation_initiation_metadata_event": {
                    "conversation_id": "conv_123",
                    "agent_output_audio_format": "pcm_16000",
                },
            }
        )
        assert metadata.conversation_id == "conv_123"
        assert metadata.agent_output_audio_format == "pcm_16000"
        assert metadata.user_input_audio_format is None

    def test_missing_payload_object_raises(self) -> None:
        """A missing sub-object is a ValueError, local to that event."""
        with pytest.raises(ValueError, match="conversation_initiation_metadata_event"):
            ConversationMetadata.from_event({"type": "conversation_initiation_metadata"})

    def test_invalid_payload_raises_value_error(self) -> None:
        """pydantic validation failures surface as ValueError."""
        with pytest.raises(ValueError):
            InterruptionEvent.from_event(
                {"type": "interruption", "interruption_event": {"event_id": "not-a-number"}}
            )

    def test_interruption(self) -> None:
        event = InterruptionEvent.from_event(
            {"type": "interruption", "interruption_event": {"event_id": 42}}
        )
        assert event.event_id == 42

    def test_agent_response_part_from_text_response_part(self) -> None:
        part = AgentResponsePart.from_event(
            {
                "type": "agent_response_part",
                "text_response_part": {"text": "Hel", "type": "start"},
            }
        )
        assert part.text == "Hel"
        assert part.type is ResponsePartType.START

    def test_agent_response_part_from_named_object(self) -> None:
        part = AgentResponsePart.from_event(
            {"type": "agent_response_part", "agent_response_part": {"text": "lo"}}
        )
        assert part.text == "lo"
        assert part.type is ResponsePartType.DELTA

    def test_client_tool_call(self) -> None:
        call = ClientToolCall.from_event(
            {
                "type": "client_tool_call",
                "client_tool_call": {
                    "tool_call_id": "call_1",
                    "tool_name": "get_time",
                    "parameters": {"tz": "UTC"},
                },
            }
        )
        assert call.tool_call_id == "call_1"
        assert call.tool_name == "get_time"
        assert call.parameters == {"tz": "UTC"}

    def test_client_tool_call_defaults_parameters(self) -> None:
        call = ClientToolCall.from_event(
            {
                "type": "client_tool_call",
                "client_tool_call": {"tool_call_id": "call_2", "tool_name": "noop"},
            }
        )
        assert call.parameters == {}

    def test_client_tool_call_requires_id(self) -> None:
        with pytest.raises(ValueError):
            ClientToolCall.from_event(
                {"type": "client_tool_call", "client_tool_call": {"tool_name": "noop"}}
            )

    def test_mcp_tool_call(self) -> None:
        call = McpToolCall.from_event(
            {
                "type": "mcp_tool_call",
                "mcp_tool_call": {
                    "service_id": "svc",
                    "tool_call_id": "mcp_1",
                    "tool_name": "search",
                    "tool_parameters": {"q": "weather"},
                    "state": "success",
                },
            }
        )
        assert call.tool_name == "search"
        assert call.state == "success"
        assert call.tool_parameters == {"q": "weather"}

    def test_mcp_connection_status(self) -> None:
        status = McpConnectionStatus.from_event(
            {
                "type": "mcp_connection_status",
                "mcp_connection_status": {
                    "integrations": [
                        {"integration_id": "a", "is_connected": True, "tool_count": 3},
                        {"integration_id": "b"},
                    ]
                },
            }
        )
        assert [i.integration_id for i in status.integrations] == ["a", "b"]
        assert status.integrations[0].is_connected is True
        assert status.integrations[1].tool_count == 0

    def test_agent_tool_response(self) -> None:
        response = AgentToolResponse.from_event(
            {
                "type": "agent_tool_response",
                "agent_tool_response": {
                    "tool_name": "end_call",
                    "tool_call_id": "t1",
                    "tool_type": "system",
                },
            }
        )
        assert response.tool_name == "end_call"
        assert response.is_error is False
