"""Outbound messages sent by the client over the data channel.

Each factory returns a plain mapping; encoding is the transport's job.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any


class OutboundMessageType(str, Enum):
    """All outbound message types."""

    PONG = "pong"
    CLIENT_TOOL_RESULT = "client_tool_result"
    FEEDBACK = "feedback"


def pong(event_id: Any) -> dict[str, Any]:
    """Keepalive reply echoing the ping's event_id."""
    return {"type": OutboundMessageType.PONG.value, "event_id": event_id}


def client_tool_result(
    tool_call_id: str,
    result: Mapping[str, Any],
    is_error: bool = False,
) -> dict[str, Any]:
    """Result of a client tool, correlated by tool_call_id."""
    message: dict[str, Any] = {
        "type": OutboundMessageType.CLIENT_TOOL_RESULT.value,
        "tool_call_id": tool_call_id,
        "result": dict(result),
    }
    if is_error:
        message["is_error"] = True
    return message


def feedback(like: bool, event_id: int) -> dict[str, Any]:
    """User rating of the agent response up to event_id."""
    return {
        "type": OutboundMessageType.FEEDBACK.value,
        "score": "like" if like else "dislike",
        "event_id": event_id,
    }
