"""Agent session protocol.

Inbound events from the agent are routed by their ``type`` discriminator;
outbound messages are plain mappings built in ``messages``. The handler
itself lives in ``protocol.handler``.

Two interaction patterns share the channel:
- Notifications: agent -> client, no reply (transcripts, audio, status)
- Requests: agent -> client with a correlated reply (ping/pong, client tools)
"""

from . import messages
from .events import (
    AgentResponsePart,
    AgentToolResponse,
    ClientToolCall,
    ConversationMetadata,
    InboundEventType,
    InterruptionEvent,
    McpConnectionStatus,
    McpIntegration,
    McpToolCall,
    ResponsePartType,
    Role,
)

__all__ = [
    "messages",
    "InboundEventType",
    "Role",
    "ConversationMetadata",
    "AgentResponsePart",
    "ResponsePartType",
    "InterruptionEvent",
    "ClientToolCall",
    "McpToolCall",
    "McpIntegration",
    "McpConnectionStatus",
    "AgentToolResponse",
]
