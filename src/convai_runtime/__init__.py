"""convai-runtime - client-side session protocol for realtime conversational agents.

Decodes the event stream an agent sends over a data channel, answers
keepalive pings, runs client tools the agent requests and reports
everything else to a ConversationObserver.
"""

from .config import HandlerConfig
from .coordinator import ToolInvocationCoordinator
from .observer import CallbackObserver, ConversationObserver
from .protocol import (
    AgentResponsePart,
    AgentToolResponse,
    ClientToolCall,
    ConversationMetadata,
    InboundEventType,
    InterruptionEvent,
    McpConnectionStatus,
    McpToolCall,
    Role,
)
from .protocol.handler import MessageHandler
from .tools import ClientTool, ClientToolResult, FunctionTool, client_tool, tool_registry
from .transport import DataChannel, MemoryDataChannel, WebSocketDataChannel

__version__ = "0.1.0"

__all__ = [
    # Handler
    "MessageHandler",
    "HandlerConfig",
    "ToolInvocationCoordinator",
    # Observer
    "ConversationObserver",
    "CallbackObserver",
    # Tools
    "ClientTool",
    "ClientToolResult",
    "FunctionTool",
    "client_tool",
    "tool_registry",
    # Transport
    "DataChannel",
    "MemoryDataChannel",
    "WebSocketDataChannel",
    # Events
    "InboundEventType",
    "Role",
    "ConversationMetadata",
    "AgentResponsePart",
    "InterruptionEvent",
    "ClientToolCall",
    "McpToolCall",
    "McpConnectionStatus",
    "AgentToolResponse",
]
