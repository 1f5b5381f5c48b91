"""Client-side tools the remote agent can invoke.

A client tool runs locally when the agent sends a ``client_tool_call``.
Anything with an async ``execute(parameters)`` method qualifies; the
handler receives tools as a read-only mapping of name to tool.

Usage:
    from convai_runtime.tools import ClientToolResult, client_tool, tool_registry

    @client_tool("get_time", description="Current wall-clock time")
    async def get_time(parameters: dict) -> ClientToolResult:
        return ClientToolResult({"time": datetime.now().strftime("%H:%M")})

    @client_tool("log_event")
    async def log_event(parameters: dict) -> None:
        analytics.track(parameters["name"])  # fire-and-forget, no reply

    handler = MessageHandler(channel, observer, tools=tool_registry(get_time, log_event))
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass
class ClientToolResult:
    """Result of a client tool execution.

    Attributes:
        data: JSON-serializable payload sent back to the agent
        is_error: Tell the agent the tool failed in a way it should see
    """

    data: dict[str, Any] = field(default_factory=dict)
    is_error: bool = False

    def to_json(self) -> dict[str, Any]:
        """Serializable form sent as the ``result`` field."""
        return dict(self.data)


# What a tool may resolve to: a result, a bare mapping, or nothing
ToolOutput = ClientToolResult | Mapping[str, Any] | None


@runtime_checkable
class ClientTool(Protocol):
    """Protocol every client tool implements."""

    async def execute(self, parameters: dict[str, Any]) -> ToolOutput: ...


ToolHandler = Callable[[dict[str, Any]], Awaitable[ToolOutput]]


@dataclass
class FunctionTool:
    """Client tool backed by a plain async function.

    Attributes:
        name: Tool name the agent uses in client_tool_call
        handler: Async function receiving the call parameters
        description: Human-readable description
    """

    name: str
    handler: ToolHandler
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Tool name cannot be empty")
        if not inspect.iscoroutinefunction(self.handler):
            raise ValueError(f"Tool handler for '{self.name}' must be an async function")

    async def execute(self, parameters: dict[str, Any]) -> ToolOutput:
        return await self.handler(parameters)


def client_tool(
    name: str,
    description: str = "",
) -> Callable[[ToolHandler], FunctionTool]:
    """Decorator turning an async function into a FunctionTool."""

    def decorator(func: ToolHandler) -> FunctionTool:
        return FunctionTool(name=name, handler=func, description=description or func.__doc__ or "")

    return decorator


def tool_registry(*tools: FunctionTool) -> dict[str, ClientTool]:
    """Build a name-keyed registry from FunctionTools.

    Raises:
        ValueError: If two tools share a name
    """
    registry: dict[str, ClientTool] = {}
    for tool in tools:
        if tool.name in registry:
            raise ValueError(f"Duplicate client tool name: {tool.name}")
        registry[tool.name] = tool
    return registry


def normalize_result(output: Any) -> ClientToolResult | None:
    """Coerce a tool's return value into a ClientToolResult.

    None and empty payloads mean the tool expects no reply.

    Raises:
        TypeError: If the tool returned something that is not a mapping
    """
    if output is None:
        return None
    if isinstance(output, ClientToolResult):
        result = output
    elif isinstance(output, Mapping):
        result = ClientToolResult(data=dict(output))
    else:
        raise TypeError(f"Client tool returned {type(output).__name__}, expected a mapping")

    if not result.data and not result.is_error:
        return None
    return result
