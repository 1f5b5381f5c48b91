"""Tool invocation coordinator.

Runs client tools requested by the agent and sends their results back.
Each invocation is an independent asyncio task, so the event router never
waits on a tool: later events keep flowing while tools execute, and
overlapping invocations complete in any order. Results are correlated by
tool_call_id, never by completion order.

Closing the coordinator does not cancel in-flight tools; it only stops
their results from being sent.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .config import HandlerConfig
from .observer import ConversationObserver
from .protocol import messages
from .protocol.events import ClientToolCall
from .tools import ClientTool, ClientToolResult, normalize_result

logger = logging.getLogger(__name__)

SendFn = Callable[[dict[str, Any]], Awaitable[None]]


class ToolInvocationCoordinator:
    """Correlated request/response handling for client tool calls."""

    def __init__(
        self,
        tools: Mapping[str, ClientTool] | None,
        send_fn: SendFn,
        observer: ConversationObserver,
        config: HandlerConfig | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            tools: Registry of client tools (borrowed, never modified)
            send_fn: Async function sending a message over the channel
            observer: Receives unhandled calls and tool failures
            config: Handler configuration
        """
        self._tools: Mapping[str, ClientTool] = tools or {}
        self._send_fn = send_fn
        self._observer = observer
        self._config = config or HandlerConfig()
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        """Number of tool invocations still running."""
        return len(self._tasks)

    @property
    def closed(self) -> bool:
        return self._closed

    def dispatch(self, event: dict[str, Any]) -> asyncio.Task[None] | None:
        """Start handling a client_tool_call event.

        Returns immediately. The invocation task is returned when a
        registered tool was started, otherwise None.
        """
        try:
            call = ClientToolCall.from_event(event)
        except ValueError as e:
            logger.warning(f"Invalid client tool call: {e}")
            self._observer.on_error("Client tool execution failed", e)
            return None

        tool = self._tools.get(call.tool_name)
        if tool is None:
            logger.info(f"No client tool registered for '{call.tool_name}'")
            self._observer.on_unhandled_client_tool_call(call)
            return None

        logger.debug(f"Invoking client tool {call.tool_name} (id={call.tool_call_id})")
        task = asyncio.create_task(
            self._invoke(tool, call), name=f"client-tool:{call.tool_call_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _invoke(self, tool: ClientTool, call: ClientToolCall) -> None:
        """Run one tool and send its result if it produced one."""
        try:
            if self._config.tool_timeout is not None:
                output = await asyncio.wait_for(
                    tool.execute(call.parameters),
                    timeout=self._config.tool_timeout,
                )
            else:
                output = await tool.execute(call.parameters)
            result = normalize_result(output)
        except Exception as e:
            logger.error(f"Client tool '{call.tool_name}' failed: {e}")
            self._report_error(e)
            return

        if result is None:
            logger.debug(f"Client tool {call.tool_name} returned no result, nothing to send")
            return

        await self._send_result(call, result)

    def _report_error(self, error: Exception) -> None:
        try:
            self._observer.on_error("Client tool execution failed", error)
        except Exception:
            logger.exception("Error in observer while reporting tool failure")

    async def _send_result(self, call: ClientToolCall, result: ClientToolResult) -> None:
        """Send a correlated client_tool_result; failures are only logged."""
        if self._closed:
            logger.debug(
                f"Dropping result of {call.tool_name} (id={call.tool_call_id}): handler disposed"
            )
            return

        message = messages.client_tool_result(call.tool_call_id, result.to_json(), result.is_error)
        try:
            await self._send_fn(message)
        except Exception as e:
            logger.warning(f"Failed to send client tool result for {call.tool_call_id}: {e}")

    async def drain(self) -> None:
        """Wait for every in-flight invocation to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Stop sending results; running tools are left to finish."""
        self._closed = True

    async def cancel_all(self) -> None:
        """Cancel every in-flight invocation and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
