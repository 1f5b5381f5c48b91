"""convai-runtime CLI.

Replays a recorded session through the MessageHandler, for debugging
protocol traces without a live agent.

Usage:
    convai-runtime replay session.jsonl               # Human-readable trace
    convai-runtime replay session.jsonl --format json # One JSON object per line
    convai-runtime --log-level DEBUG replay session.jsonl

A recording holds one inbound event (JSON object) per line.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Iterator
from typing import Any

import click

from .config import HandlerConfig
from .observer import ConversationObserver
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
from .protocol.handler import MessageHandler
from .transport.memory import MemoryDataChannel

# Output format options
FORMAT_TEXT = "text"
FORMAT_JSON = "json"


def truncate(text: str | None, max_len: int = 60) -> str:
    """Truncate text for display."""
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


class ReplayObserver(ConversationObserver):
    """Observer that prints every event it receives."""

    def __init__(self, output_format: str = FORMAT_TEXT) -> None:
        self._format = output_format

    def _emit(self, kind: str, summary: str, data: dict[str, Any] | None = None) -> None:
        if self._format == FORMAT_JSON:
            click.echo(json.dumps({"kind": kind, **(data or {})}))
        else:
            click.echo(f"{kind:<22} {summary}")

    def on_conversation_metadata(self, metadata: ConversationMetadata) -> None:
        self._emit("metadata", metadata.conversation_id, metadata.model_dump())

    def on_message(self, message: str, source: Role) -> None:
        self._emit(
            "message",
            f"[{source.value}] {truncate(message)}",
            {"source": source.value, "message": message},
        )

    def on_agent_response_part(self, part: AgentResponsePart) -> None:
        self._emit(
            "response_part",
            f"({part.type.value}) {truncate(part.text)}",
            part.model_dump(mode="json"),
        )

    def on_audio(self, chunk: str) -> None:
        self._emit("audio", f"{len(chunk)} base64 chars", {"length": len(chunk)})

    def on_interruption(self, event: InterruptionEvent) -> None:
        self._emit("interruption", f"event_id={event.event_id}", event.model_dump())

    def on_unhandled_client_tool_call(self, call: ClientToolCall) -> None:
        self._emit(
            "unhandled_tool_call",
            f"{call.tool_name} (id={call.tool_call_id})",
            call.model_dump(),
        )

    def on_mcp_tool_call(self, call: McpToolCall) -> None:
        self._emit("mcp_tool_call", f"{call.tool_name} [{call.state}]", call.model_dump())

    def on_mcp_connection_status(self, status: McpConnectionStatus) -> None:
        connected = sum(1 for i in status.integrations if i.is_connected)
        self._emit(
            "mcp_status",
            f"{connected}/{len(status.integrations)} integrations connected",
            status.model_dump(),
        )

    def on_agent_tool_response(self, response: AgentToolResponse) -> None:
        self._emit("agent_tool_response", response.tool_name, response.model_dump())

    def on_end_call_requested(self) -> None:
        self._emit("end_call_requested", "")

    def on_error(self, message: str, error: BaseException | None = None) -> None:
        self._emit("error", f"{message}: {error}", {"message": message, "error": str(error)})


def read_recording(path: str) -> Iterator[dict[str, Any]]:
    """Yield events from a JSON-lines recording, skipping bad lines."""
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                click.echo(f"Skipping line {line_no}: {e}", err=True)
                continue
            if not isinstance(data, dict):
                click.echo(f"Skipping line {line_no}: not a JSON object", err=True)
                continue
            yield data


async def replay_events(
    events: list[dict[str, Any]],
    observer: ConversationObserver,
    config: HandlerConfig,
) -> tuple[MessageHandler, MemoryDataChannel]:
    """Run events through a fresh handler and wait until all are processed."""
    channel = MemoryDataChannel()
    for event in events:
        channel.push(event)
    channel.close()

    handler = MessageHandler(channel, observer, config=config)
    handler.start_listening()
    await handler.wait_stopped()
    await handler.drain()
    handler.dispose()
    return handler, channel


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (logs go to stderr)",
)
def main(log_level: str) -> None:
    """convai-runtime - realtime agent session tools."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s: %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@click.argument("recording", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice([FORMAT_TEXT, FORMAT_JSON]),
    default=FORMAT_TEXT,
    help="Output format",
)
@click.option("--end-call-tool", default=None, help="Tool name that ends the session")
def replay(recording: str, output_format: str, end_call_tool: str | None) -> None:
    """Replay a JSON-lines RECORDING through the message handler."""
    config = HandlerConfig.from_env()
    if end_call_tool:
        config.end_call_tool_name = end_call_tool

    events = list(read_recording(recording))
    observer = ReplayObserver(output_format)
    handler, channel = asyncio.run(replay_events(events, observer, config))

    for message in channel.sent:
        if output_format == FORMAT_JSON:
            click.echo(json.dumps({"kind": "sent", "message": message}))
        else:
            click.echo(f"{'sent':<22} {json.dumps(message)}")

    if output_format == FORMAT_TEXT:
        click.echo(f"\n{len(events)} events replayed, last event_id={handler.current_event_id}")


if __name__ == "__main__":
    main()
