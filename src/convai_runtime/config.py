"""Handler configuration.

Defaults suit a single conversational session. Any field can be overridden
from the environment with ``HandlerConfig.from_env()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

END_CALL_TOOL_NAME = "end_call"

_TRUTHY = ("1", "true", "yes")


@dataclass
class HandlerConfig:
    """Configuration for MessageHandler and its tool coordinator."""

    # Tool name that signals the agent wants the session to end
    end_call_tool_name: str = END_CALL_TOOL_NAME

    # Seconds to wait before re-reading the inbound stream after a transport error
    resubscribe_delay: float = 0.1

    # Per-invocation limit for client tools (None = no limit)
    tool_timeout: float | None = None

    # Serialize outbound sends for transports that are not safe for concurrent use
    serialize_sends: bool = False

    @classmethod
    def from_env(cls) -> HandlerConfig:
        """Build a config from CONVAI_* environment variables."""
        config = cls()

        end_call = os.environ.get("CONVAI_END_CALL_TOOL")
        if end_call:
            config.end_call_tool_name = end_call

        delay = os.environ.get("CONVAI_RESUBSCRIBE_DELAY")
        if delay:
            config.resubscribe_delay = float(delay)

        timeout = os.environ.get("CONVAI_TOOL_TIMEOUT")
        if timeout:
            config.tool_timeout = float(timeout)

        serialize = os.environ.get("CONVAI_SERIALIZE_SENDS", "")
        config.serialize_sends = serialize.lower() in _TRUTHY

        return config
