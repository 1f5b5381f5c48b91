"""Unit tests for the replay CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from convai_runtime.cli import main, read_recording, truncate

RECORDING = [
    {
        "type": "conversation_initiation_metadata",
        "conversation_initiation_metadata_event": {"conversation_id": "conv_9"},
    },
    {"type": "ping", "ping_event": {"event_id": 1}},
    {
        "type": "user_transcription",
        "event_id": 2,
        "user_transcription_event": {"user_transcript": "hello there"},
    },
    {
        "type": "client_tool_call",
        "event_id": 3,
        "client_tool_call": {"tool_call_id": "c1", "tool_name": "open_door"},
    },
    {
        "type": "agent_tool_response",
        "event_id": 4,
        "agent_tool_response": {"tool_name": "end_call"},
    },
]


@pytest.fixture
def recording(tmp_path: Path) -> Path:
    path = tmp_path / "session.jsonl"
    lines = [json.dumps(e) for e in RECORDING]
    lines.insert(2, "this is not json")
    lines.insert(3, "")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class TestReadRecording:
    def test_skips_bad_lines(self, recording: Path) -> None:
        assert list(read_recording(str(recording))) == RECORDING


class TestTruncate:
    def test_short_text_unchanged(self) -> None:
        assert truncate("abc") == "abc"

    def test_long_text_truncated(self) -> None:
        assert truncate("x" * 100, max_len=10) == "xxxxxxx..."

    def test_empty(self) -> None:
        assert truncate(None) == ""


class TestReplayCommand:
    def test_text_output(self, recording: Path) -> None:
        result = CliRunner().invoke(main, ["replay", str(recording)])

        assert result.exit_code == 0, result.output
        assert "conv_9" in result.output
        assert "[user] hello there" in result.output
        assert "unhandled_tool_call" in result.output
        assert "end_call_requested" in result.output
        assert '{"type": "pong", "event_id": 1}' in result.output
        assert "5 events replayed, last event_id=4" in result.output

    def test_json_output(self, recording: Path) -> None:
        result = CliRunner().invoke(main, ["replay", str(recording), "--format", "json"])

        assert result.exit_code == 0, result.output
        records = [
            json.loads(line) for line in result.output.splitlines() if line.startswith("{")
        ]
        kinds = [r["kind"] for r in records]
        assert kinds == [
            "metadata",
            "message",
            "unhandled_tool_call",
            "agent_tool_response",
            "end_call_requested",
            "sent",
        ]
        assert records[-1]["message"] == {"type": "pong", "event_id": 1}

    def test_custom_end_call_tool(self, recording: Path) -> None:
        result = CliRunner().invoke(
            main, ["replay", str(recording), "--end-call-tool", "hang_up"]
        )

        assert result.exit_code == 0, result.output
        assert "end_call_requested" not in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["replay", str(tmp_path / "nope.jsonl")])
        assert result.exit_code != 0
