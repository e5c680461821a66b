from __future__ import annotations

import json
from pathlib import Path

from tss.logging import JsonlAuditLogger, sanitize_arguments


def test_record_appends_numbered_jsonl_events(tmp_path: Path) -> None:
    logger = JsonlAuditLogger(path=tmp_path / "nested" / "audit.jsonl")

    logger.record(command="files", ok=True, error_code=None, arguments={})
    logger.record(
        command="syntax_error",
        ok=False,
        error_code="SYNTAX_ERROR",
        arguments={"text": "bogus"},
    )

    lines = logger.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first, second = (json.loads(line) for line in lines)
    assert set(first.keys()) == {
        "command",
        "error_code",
        "metadata",
        "ok",
        "sequence",
        "timestamp",
    }
    assert (first["sequence"], second["sequence"]) == (1, 2)
    assert first["timestamp"].endswith("Z")
    assert second["error_code"] == "SYNTAX_ERROR"
    assert second["metadata"] == {"text_present": True, "text_length": 5}


def test_read_filters_by_command_and_limits(tmp_path: Path) -> None:
    logger = JsonlAuditLogger(path=tmp_path / "audit.jsonl")
    for _ in range(3):
        logger.record(command="files", ok=True, error_code=None, arguments={})
    logger.record(command="help", ok=True, error_code=None, arguments={})

    assert [entry["sequence"] for entry in logger.read(command="files", limit=2)] == [2, 3]
    assert [entry["command"] for entry in logger.read()] == ["files", "files", "files", "help"]
    assert logger.read(limit=0) == []


def test_sanitize_keeps_positions_and_reduces_payload() -> None:
    sanitized = sanitize_arguments(
        {
            "path": "/proj/a.ts",
            "line": 3,
            "col": 4,
            "check": True,
            "start_line": None,
            "payload": ("secret line", "another"),
        }
    )

    assert sanitized == {
        "check": True,
        "col": 4,
        "line": 3,
        "path": "/proj/a.ts",
        "payload_length": 2,
        "payload_type": "list",
        "start_line": None,
    }
