"""Structured JSONL audit log utilities."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

_KEPT_STRING_FIELDS = {"path", "kind", "target"}
_KEPT_INT_FIELDS = {"line", "col", "line_count", "start_line", "end_line"}


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """Sanitized representation of a single session command."""

    timestamp: str
    sequence: int
    command: str
    ok: bool
    error_code: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Keep paths and positions; reduce buffer text to sizes."""
    sanitized: dict[str, object] = {}
    for key in sorted(arguments.keys()):
        value = arguments[key]
        if key in _KEPT_STRING_FIELDS and isinstance(value, str):
            sanitized[key] = value
            continue
        if key in _KEPT_INT_FIELDS and isinstance(value, int):
            sanitized[key] = value
            continue
        if isinstance(value, (int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        if isinstance(value, str):
            sanitized[f"{key}_present"] = True
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, (list, tuple)):
            sanitized[f"{key}_type"] = "list"
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, dict):
            sanitized[f"{key}_type"] = "dict"
            sanitized[f"{key}_keys"] = sorted(str(k) for k in value.keys())
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


class JsonlAuditLogger:
    """Append-only JSONL log of completed session commands."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._sequence = 0

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def record(
        self,
        command: str,
        ok: bool,
        error_code: str | None,
        arguments: dict[str, object],
    ) -> AuditEvent:
        """Build the next numbered event for a command and append it."""
        self._sequence += 1
        event = AuditEvent(
            timestamp=utc_timestamp(),
            sequence=self._sequence,
            command=command,
            ok=ok,
            error_code=error_code,
            metadata=sanitize_arguments(arguments),
        )
        self.append(event)
        return event

    def append(self, event: AuditEvent) -> None:
        """Append one event as a JSON object line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(self, command: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Return the most recent events, optionally only those of one command."""
        if limit < 1 or not self._path.exists():
            return []
        entries: list[dict[str, object]] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    entry = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if command is not None and entry.get("command") != command:
                    continue
                entries.append(entry)
        return entries[-limit:]
