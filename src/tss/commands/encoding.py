"""Result shaping: engine records to single-line JSON output."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Sequence
from dataclasses import asdict

from tss.engine.base import (
    CompletionEntry,
    CompletionEntryDetails,
    CompletionInfo,
    DefinitionInfo,
    Diagnostic,
    NavigateToItem,
    ReferenceEntry,
    TypeInfo,
)
from tss.project.positions import LineCol

PositionLookup = Callable[[str, int], LineCol]


def encode_line(value: object) -> str:
    """Serialize one result as a single JSON line without trailing whitespace."""
    return json.dumps(value, sort_keys=True).rstrip()


def span_record(
    key: str,
    entry: DefinitionInfo | ReferenceEntry | NavigateToItem,
    to_line_col: PositionLookup,
) -> dict[str, object]:
    """Wrap a raw engine record with its file and ``min``/``lim`` positions."""
    return {
        key: asdict(entry),
        "file": entry.file_name,
        "min": to_line_col(entry.file_name, entry.min_char).to_dict(),
        "lim": to_line_col(entry.file_name, entry.lim_char).to_dict(),
    }


def encode_type(path: str, info: TypeInfo | None, to_line_col: PositionLookup) -> dict[str, object]:
    if info is None:
        return {"type": ""}
    record: dict[str, object] = asdict(info)
    record["type"] = info.member_name or ""
    record["min"] = to_line_col(path, info.min_char).to_dict()
    record["lim"] = to_line_col(path, info.lim_char).to_dict()
    return record


def encode_definition(
    definitions: Sequence[DefinitionInfo], to_line_col: PositionLookup
) -> dict[str, object] | None:
    """Return the first definition record, or None when there is none."""
    if not definitions:
        return None
    return span_record("def", definitions[0], to_line_col)


def encode_references(
    references: Iterable[ReferenceEntry], to_line_col: PositionLookup
) -> list[dict[str, object]]:
    return [span_record("ref", reference, to_line_col) for reference in references]


def encode_structure(
    items: Iterable[NavigateToItem], to_line_col: PositionLookup
) -> list[dict[str, object]]:
    return [span_record("loc", item, to_line_col) for item in items]


def encode_completions(
    info: CompletionInfo | None,
    entries: Sequence[CompletionEntry | CompletionEntryDetails],
    prefix: str | None,
) -> dict[str, object] | None:
    """Shape a completion result; ``prefix`` is present only when filtering applied."""
    if info is None:
        return None
    record: dict[str, object] = {
        "is_member_completion": info.is_member_completion,
        "entries": [asdict(entry) for entry in entries],
    }
    if prefix is not None:
        record["prefix"] = prefix
    return record


def encode_info(
    path: str,
    offset: int,
    type_info: TypeInfo | None,
    definition: DefinitionInfo | None,
    to_line_col: PositionLookup,
) -> dict[str, object]:
    """Combine position, symbol, type and first definition of one point."""
    return {
        "pos": offset,
        "linecol": to_line_col(path, offset).to_dict(),
        "symbol": type_info.full_symbol_name if type_info is not None else None,
        "type": (type_info.member_name or "") if type_info is not None else "",
        "def": asdict(definition) if definition is not None else None,
        "file": definition.file_name if definition is not None else None,
        "min": (
            to_line_col(definition.file_name, definition.min_char).to_dict()
            if definition is not None
            else None
        ),
        "lim": (
            to_line_col(definition.file_name, definition.lim_char).to_dict()
            if definition is not None
            else None
        ),
    }


def encode_diagnostic(
    diagnostic: Diagnostic,
    content_length: int | None,
    to_line_col: PositionLookup,
) -> dict[str, object]:
    """Shape one diagnostic; its end offset is clamped to the end of the file.

    ``content_length`` is None when the diagnostic is not attached to a
    file held by the store, in which case no positions are reported.
    """
    start: dict[str, int] | None = None
    end: dict[str, int] | None = None
    if diagnostic.file_name is not None and content_length is not None:
        end_offset = min(content_length, diagnostic.start + diagnostic.length)
        start_lc = to_line_col(diagnostic.file_name, diagnostic.start)
        end_lc = to_line_col(diagnostic.file_name, end_offset)
        start = {"line": start_lc.line, "character": start_lc.col}
        end = {"line": end_lc.line, "character": end_lc.col}
    return {
        "file": diagnostic.file_name,
        "start": start,
        "end": end,
        "text": diagnostic.message,
        "phase": diagnostic.phase,
        "category": diagnostic.category,
    }
