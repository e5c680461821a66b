"""In-memory project buffers keyed by canonical path."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from tss.project.positions import (
    LineCol,
    compute_line_starts,
    line_col_to_offset,
    offset_to_line_col,
)

FileReader = Callable[[str], str]


class UnknownFileError(LookupError):
    """Raised when a path is not part of the project store."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Unknown file: {path}")
        self.path = path


class DuplicateFileError(ValueError):
    """Raised when adding a path the store already holds."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File already in project: {path}")
        self.path = path


@dataclass(slots=True)
class FileRecord:
    """Current content of one project file and its line-start index."""

    path: str
    content: str
    line_starts: tuple[int, ...] = field(init=False)

    def __post_init__(self) -> None:
        self.line_starts = compute_line_starts(self.content)

    @property
    def line_count(self) -> int:
        """Return the number of lines, counting a trailing empty line."""
        return len(self.line_starts)

    def set_content(self, content: str) -> None:
        """Swap content and rebuild the line-start index."""
        self.content = content
        self.line_starts = compute_line_starts(content)


def read_source_file(path: str) -> str:
    """Read a source file keeping its original line terminators."""
    with Path(path).open("r", encoding="utf-8-sig", errors="replace", newline="") as handle:
        return handle.read()


def clamp_line_range(record: FileRecord, start_line: int, end_line: int) -> tuple[int, int]:
    """Map an inclusive 1-based line range to a clamped ``[start, end)`` offset span.

    The end excludes the terminator that begins the line after ``end_line``.
    A start past the last line lands on end of file, and the end never
    precedes the start.
    """
    length = len(record.content)
    line_count = record.line_count
    if start_line < 1:
        start = 0
    elif start_line <= line_count:
        start = record.line_starts[start_line - 1]
    else:
        start = length
    if end_line < 1:
        end = 0
    elif end_line < line_count:
        end = record.line_starts[end_line] - 1
    else:
        end = length
    return start, max(start, end)


class ProjectStore:
    """Owns every file buffer of one project."""

    def __init__(self, reader: FileReader | None = None) -> None:
        self._records: dict[str, FileRecord] = {}
        self._reader = reader or read_source_file

    def get(self, path: str) -> str:
        """Return cached content, reading and caching the file on first use."""
        record = self._records.get(path)
        if record is None:
            record = FileRecord(path=path, content=self._reader(path))
            self._records[path] = record
        return record.content

    def lookup(self, path: str) -> FileRecord | None:
        """Return the record for a path without touching disk."""
        return self._records.get(path)

    def record(self, path: str) -> FileRecord:
        """Return the record for a known path."""
        record = self._records.get(path)
        if record is None:
            raise UnknownFileError(path)
        return record

    def contains(self, path: str) -> bool:
        """Return True when the path is part of the store."""
        return path in self._records

    def paths(self) -> tuple[str, ...]:
        """Return known paths in registration order."""
        return tuple(self._records.keys())

    def add(self, path: str, content: str) -> FileRecord:
        """Register a new in-memory file."""
        if path in self._records:
            raise DuplicateFileError(path)
        record = FileRecord(path=path, content=content)
        self._records[path] = record
        return record

    def replace_full(self, path: str, content: str) -> FileRecord:
        """Replace the whole content of a known file."""
        record = self.record(path)
        record.set_content(content)
        return record

    def replace_range(
        self,
        path: str,
        start_line: int,
        end_line: int,
        content: str,
    ) -> tuple[int, int]:
        """Replace lines ``start_line..end_line`` of a known file.

        Returns the clamped offset span that was replaced.
        """
        record = self.record(path)
        start, end = clamp_line_range(record, start_line, end_line)
        record.set_content(record.content[:start] + content + record.content[end:])
        return start, end

    def line_col_to_offset(self, path: str, line: int, col: int) -> int:
        """Translate a 1-based position in a known file to an offset."""
        return line_col_to_offset(self.record(path).line_starts, line, col)

    def offset_to_line_col(self, path: str, offset: int) -> LineCol:
        """Translate an offset in a known file to a 1-based position."""
        return offset_to_line_col(self.record(path).line_starts, offset)
