"""Line/column and offset translation over a file's line-start index."""

from __future__ import annotations

import re
from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass

_LINE_BREAK_RE = re.compile(r"\r\n|[\r\n\u2028\u2029]")


class PositionError(ValueError):
    """Raised when a line number falls outside a file's line range."""


@dataclass(slots=True, frozen=True)
class LineCol:
    """1-based line and column pair."""

    line: int
    col: int

    def to_dict(self) -> dict[str, int]:
        """Return the wire representation."""
        return {"line": self.line, "col": self.col}


def compute_line_starts(content: str) -> tuple[int, ...]:
    """Return the offset at which every line of ``content`` begins.

    A trailing line break opens a final empty line, so the result always has
    one more entry than the number of line breaks.
    """
    starts = [0]
    starts.extend(match.end() for match in _LINE_BREAK_RE.finditer(content))
    return tuple(starts)


def line_col_to_offset(line_starts: Sequence[int], line: int, col: int) -> int:
    """Translate a 1-based line/column to a 0-based offset.

    The column is not checked against the line length.
    """
    if line < 1 or line > len(line_starts):
        raise PositionError(f"Line {line} is outside 1..{len(line_starts)}.")
    return line_starts[line - 1] + (col - 1)


def offset_to_line_col(line_starts: Sequence[int], offset: int) -> LineCol:
    """Translate a 0-based offset to the 1-based line/column containing it."""
    index = max(bisect_right(line_starts, offset) - 1, 0)
    return LineCol(line=index + 1, col=offset - line_starts[index] + 1)
