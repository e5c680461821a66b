"""Canonical path resolution for session path arguments."""

from __future__ import annotations

import posixpath
import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")
_DRIVE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^([a-zA-Z]):")


class InvalidPathError(ValueError):
    """Raised when a path argument is empty after quote stripping."""


def strip_quotes(candidate: str) -> str:
    """Remove one pair of matching surrounding quotes."""
    if len(candidate) >= 2 and candidate[0] in {'"', "'"} and candidate[-1] == candidate[0]:
        return candidate[1:-1]
    return candidate


def is_rooted(candidate: str) -> bool:
    """Return True for POSIX-absolute or drive-absolute paths."""
    normalized = candidate.replace("\\", "/")
    if normalized.startswith("/"):
        return True
    return WINDOWS_ABSOLUTE_PATTERN.match(normalized) is not None


def canonical_path(candidate: str, directory: str | Path | None = None) -> str:
    """Resolve a path argument to absolute, forward-slash, drive-lowercased form.

    Relative candidates are combined with ``directory`` (or the process working
    directory). Symlinks are not resolved, so the same spelling always maps to
    the same key.
    """
    unquoted = strip_quotes(candidate.strip())
    if not unquoted:
        raise InvalidPathError("Path is empty.")
    normalized = unquoted.replace("\\", "/")
    if not is_rooted(normalized):
        base = Path(directory) if directory is not None else Path.cwd()
        base_text = str(base.absolute()).replace("\\", "/").rstrip("/")
        normalized = f"{base_text}/{normalized}"
    resolved = posixpath.normpath(normalized)
    if resolved.startswith("//"):
        resolved = "/" + resolved.lstrip("/")
    return _DRIVE_PATTERN.sub(lambda match: f"{match.group(1).lower()}:", resolved)


def parent_directory(path: str) -> str:
    """Return the directory part of a canonical path."""
    return posixpath.dirname(path)
