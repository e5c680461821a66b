"""Project buffers, positions and loading."""

from .paths import InvalidPathError, canonical_path, parent_directory, strip_quotes
from .positions import LineCol, PositionError, compute_line_starts
from .store import DuplicateFileError, FileRecord, ProjectStore, UnknownFileError
from .loader import Project, StoreResolverHost, load_project

__all__ = [
    "DuplicateFileError",
    "FileRecord",
    "InvalidPathError",
    "LineCol",
    "PositionError",
    "Project",
    "ProjectStore",
    "StoreResolverHost",
    "UnknownFileError",
    "canonical_path",
    "compute_line_starts",
    "load_project",
    "parent_directory",
    "strip_quotes",
]
