"""Analysis engine and dependency resolver contracts and result types."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tss.project.store import ProjectStore


@dataclass(slots=True, frozen=True)
class TypeInfo:
    """Type information for the symbol at a position."""

    member_name: str
    doc_comment: str
    full_symbol_name: str
    kind: str
    min_char: int
    lim_char: int


@dataclass(slots=True, frozen=True)
class DefinitionInfo:
    """Declaration site of a symbol."""

    file_name: str
    min_char: int
    lim_char: int
    kind: str
    name: str
    container_kind: str
    container_name: str


@dataclass(slots=True, frozen=True)
class ReferenceEntry:
    """One mention of a symbol."""

    file_name: str
    min_char: int
    lim_char: int
    is_write_access: bool


@dataclass(slots=True, frozen=True)
class NavigateToItem:
    """One node of a file's lexical structure."""

    name: str
    kind: str
    kind_modifiers: str
    match_kind: str
    container_name: str
    container_kind: str
    file_name: str
    min_char: int
    lim_char: int


@dataclass(slots=True, frozen=True)
class CompletionEntry:
    """Brief completion candidate."""

    name: str
    kind: str
    kind_modifiers: str


@dataclass(slots=True, frozen=True)
class CompletionEntryDetails:
    """Completion candidate with type and documentation."""

    name: str
    kind: str
    kind_modifiers: str
    type: str
    full_symbol_name: str
    doc_comment: str


@dataclass(slots=True, frozen=True)
class CompletionInfo:
    """Completion candidates at a position."""

    is_member_completion: bool
    entries: tuple[CompletionEntry | CompletionEntryDetails, ...]


@dataclass(slots=True, frozen=True)
class Diagnostic:
    """Problem report against a file span (or the project when file_name is None)."""

    file_name: str | None
    start: int
    length: int
    message: str
    category: str = "Error"
    phase: str = "Syntax"


@dataclass(slots=True, frozen=True)
class ResolvedFile:
    """File reached through reference or import directives."""

    path: str
    referenced_files: tuple[str, ...] = ()
    imported_files: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ResolutionResult:
    """Dependency-ordered files (root last) and resolution diagnostics."""

    resolved_files: tuple[ResolvedFile, ...]
    diagnostics: tuple[Diagnostic, ...]


class ResolverHost(Protocol):
    """File access the resolver needs from the session."""

    def read_file(self, path: str) -> str | None:
        """Return file content, registering it with the project, or None."""

    def resolve_relative_path(self, path: str, directory: str | None) -> str:
        """Return the canonical form of ``path`` relative to ``directory``."""

    def file_exists(self, path: str) -> bool:
        """Return True when ``path`` names a readable file."""


class DependencyResolver(Protocol):
    """Discovers a project's file set from its roots."""

    def resolve(self, roots: Sequence[str], host: ResolverHost) -> ResolutionResult:
        """Return the transitive closure of ``roots``, last root last."""


class AnalysisEngine(Protocol):
    """Side-effect free language queries over the current store content."""

    def register_file(self, path: str) -> None:
        """Make a store file part of the analysed program."""

    def file_names(self) -> list[str]:
        """Return registered files in registration order."""

    def type_at(self, path: str, offset: int) -> TypeInfo | None:
        """Return type information for the symbol at ``offset``."""

    def definitions_at(self, path: str, offset: int) -> list[DefinitionInfo]:
        """Return declarations of the symbol at ``offset``."""

    def references_at(self, path: str, offset: int) -> list[ReferenceEntry]:
        """Return project-wide references of the symbol at ``offset``."""

    def occurrences_at(self, path: str, offset: int) -> list[ReferenceEntry]:
        """Return occurrences of the symbol at ``offset`` within ``path``."""

    def implementors_at(self, path: str, offset: int) -> list[ReferenceEntry]:
        """Return types extending or implementing the symbol at ``offset``."""

    def lexical_structure(self, path: str) -> list[NavigateToItem]:
        """Return the declaration outline of ``path``."""

    def completions_at(self, path: str, offset: int, member: bool) -> CompletionInfo | None:
        """Return completion candidates at ``offset``."""

    def completion_details(self, path: str, offset: int, name: str) -> CompletionEntryDetails:
        """Return details for one completion candidate."""

    def syntactic_diagnostics(self, path: str) -> list[Diagnostic]:
        """Return syntax problems of ``path``."""

    def semantic_diagnostics(self, path: str) -> list[Diagnostic]:
        """Return semantic problems of ``path``."""

    def diagnostics(self) -> list[Diagnostic]:
        """Return all problems of every registered file."""


EngineFactory = Callable[["ProjectStore"], AnalysisEngine]
