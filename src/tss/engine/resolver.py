"""Reference/import directive resolver producing dependency-ordered file sets."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from tss.engine.base import Diagnostic, ResolutionResult, ResolvedFile, ResolverHost
from tss.engine.scanner import mask_comments_and_strings
from tss.project.paths import parent_directory

DEFAULT_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js")

_REFERENCE_RE = re.compile(r"^[ \t]*///[ \t]*<reference\s+path\s*=\s*([\"'])(.+?)\1", re.MULTILINE)
_IMPORT_PATTERNS = (
    re.compile(r"\bimport\s+[A-Za-z_$][A-Za-z0-9_$]*\s*=\s*require\s*\(\s*([\"'])(.+?)\1\s*\)"),
    re.compile(r"\b(?:import|export)\s[^;'\"]*?\bfrom\s*([\"'])(.+?)\1"),
    re.compile(r"\bimport\s*([\"'])(.+?)\1"),
)


@dataclass(slots=True, frozen=True)
class Directive:
    """One reference or import directive found in a file."""

    kind: str
    specifier: str
    start: int
    length: int


def find_directives(text: str) -> list[Directive]:
    """Return reference and import directives in source order.

    Import keywords inside comments or strings are ignored; reference
    directives live in comments and are matched on the raw text.
    """
    masked = mask_comments_and_strings(text)
    directives = [
        Directive(
            kind="reference",
            specifier=match.group(2),
            start=match.start(),
            length=match.end() - match.start(),
        )
        for match in _REFERENCE_RE.finditer(text)
    ]
    seen_specifier_offsets: set[int] = set()
    for pattern in _IMPORT_PATTERNS:
        for match in pattern.finditer(text):
            keyword_end = match.start() + 6
            if masked[match.start() : keyword_end] not in {"import", "export"}:
                continue
            if match.start(2) in seen_specifier_offsets:
                continue
            seen_specifier_offsets.add(match.start(2))
            directives.append(
                Directive(
                    kind="import",
                    specifier=match.group(2),
                    start=match.start(),
                    length=match.end() - match.start(),
                )
            )
    return sorted(directives, key=lambda item: item.start)


def is_relative_specifier(specifier: str) -> bool:
    """Return True for module specifiers the resolver follows on disk."""
    return specifier.startswith(("./", "../", "/")) or specifier in {".", ".."}


class DirectiveResolver:
    """Follows ``/// <reference>`` and relative import directives depth first."""

    def __init__(self, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> None:
        self._extensions = tuple(extensions)

    def resolve(self, roots: Sequence[str], host: ResolverHost) -> ResolutionResult:
        """Return files reachable from ``roots`` with dependencies before dependents."""
        run = _ResolutionRun(host=host, extensions=self._extensions)
        root_paths = [host.resolve_relative_path(root, None) for root in roots]
        for root_path in root_paths:
            run.visit(root_path, origin=None)
        ordered = run.ordered
        if root_paths:
            last_root = root_paths[-1]
            positions = [index for index, item in enumerate(ordered) if item.path == last_root]
            if positions and positions[0] != len(ordered) - 1:
                ordered.append(ordered.pop(positions[0]))
        return ResolutionResult(resolved_files=tuple(ordered), diagnostics=tuple(run.diagnostics))


@dataclass(slots=True)
class _ResolutionRun:
    host: ResolverHost
    extensions: tuple[str, ...]
    ordered: list[ResolvedFile] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    visited: set[str] = field(default_factory=set)

    def visit(self, path: str, origin: tuple[str, Directive] | None) -> None:
        if path in self.visited:
            return
        self.visited.add(path)
        content = self.host.read_file(path)
        if content is None:
            self._report(origin, f"Cannot read file '{path}'.")
            return

        referenced: list[str] = []
        imported: list[str] = []
        directory = parent_directory(path)
        for directive in find_directives(content):
            if directive.kind == "reference":
                target = self.host.resolve_relative_path(directive.specifier, directory)
                referenced.append(target)
            else:
                if not is_relative_specifier(directive.specifier):
                    continue
                located = self._locate_module(directive.specifier, directory)
                if located is None:
                    self._report(
                        (path, directive),
                        f"Cannot find external module '{directive.specifier}'.",
                    )
                    continue
                target = located
                imported.append(target)
            self.visit(target, origin=(path, directive))

        self.ordered.append(
            ResolvedFile(
                path=path,
                referenced_files=tuple(referenced),
                imported_files=tuple(imported),
            )
        )

    def _locate_module(self, specifier: str, directory: str) -> str | None:
        base = self.host.resolve_relative_path(specifier, directory)
        candidates = [f"{base}{extension}" for extension in self.extensions]
        if base.lower().endswith(self.extensions):
            candidates.insert(0, base)
        candidates.extend(f"{base}/index{extension}" for extension in self.extensions)
        for candidate in candidates:
            if self.host.file_exists(candidate):
                return candidate
        return None

    def _report(self, origin: tuple[str, Directive] | None, message: str) -> None:
        if origin is None:
            self.diagnostics.append(
                Diagnostic(file_name=None, start=0, length=0, message=message, phase="Resolution")
            )
            return
        file_name, directive = origin
        self.diagnostics.append(
            Diagnostic(
                file_name=file_name,
                start=directive.start,
                length=directive.length,
                message=message,
                phase="Resolution",
            )
        )
