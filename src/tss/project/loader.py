"""Project construction from a root file's reference/import graph."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tss.engine.base import (
    AnalysisEngine,
    DependencyResolver,
    Diagnostic,
    EngineFactory,
    ResolvedFile,
)
from tss.project.paths import canonical_path
from tss.project.store import FileReader, ProjectStore


@dataclass(slots=True, frozen=True)
class Project:
    """One loaded project: its buffers, engine and resolution outcome."""

    root_path: str
    resolved_files: tuple[ResolvedFile, ...]
    diagnostics: tuple[Diagnostic, ...]
    store: ProjectStore
    engine: AnalysisEngine

    @property
    def file_paths(self) -> tuple[str, ...]:
        """Return resolved paths in dependency order, root last."""
        return tuple(resolved.path for resolved in self.resolved_files)


class StoreResolverHost:
    """Resolver host that reads through, and thereby registers into, a store."""

    def __init__(self, store: ProjectStore, working_dir: Path) -> None:
        self._store = store
        self._working_dir = working_dir

    def read_file(self, path: str) -> str | None:
        """Return file content, or None when it cannot be read."""
        try:
            return self._store.get(path)
        except OSError:
            return None

    def resolve_relative_path(self, path: str, directory: str | None) -> str:
        """Canonicalise ``path`` against ``directory`` or the working directory."""
        return canonical_path(path, directory if directory is not None else self._working_dir)

    def file_exists(self, path: str) -> bool:
        """Return True for known buffers and readable files on disk."""
        return self._store.contains(path) or Path(path).is_file()


def load_project(
    root: str,
    *,
    working_dir: Path,
    resolver: DependencyResolver,
    engine_factory: EngineFactory,
    default_lib: Path | None = None,
    reader: FileReader | None = None,
) -> Project:
    """Resolve ``root`` and its dependencies into a fresh store and engine.

    Resolution problems are kept on the project; they never stop loading.
    """
    store = ProjectStore(reader=reader)
    host = StoreResolverHost(store=store, working_dir=working_dir)
    root_path = canonical_path(root, working_dir)
    roots: list[str] = []
    if default_lib is not None:
        roots.append(canonical_path(str(default_lib), working_dir))
    roots.append(root_path)

    result = resolver.resolve(roots, host)
    engine = engine_factory(store)
    for resolved in result.resolved_files:
        if store.contains(resolved.path):
            engine.register_file(resolved.path)
    return Project(
        root_path=root_path,
        resolved_files=result.resolved_files,
        diagnostics=result.diagnostics,
        store=store,
        engine=engine,
    )
