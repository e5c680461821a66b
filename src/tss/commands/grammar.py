"""Command grammar: one input line to one tagged command value."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Final


@dataclass(slots=True, frozen=True)
class TypeCommand:
    name: ClassVar[str] = "type"

    line: int
    col: int
    path: str


@dataclass(slots=True, frozen=True)
class DefinitionCommand:
    name: ClassVar[str] = "definition"

    line: int
    col: int
    path: str


@dataclass(slots=True, frozen=True)
class ReferencesCommand:
    """``references``, ``occurrences`` or ``implementors`` at a position."""

    name: ClassVar[str] = "references"

    kind: str
    line: int
    col: int
    path: str


@dataclass(slots=True, frozen=True)
class StructureCommand:
    name: ClassVar[str] = "structure"

    path: str


@dataclass(slots=True, frozen=True)
class CompletionsCommand:
    name: ClassVar[str] = "completions"

    brief: bool
    member: bool
    line: int
    col: int
    path: str


@dataclass(slots=True, frozen=True)
class InfoCommand:
    name: ClassVar[str] = "info"

    line: int
    col: int
    path: str


@dataclass(slots=True, frozen=True)
class UpdateCommand:
    """Replace a file buffer with the ``line_count`` lines that follow.

    ``payload`` is filled in by the session once collection completes.
    """

    name: ClassVar[str] = "update"

    check: bool
    line_count: int
    start_line: int | None
    end_line: int | None
    path: str
    payload: tuple[str, ...] = ()

    @property
    def has_range(self) -> bool:
        """Return True when a ``S-E`` line range was given."""
        return self.start_line is not None and self.end_line is not None


@dataclass(slots=True, frozen=True)
class ShowErrorsCommand:
    name: ClassVar[str] = "showErrors"


@dataclass(slots=True, frozen=True)
class FilesCommand:
    name: ClassVar[str] = "files"


@dataclass(slots=True, frozen=True)
class LastErrorCommand:
    name: ClassVar[str] = "lastError"

    dump: bool


@dataclass(slots=True, frozen=True)
class DumpCommand:
    name: ClassVar[str] = "dump"

    target: str
    path: str


@dataclass(slots=True, frozen=True)
class ReloadCommand:
    name: ClassVar[str] = "reload"


@dataclass(slots=True, frozen=True)
class QuitCommand:
    name: ClassVar[str] = "quit"


@dataclass(slots=True, frozen=True)
class HelpCommand:
    name: ClassVar[str] = "help"


@dataclass(slots=True, frozen=True)
class UnknownCommand:
    """Input that matched no grammar pattern."""

    name: ClassVar[str] = "syntax_error"

    text: str


Command = (
    TypeCommand
    | DefinitionCommand
    | ReferencesCommand
    | StructureCommand
    | CompletionsCommand
    | InfoCommand
    | UpdateCommand
    | ShowErrorsCommand
    | FilesCommand
    | LastErrorCommand
    | DumpCommand
    | ReloadCommand
    | QuitCommand
    | HelpCommand
    | UnknownCommand
)

CommandBuilder = Callable[[re.Match[str]], Command]


def _update(match: re.Match[str]) -> UpdateCommand:
    return UpdateCommand(
        check=match.group(1) is None,
        line_count=int(match.group(2)),
        start_line=int(match.group(4)) if match.group(3) else None,
        end_line=int(match.group(5)) if match.group(3) else None,
        path=match.group(6),
    )


GRAMMAR: Final[tuple[tuple[re.Pattern[str], CommandBuilder], ...]] = (
    (
        re.compile(r"^type (\d+) (\d+) (.*)$"),
        lambda m: TypeCommand(line=int(m.group(1)), col=int(m.group(2)), path=m.group(3)),
    ),
    (
        re.compile(r"^definition (\d+) (\d+) (.*)$"),
        lambda m: DefinitionCommand(line=int(m.group(1)), col=int(m.group(2)), path=m.group(3)),
    ),
    (
        re.compile(r"^(references|occurrences|implementors) (\d+) (\d+) (.*)$"),
        lambda m: ReferencesCommand(
            kind=m.group(1), line=int(m.group(2)), col=int(m.group(3)), path=m.group(4)
        ),
    ),
    (
        re.compile(r"^structure (.*)$"),
        lambda m: StructureCommand(path=m.group(1)),
    ),
    (
        re.compile(r"^completions(-brief)? (true|false) (\d+) (\d+) (.*)$"),
        lambda m: CompletionsCommand(
            brief=m.group(1) is not None,
            member=m.group(2) == "true",
            line=int(m.group(3)),
            col=int(m.group(4)),
            path=m.group(5),
        ),
    ),
    (
        re.compile(r"^info (\d+) (\d+) (.*)$"),
        lambda m: InfoCommand(line=int(m.group(1)), col=int(m.group(2)), path=m.group(3)),
    ),
    (re.compile(r"^update( nocheck)? (\d+)( (\d+)-(\d+))? (.*)$"), _update),
    (re.compile(r"^showErrors$"), lambda m: ShowErrorsCommand()),
    (re.compile(r"^files$"), lambda m: FilesCommand()),
    (re.compile(r"^lastError(Dump)?$"), lambda m: LastErrorCommand(dump=m.group(1) is not None)),
    (
        re.compile(r"^dump (\S+) (.*)$"),
        lambda m: DumpCommand(target=m.group(1), path=m.group(2)),
    ),
    (re.compile(r"^reload$"), lambda m: ReloadCommand()),
    (re.compile(r"^quit$"), lambda m: QuitCommand()),
    (re.compile(r"^help$"), lambda m: HelpCommand()),
)


def parse_command(text: str, observed: dict[str, None] | None = None) -> Command:
    """Match ``text`` against the grammar in order; the first match wins.

    Every pattern tried is recorded in ``observed`` (insertion ordered).
    """
    for pattern, build in GRAMMAR:
        if observed is not None:
            observed.setdefault(pattern.pattern, None)
        match = pattern.match(text)
        if match is not None:
            return build(match)
    return UnknownCommand(text=text)
