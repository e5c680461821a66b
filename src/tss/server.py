"""STDIO session server entrypoint."""

from __future__ import annotations

import argparse
import os
import sys
import traceback
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TextIO

from tss import __version__
from tss.commands.builtin import register_builtin_commands
from tss.commands.encoding import encode_line
from tss.commands.grammar import Command, UnknownCommand, UpdateCommand
from tss.commands.registry import CommandError, CommandRegistry
from tss.config import EOL_SEPARATORS, CliOverrides, SessionConfig, load_effective_config
from tss.engine.base import DependencyResolver, EngineFactory
from tss.engine.lexical import LexicalEngine
from tss.engine.resolver import DirectiveResolver
from tss.logging import JsonlAuditLogger
from tss.project.loader import Project, load_project
from tss.project.paths import InvalidPathError, canonical_path
from tss.project.store import FileReader
from tss.session.state import IDLE, LastError, SessionState, feed_line, strip_line_terminator

CLOSING_STATUS = "TSS closing"


@dataclass(slots=True, frozen=True)
class Outcome:
    """Result of dispatching one command: a value or a reported failure."""

    ok: bool
    value: object
    error_code: str | None = None


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for session startup configuration."""
    parser = argparse.ArgumentParser(
        prog="tss",
        description="Line-oriented source analysis session over stdin/stdout.",
    )
    parser.add_argument("root", help="root source file of the project")
    parser.add_argument("--cwd", required=False, default=None)
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--default-lib", required=False, default=None)
    parser.add_argument("--eol", choices=tuple(sorted(EOL_SEPARATORS)), required=False, default=None)
    parser.add_argument("--no-audit", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


class SessionServer:
    """One command stream bound to one project."""

    def __init__(
        self,
        config: SessionConfig,
        root: str,
        resolver: DependencyResolver | None = None,
        engine_factory: EngineFactory | None = None,
        reader: FileReader | None = None,
    ) -> None:
        self._config = config
        self._root = root
        self._resolver = resolver or DirectiveResolver(config.resolver.extensions)
        self._engine_factory: EngineFactory = engine_factory or LexicalEngine
        self._reader = reader
        self._audit_logger = (
            JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
            if config.audit.enabled
            else None
        )
        self._state: SessionState = IDLE
        self._observed: dict[str, None] = {}
        self._last_error: LastError | None = None
        self._closed = False
        self._project = self._load_project()
        self._registry = CommandRegistry()
        register_builtin_commands(
            self._registry,
            current_project=lambda: self._project,
            resolve_path=self.resolve_path,
            eol=config.eol_separator,
            read_last_error=lambda: self._last_error,
            observed_patterns=lambda: list(self._observed),
            reload_project=self._reload,
            close_session=self._close,
            write_file=self._write_file,
        )

    @property
    def project(self) -> Project:
        return self._project

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_error(self) -> LastError | None:
        return self._last_error

    @property
    def audit_logger(self) -> JsonlAuditLogger | None:
        return self._audit_logger

    def greeting(self) -> str:
        """Return the status line announcing a loaded project."""
        return encode_line(f"loaded {self._project.root_path}, TSS listening..")

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process command lines until ``quit`` or end of input.

        The closing status is written exactly once. Payload lines still
        pending when the input ends are discarded unapplied.
        """
        _write_line(out_stream, self.greeting())
        for raw_line in in_stream:
            output = self.handle_line(raw_line)
            if output is not None:
                _write_line(out_stream, output)
            if self._closed:
                return
        _write_line(out_stream, encode_line(self._close()))

    def handle_line(self, raw_line: str) -> str | None:
        """Feed one input line; return the output line once a command completes."""
        try:
            step = feed_line(
                self._state,
                raw_line,
                can_collect=self._can_collect,
                observed=self._observed,
            )
        except Exception as error:
            outcome = self._failure(error, code="PROCESSING_ERROR")
            self._audit("parse", outcome, {"text": strip_line_terminator(raw_line)})
            return encode_line(outcome.value)
        self._state = step.state
        if step.ready is None:
            return None
        return encode_line(self.dispatch(step.ready).value)

    def dispatch(self, command: Command) -> Outcome:
        """Run one command; every failure becomes a reported outcome."""
        try:
            value = self._registry.dispatch(command)
        except CommandError as error:
            outcome = self._failure(error, code=error.code)
        except Exception as error:
            outcome = self._failure(error, code="PROCESSING_ERROR")
        else:
            if isinstance(command, UnknownCommand):
                outcome = Outcome(ok=False, value=value, error_code="SYNTAX_ERROR")
            else:
                outcome = Outcome(ok=True, value=value)
        self._log_command(command, outcome)
        return outcome

    def resolve_path(self, raw_path: str) -> str:
        """Canonicalise a command path against the working directory."""
        return canonical_path(raw_path, self._config.working_dir)

    def _failure(self, error: Exception, code: str) -> Outcome:
        message = str(error) or type(error).__name__
        trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self._last_error = LastError(message=message, trace=trace)
        return Outcome(
            ok=False,
            value=f"TSS command processing error: {message}",
            error_code=code,
        )

    def _can_collect(self, command: UpdateCommand) -> bool:
        if not command.has_range:
            return True
        try:
            path = self.resolve_path(command.path)
        except InvalidPathError:
            return False
        return self._project.store.contains(path)

    def _load_project(self) -> Project:
        return load_project(
            self._root,
            working_dir=self._config.working_dir,
            resolver=self._resolver,
            engine_factory=self._engine_factory,
            default_lib=self._config.default_lib,
            reader=self._reader,
        )

    def _reload(self) -> str:
        self._project = self._load_project()
        return f"reloaded {self._project.root_path}, TSS listening.."

    def _close(self) -> str:
        self._closed = True
        return CLOSING_STATUS

    def _write_file(self, target: str, content: str) -> None:
        destination = Path(canonical_path(target, self._config.working_dir))
        with destination.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)

    def _log_command(self, command: Command, outcome: Outcome) -> None:
        self._audit(command.name, outcome, asdict(command))

    def _audit(self, command: str, outcome: Outcome, arguments: dict[str, object]) -> None:
        if self._audit_logger is None:
            return
        try:
            self._audit_logger.record(
                command=command,
                ok=outcome.ok,
                error_code=outcome.error_code,
                arguments=arguments,
            )
        except OSError:
            return


def _write_line(out_stream: TextIO, line: str) -> None:
    out_stream.write(f"{line}\n")
    out_stream.flush()


def create_server(
    root: str,
    working_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
    resolver: DependencyResolver | None = None,
    engine_factory: EngineFactory | None = None,
    reader: FileReader | None = None,
) -> SessionServer:
    """Create a configured session for ``root``."""
    directory = Path(working_dir) if working_dir is not None else Path(os.getcwd())
    config = load_effective_config(working_dir=directory, overrides=cli_overrides)
    return SessionServer(
        config=config,
        root=root,
        resolver=resolver,
        engine_factory=engine_factory,
        reader=reader,
    )


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the session server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        default_lib=Path(args.default_lib) if args.default_lib is not None else None,
        eol=args.eol,
        audit_enabled=False if args.no_audit else None,
    )
    server = create_server(root=args.root, working_dir=args.cwd, cli_overrides=overrides)
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
