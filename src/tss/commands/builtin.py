"""Built-in session commands."""

from __future__ import annotations

from collections.abc import Callable

from tss.commands.encoding import (
    encode_completions,
    encode_definition,
    encode_diagnostic,
    encode_info,
    encode_references,
    encode_structure,
    encode_type,
)
from tss.commands.grammar import (
    CompletionsCommand,
    DefinitionCommand,
    DumpCommand,
    InfoCommand,
    LastErrorCommand,
    ReferencesCommand,
    StructureCommand,
    TypeCommand,
    UnknownCommand,
    UpdateCommand,
)
from tss.commands.registry import CommandError, CommandHandler, CommandRegistry
from tss.engine.base import ReferenceEntry
from tss.engine.scanner import is_identifier_part, is_identifier_start
from tss.project.loader import Project
from tss.session.state import LastError

ProjectGetter = Callable[[], Project]
PathResolver = Callable[[str], str]


def register_builtin_commands(
    registry: CommandRegistry,
    current_project: ProjectGetter,
    resolve_path: PathResolver,
    eol: str,
    read_last_error: Callable[[], LastError | None],
    observed_patterns: Callable[[], list[str]],
    reload_project: Callable[[], str],
    close_session: Callable[[], str],
    write_file: Callable[[str, str], None],
) -> None:
    """Register every protocol command in grammar order."""
    registry.register("type", _type_handler(current_project, resolve_path))
    registry.register("definition", _definition_handler(current_project, resolve_path))
    registry.register("references", _references_handler(current_project, resolve_path))
    registry.register("structure", _structure_handler(current_project, resolve_path))
    registry.register("completions", _completions_handler(current_project, resolve_path))
    registry.register("info", _info_handler(current_project, resolve_path))
    registry.register("update", _update_handler(current_project, resolve_path, eol))
    registry.register("showErrors", _show_errors_handler(current_project))
    registry.register("files", lambda _: current_project().engine.file_names())
    registry.register("lastError", _last_error_handler(read_last_error))
    registry.register("dump", _dump_handler(current_project, resolve_path, write_file))
    registry.register("reload", lambda _: reload_project())
    registry.register("quit", lambda _: close_session())
    registry.register("help", lambda _: observed_patterns())
    registry.register("syntax_error", _syntax_error_handler())


def _type_handler(current_project: ProjectGetter, resolve_path: PathResolver) -> CommandHandler:
    def handler(command: TypeCommand) -> object:
        project = current_project()
        path = resolve_path(command.path)
        offset = project.store.line_col_to_offset(path, command.line, command.col)
        info = project.engine.type_at(path, offset)
        return encode_type(path, info, project.store.offset_to_line_col)

    return handler


def _definition_handler(
    current_project: ProjectGetter, resolve_path: PathResolver
) -> CommandHandler:
    def handler(command: DefinitionCommand) -> object:
        project = current_project()
        path = resolve_path(command.path)
        offset = project.store.line_col_to_offset(path, command.line, command.col)
        definitions = project.engine.definitions_at(path, offset)
        return encode_definition(definitions, project.store.offset_to_line_col)

    return handler


def _references_handler(
    current_project: ProjectGetter, resolve_path: PathResolver
) -> CommandHandler:
    def handler(command: ReferencesCommand) -> object:
        project = current_project()
        path = resolve_path(command.path)
        offset = project.store.line_col_to_offset(path, command.line, command.col)
        lookups: dict[str, Callable[[str, int], list[ReferenceEntry]]] = {
            "references": project.engine.references_at,
            "occurrences": project.engine.occurrences_at,
            "implementors": project.engine.implementors_at,
        }
        lookup = lookups.get(command.kind)
        if lookup is None:
            raise CommandError(
                code="INVALID_PARAMS",
                message=f"Unsupported reference kind: {command.kind}",
            )
        return encode_references(lookup(path, offset), project.store.offset_to_line_col)

    return handler


def _structure_handler(
    current_project: ProjectGetter, resolve_path: PathResolver
) -> CommandHandler:
    def handler(command: StructureCommand) -> object:
        project = current_project()
        path = resolve_path(command.path)
        items = project.engine.lexical_structure(path)
        return encode_structure(items, project.store.offset_to_line_col)

    return handler


def _completions_handler(
    current_project: ProjectGetter, resolve_path: PathResolver
) -> CommandHandler:
    def handler(command: CompletionsCommand) -> object:
        project = current_project()
        path = resolve_path(command.path)
        offset = project.store.line_col_to_offset(path, command.line, command.col)
        info = project.engine.completions_at(path, offset, command.member)
        if info is None:
            return None
        entries = list(info.entries)
        if not command.brief:
            entries = [
                project.engine.completion_details(path, offset, entry.name) for entry in entries
            ]
        prefix = completion_prefix(project.store.record(path).content, offset)
        if prefix is not None:
            entries = [entry for entry in entries if entry.name.startswith(prefix)]
        return encode_completions(info, entries, prefix)

    return handler


def completion_prefix(source: str, offset: int) -> str | None:
    """Return the identifier text typed immediately before ``offset``, if any."""
    start = offset
    while 0 < start <= len(source) and is_identifier_part(source[start - 1]):
        start -= 1
    if start < offset and is_identifier_start(source[start]):
        return source[start:offset]
    return None


def _info_handler(current_project: ProjectGetter, resolve_path: PathResolver) -> CommandHandler:
    def handler(command: InfoCommand) -> object:
        project = current_project()
        path = resolve_path(command.path)
        offset = project.store.line_col_to_offset(path, command.line, command.col)
        definitions = project.engine.definitions_at(path, offset)
        type_info = project.engine.type_at(path, offset)
        return encode_info(
            path,
            offset,
            type_info,
            definitions[0] if definitions else None,
            project.store.offset_to_line_col,
        )

    return handler


def _update_handler(
    current_project: ProjectGetter, resolve_path: PathResolver, eol: str
) -> CommandHandler:
    def handler(command: UpdateCommand) -> object:
        project = current_project()
        path = resolve_path(command.path)
        store = project.store
        added = not store.contains(path)
        if added and command.has_range:
            return "cannot update line range in new file"

        content = eol.join(command.payload)
        if added:
            store.add(path, content)
            project.engine.register_file(path)
            status = f"added {path}"
        elif command.start_line is not None and command.end_line is not None:
            store.replace_range(path, command.start_line, command.end_line, content)
            status = f"updated lines {command.start_line}-{command.end_line} in {path}"
        else:
            store.replace_full(path, content)
            status = f"updated {path}"

        if not command.check:
            return status
        syntactic = len(project.engine.syntactic_diagnostics(path))
        semantic = len(project.engine.semantic_diagnostics(path))
        return f"{status}, ({syntactic}/{semantic}) errors"

    return handler


def _show_errors_handler(current_project: ProjectGetter) -> CommandHandler:
    def handler(_: object) -> object:
        project = current_project()
        diagnostics = [*project.diagnostics, *project.engine.diagnostics()]
        output: list[dict[str, object]] = []
        for diagnostic in diagnostics:
            record = (
                project.store.lookup(diagnostic.file_name)
                if diagnostic.file_name is not None
                else None
            )
            output.append(
                encode_diagnostic(
                    diagnostic,
                    len(record.content) if record is not None else None,
                    project.store.offset_to_line_col,
                )
            )
        return output

    return handler


def _last_error_handler(read_last_error: Callable[[], LastError | None]) -> CommandHandler:
    def handler(command: LastErrorCommand) -> object:
        last_error = read_last_error()
        if last_error is None:
            return "no last error"
        if command.dump:
            return last_error.trace
        return last_error.to_dict()

    return handler


def _dump_handler(
    current_project: ProjectGetter,
    resolve_path: PathResolver,
    write_file: Callable[[str, str], None],
) -> CommandHandler:
    def handler(command: DumpCommand) -> object:
        project = current_project()
        path = resolve_path(command.path)
        content = project.store.record(path).content
        if command.target == "-":
            return {"file": path, "content": content}
        write_file(command.target, content)
        return f"dumped {path} to {command.target}"

    return handler


def _syntax_error_handler() -> CommandHandler:
    def handler(command: UnknownCommand) -> object:
        return f"TSS command syntax error: {command.text}"

    return handler
