"""Lexical analysis engine working directly on project store buffers.

The engine has no type checker: declarations come from the lexical outline
and from ``const``/``let``/``var`` bindings, and every query resolves the
identifier under the cursor by name. It is the default engine of the session
and stands in for a full language service wherever none is injected.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from tss.engine.base import (
    CompletionEntry,
    CompletionEntryDetails,
    CompletionInfo,
    DefinitionInfo,
    Diagnostic,
    NavigateToItem,
    ReferenceEntry,
    TypeInfo,
)
from tss.engine.outline import OutlineSymbol, outline
from tss.engine.scanner import (
    extract_identifier_tokens,
    identifier_at,
    mask_comments_and_strings,
    scan_brackets,
)
from tss.project.store import ProjectStore

_BINDING_RE = re.compile(
    r"\b(const|let|var)\s+([A-Za-z_$][A-Za-z0-9_$]*)(?:\s*:\s*([^=;,)\n]+))?"
)
_HERITAGE_RE = re.compile(r"\b(class|interface)\s+([A-Za-z_$][A-Za-z0-9_$]*)([^{;]*)\{")
_HERITAGE_CLAUSE_RE = re.compile(r"\b(?:extends|implements)\b(.*)", re.DOTALL)
_ASSIGNMENT_RE = re.compile(r"\s*(?:[-+*/%&|^]|\*\*|<<|>>>?|\?\?|&&|\|\|)?=(?![=>])")
_CONTAINER_KINDS = {"class", "interface"}
_DUPLICATE_CHECKED_KINDS = {"class", "enum", "type_alias", "exported_variable", "variable"}
_CLOSING_MESSAGES = {"}": "Unexpected '}'.", ")": "Unexpected ')'.", "]": "Unexpected ']'."}
_OPENING_MESSAGES = {"{": "'}' expected.", "(": "')' expected.", "[": "']' expected."}


@dataclass(slots=True, frozen=True)
class _Declaration:
    file_name: str
    name: str
    kind: str
    container: str
    modifiers: str
    type_text: str
    start: int
    end: int
    name_start: int
    name_end: int


class LexicalEngine:
    """Name-based engine over the current content of a project store."""

    def __init__(self, store: ProjectStore) -> None:
        self._store = store
        self._files: list[str] = []

    def register_file(self, path: str) -> None:
        """Add a store file to the analysed set."""
        self._store.record(path)
        if path not in self._files:
            self._files.append(path)

    def file_names(self) -> list[str]:
        """Return analysed files in registration order."""
        return list(self._files)

    def type_at(self, path: str, offset: int) -> TypeInfo | None:
        """Describe the declaration named by the identifier at ``offset``."""
        token = identifier_at(self._masked(path), offset)
        if token is None:
            return None
        declarations = self._declarations_named(token.text, prefer=path)
        if not declarations:
            return None
        declaration = declarations[0]
        return TypeInfo(
            member_name=declaration.type_text,
            doc_comment="",
            full_symbol_name=_qualified_name(declaration),
            kind=declaration.kind,
            min_char=token.start,
            lim_char=token.end,
        )

    def definitions_at(self, path: str, offset: int) -> list[DefinitionInfo]:
        """Return declarations sharing the name at ``offset``, current file first."""
        token = identifier_at(self._masked(path), offset)
        if token is None:
            return []
        return [
            DefinitionInfo(
                file_name=declaration.file_name,
                min_char=declaration.start,
                lim_char=declaration.end,
                kind=declaration.kind,
                name=declaration.name,
                container_kind="class" if declaration.container else "module",
                container_name=declaration.container,
            )
            for declaration in self._declarations_named(token.text, prefer=path)
        ]

    def references_at(self, path: str, offset: int) -> list[ReferenceEntry]:
        """Return every mention of the name at ``offset`` across analysed files."""
        token = identifier_at(self._masked(path), offset)
        if token is None:
            return []
        references: list[ReferenceEntry] = []
        for file_name in self._ordered_files(prefer=path):
            references.extend(self._mentions(file_name, token.text))
        return references

    def occurrences_at(self, path: str, offset: int) -> list[ReferenceEntry]:
        """Return mentions of the name at ``offset`` inside ``path`` only."""
        token = identifier_at(self._masked(path), offset)
        if token is None:
            return []
        return self._mentions(path, token.text)

    def implementors_at(self, path: str, offset: int) -> list[ReferenceEntry]:
        """Return classes and interfaces whose heritage clause names the symbol."""
        token = identifier_at(self._masked(path), offset)
        if token is None:
            return []
        pattern = re.compile(rf"(?<![A-Za-z0-9_$]){re.escape(token.text)}(?![A-Za-z0-9_$])")
        implementors: list[ReferenceEntry] = []
        for file_name in self._ordered_files(prefer=path):
            for match in _HERITAGE_RE.finditer(self._masked(file_name)):
                clause = _HERITAGE_CLAUSE_RE.search(match.group(3))
                if clause is None or pattern.search(clause.group(1)) is None:
                    continue
                implementors.append(
                    ReferenceEntry(
                        file_name=file_name,
                        min_char=match.start(2),
                        lim_char=match.end(2),
                        is_write_access=False,
                    )
                )
        return implementors

    def lexical_structure(self, path: str) -> list[NavigateToItem]:
        """Return outline nodes of ``path`` in source order."""
        items: list[NavigateToItem] = []
        for symbol in self._outline(path):
            items.append(
                NavigateToItem(
                    name=symbol.name,
                    kind=symbol.kind,
                    kind_modifiers=symbol.modifiers,
                    match_kind="exact",
                    container_name=symbol.container,
                    container_kind="class" if symbol.container else "",
                    file_name=path,
                    min_char=symbol.start,
                    lim_char=symbol.end,
                )
            )
        return items

    def completions_at(self, path: str, offset: int, member: bool) -> CompletionInfo | None:
        """Return candidate names; member completions list class and interface members."""
        masked = self._masked(path)
        seen: dict[str, CompletionEntry] = {}
        for declaration in self._all_declarations(prefer=path):
            if member != bool(declaration.container):
                continue
            seen.setdefault(
                declaration.name,
                CompletionEntry(
                    name=declaration.name,
                    kind=declaration.kind,
                    kind_modifiers=declaration.modifiers,
                ),
            )
        if not member:
            for token in extract_identifier_tokens(masked):
                if token.start <= offset <= token.end:
                    continue
                seen.setdefault(
                    token.text,
                    CompletionEntry(name=token.text, kind="identifier", kind_modifiers=""),
                )
        entries = tuple(sorted(seen.values(), key=lambda entry: entry.name))
        return CompletionInfo(is_member_completion=member, entries=entries)

    def completion_details(self, path: str, offset: int, name: str) -> CompletionEntryDetails:
        """Return declaration details for a completion candidate."""
        _ = offset
        declarations = self._declarations_named(name, prefer=path)
        if not declarations:
            return CompletionEntryDetails(
                name=name,
                kind="identifier",
                kind_modifiers="",
                type="",
                full_symbol_name=name,
                doc_comment="",
            )
        declaration = declarations[0]
        return CompletionEntryDetails(
            name=name,
            kind=declaration.kind,
            kind_modifiers=declaration.modifiers,
            type=declaration.type_text,
            full_symbol_name=_qualified_name(declaration),
            doc_comment="",
        )

    def syntactic_diagnostics(self, path: str) -> list[Diagnostic]:
        """Report unbalanced brackets."""
        masked = self._masked(path)
        scan = scan_brackets(masked)
        diagnostics = [
            Diagnostic(
                file_name=path,
                start=offset,
                length=1,
                message=_CLOSING_MESSAGES[masked[offset]],
                phase="Syntax",
            )
            for offset in scan.unmatched_closing
        ]
        diagnostics.extend(
            Diagnostic(
                file_name=path,
                start=offset,
                length=1,
                message=_OPENING_MESSAGES[masked[offset]],
                phase="Syntax",
            )
            for offset in scan.unclosed_opening
        )
        return sorted(diagnostics, key=lambda item: item.start)

    def semantic_diagnostics(self, path: str) -> list[Diagnostic]:
        """Report top-level names declared more than once."""
        symbols = [
            symbol
            for symbol in self._outline(path)
            if not symbol.container and symbol.kind in _DUPLICATE_CHECKED_KINDS
        ]
        counts = Counter(symbol.name for symbol in symbols)
        return [
            Diagnostic(
                file_name=path,
                start=symbol.name_start,
                length=symbol.name_end - symbol.name_start,
                message=f"Duplicate identifier '{symbol.name}'.",
                phase="Semantic",
            )
            for symbol in symbols
            if counts[symbol.name] > 1
        ]

    def diagnostics(self) -> list[Diagnostic]:
        """Return syntactic then semantic problems of every analysed file."""
        collected: list[Diagnostic] = []
        for file_name in self._files:
            collected.extend(self.syntactic_diagnostics(file_name))
            collected.extend(self.semantic_diagnostics(file_name))
        return collected

    def _masked(self, path: str) -> str:
        return mask_comments_and_strings(self._store.record(path).content)

    def _outline(self, path: str) -> list[OutlineSymbol]:
        return outline(self._store.record(path).content)

    def _ordered_files(self, prefer: str) -> list[str]:
        ordered = [prefer] if prefer in self._files or self._store.contains(prefer) else []
        ordered.extend(file_name for file_name in self._files if file_name != prefer)
        return ordered

    def _mentions(self, path: str, name: str) -> list[ReferenceEntry]:
        masked = self._masked(path)
        declared = {declaration.name_start for declaration in self._declarations(path)}
        mentions: list[ReferenceEntry] = []
        for token in extract_identifier_tokens(masked):
            if token.text != name:
                continue
            write = token.start in declared or _ASSIGNMENT_RE.match(masked, token.end) is not None
            mentions.append(
                ReferenceEntry(
                    file_name=path,
                    min_char=token.start,
                    lim_char=token.end,
                    is_write_access=write,
                )
            )
        return mentions

    def _declarations(self, path: str) -> list[_Declaration]:
        text = self._store.record(path).content
        masked = mask_comments_and_strings(text)
        declarations = [_from_symbol(path, symbol, text) for symbol in outline(text)]
        covered = {declaration.name_start for declaration in declarations}
        for match in _BINDING_RE.finditer(masked):
            if match.start(2) in covered:
                continue
            annotation = text[match.start(3) : match.end(3)].strip() if match.group(3) else ""
            declarations.append(
                _Declaration(
                    file_name=path,
                    name=match.group(2),
                    kind=match.group(1),
                    container="",
                    modifiers="",
                    type_text=annotation or "any",
                    start=match.start(1),
                    end=match.end(2),
                    name_start=match.start(2),
                    name_end=match.end(2),
                )
            )
        return sorted(declarations, key=lambda item: item.name_start)

    def _all_declarations(self, prefer: str) -> list[_Declaration]:
        collected: list[_Declaration] = []
        for file_name in self._ordered_files(prefer=prefer):
            collected.extend(self._declarations(file_name))
        return collected

    def _declarations_named(self, name: str, prefer: str) -> list[_Declaration]:
        return [item for item in self._all_declarations(prefer=prefer) if item.name == name]


def _from_symbol(path: str, symbol: OutlineSymbol, text: str) -> _Declaration:
    if symbol.signature is not None:
        type_text = symbol.signature
    elif symbol.kind in _CONTAINER_KINDS or symbol.kind in {"enum", "module", "type_alias"}:
        type_text = symbol.name
    else:
        type_text = _annotation_after(text, symbol.name_end)
    return _Declaration(
        file_name=path,
        name=symbol.name,
        kind=symbol.kind,
        container=symbol.container,
        modifiers=symbol.modifiers,
        type_text=type_text,
        start=symbol.start,
        end=symbol.end,
        name_start=symbol.name_start,
        name_end=symbol.name_end,
    )


def _annotation_after(text: str, offset: int) -> str:
    match = re.match(r"\s*[?!]?\s*:\s*([^=;\n]+)", text[offset:])
    if match is None:
        return "any"
    return match.group(1).strip() or "any"


def _qualified_name(declaration: _Declaration) -> str:
    if declaration.container:
        return f"{declaration.container}.{declaration.name}"
    return declaration.name
