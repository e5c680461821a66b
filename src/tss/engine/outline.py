"""Brace-aware lexical outline of TypeScript/JavaScript sources."""

from __future__ import annotations

import re
from dataclasses import dataclass

from tss.engine.scanner import BracketBlock, mask_comments_and_strings, scan_brackets
from tss.project.positions import compute_line_starts

_NAME = r"([A-Za-z_$][A-Za-z0-9_$]*)"
_EXPORT = r"^\s*((?:export\s+)?(?:default\s+)?(?:declare\s+)?)"
_CLASS_RE = re.compile(_EXPORT + r"(?:abstract\s+)?class\s+" + _NAME + r"\b")
_INTERFACE_RE = re.compile(_EXPORT + r"interface\s+" + _NAME + r"\b")
_ENUM_RE = re.compile(_EXPORT + r"(?:const\s+)?enum\s+" + _NAME + r"\b")
_MODULE_RE = re.compile(_EXPORT + r"(?:module|namespace)\s+" + _NAME + r"\b")
_TYPE_ALIAS_RE = re.compile(_EXPORT + r"type\s+" + _NAME + r"\b")
_FUNCTION_RE = re.compile(_EXPORT + r"(async\s+)?function\s*\*?\s*" + _NAME + r"\s*\(([^)]*)\)")
_VARIABLE_RE = re.compile(_EXPORT + r"(?:const|let|var)\s+" + _NAME + r"\b")
_COMMONJS_EXPORT_RE = re.compile(r"^\s*()(?:module\.)?exports\.([A-Za-z_$][A-Za-z0-9_$]*)\s*=")
_METHOD_RE = re.compile(
    r"^\s*((?:(?:public|private|protected|static|readonly|override|abstract|get|set|async)\s+)*)"
    + _NAME
    + r"\s*\??\s*\(([^)]*)\)"
)
_PROPERTY_RE = re.compile(
    r"^\s*((?:(?:public|private|protected|static|readonly|declare)\s+)*)"
    + _NAME
    + r"\s*[?!]?\s*[:=;]"
)
_SKIP_MEMBER_NAMES = {"if", "for", "while", "switch", "catch", "function", "return"}
_BLOCK_KINDS = {"class", "interface", "enum", "module", "function", "async_function"}
_TOP_LEVEL_PATTERNS = (
    ("class", _CLASS_RE),
    ("interface", _INTERFACE_RE),
    ("enum", _ENUM_RE),
    ("module", _MODULE_RE),
    ("type_alias", _TYPE_ALIAS_RE),
)


@dataclass(slots=True, frozen=True)
class OutlineSymbol:
    """Declaration found by the lexical outline."""

    kind: str
    name: str
    container: str
    modifiers: str
    signature: str | None
    start: int
    end: int
    name_start: int
    name_end: int


@dataclass(slots=True, frozen=True)
class _Source:
    masked: str
    line_starts: tuple[int, ...]
    braces: tuple[BracketBlock, ...]
    depth_at: tuple[int, ...]

    def line_span(self, line_index: int) -> tuple[int, int]:
        start = self.line_starts[line_index]
        if line_index + 1 >= len(self.line_starts):
            return start, len(self.masked)
        end = self.line_starts[line_index + 1]
        while end > start and self.masked[end - 1] in "\r\n\u2028\u2029":
            end -= 1
        return start, end

    def body_block(self, offset: int) -> BracketBlock | None:
        """Return the first brace block after ``offset`` unless a ``;`` ends the declaration."""
        for block in self.braces:
            if block.open_offset >= offset:
                if ";" in self.masked[offset : block.open_offset]:
                    return None
                return block
        return None


def outline(text: str) -> list[OutlineSymbol]:
    """Extract top-level declarations and class/interface members in offset order."""
    masked = mask_comments_and_strings(text)
    source = _Source(
        masked=masked,
        line_starts=compute_line_starts(masked),
        braces=tuple(block for block in scan_brackets(masked).blocks if block.open_char == "{"),
        depth_at=_brace_depths(masked),
    )

    symbols: list[OutlineSymbol] = []
    containers: list[tuple[OutlineSymbol, BracketBlock]] = []
    for line_index in range(len(source.line_starts)):
        line_start, line_end = source.line_span(line_index)
        if source.depth_at[line_start] != 0:
            continue
        symbol = _top_level_symbol(source, masked[line_start:line_end], line_start, line_end)
        if symbol is None:
            continue
        symbols.append(symbol)
        if symbol.kind in {"class", "interface"}:
            block = source.body_block(symbol.name_end)
            if block is not None:
                containers.append((symbol, block))

    for container, block in containers:
        symbols.extend(_members(source, container, block))

    return sorted(symbols, key=lambda item: (item.start, item.name_start, item.name))


def _top_level_symbol(
    source: _Source,
    line: str,
    line_start: int,
    line_end: int,
) -> OutlineSymbol | None:
    for kind, pattern in _TOP_LEVEL_PATTERNS:
        match = pattern.match(line)
        if match is not None:
            return _declaration(source, kind, match, 2, line_start, line_end, signature=None)

    function_match = _FUNCTION_RE.match(line)
    if function_match is not None:
        kind = "async_function" if function_match.group(2) else "function"
        signature = f"({function_match.group(4).strip()})"
        return _declaration(source, kind, function_match, 3, line_start, line_end, signature)

    variable_match = _VARIABLE_RE.match(line)
    if variable_match is not None:
        kind = "exported_variable" if "export" in variable_match.group(1) else "variable"
        return _declaration(source, kind, variable_match, 2, line_start, line_end, signature=None)

    commonjs_match = _COMMONJS_EXPORT_RE.match(line)
    if commonjs_match is not None:
        return _declaration(
            source, "exported_variable", commonjs_match, 2, line_start, line_end, signature=None
        )
    return None


def _declaration(
    source: _Source,
    kind: str,
    match: re.Match[str],
    name_group: int,
    line_start: int,
    line_end: int,
    signature: str | None,
) -> OutlineSymbol:
    name_end = line_start + match.end(name_group)
    end = line_end
    if kind in _BLOCK_KINDS:
        block = source.body_block(name_end)
        if block is not None:
            end = block.close_offset + 1
    return OutlineSymbol(
        kind=kind,
        name=match.group(name_group),
        container="",
        modifiers=" ".join(match.group(1).split()),
        signature=signature,
        start=line_start + match.start(1),
        end=end,
        name_start=line_start + match.start(name_group),
        name_end=name_end,
    )


def _members(source: _Source, container: OutlineSymbol, block: BracketBlock) -> list[OutlineSymbol]:
    members: list[OutlineSymbol] = []
    for line_index in range(len(source.line_starts)):
        line_start, line_end = source.line_span(line_index)
        if line_start <= block.open_offset or line_start > block.close_offset:
            continue
        if source.depth_at[line_start] != 1:
            continue
        line_end = min(line_end, block.close_offset)
        line = source.masked[line_start:line_end]

        method_match = _METHOD_RE.match(line)
        if method_match is not None and method_match.group(2) not in _SKIP_MEMBER_NAMES:
            name = method_match.group(2)
            kind = "constructor" if name == "constructor" else "method"
            if "async" in method_match.group(1).split():
                kind = "async_method"
            name_end = line_start + method_match.end(2)
            end = line_end
            body = source.body_block(name_end)
            if body is not None and body.open_offset < line_end:
                end = body.close_offset + 1
            members.append(
                OutlineSymbol(
                    kind=kind,
                    name=name,
                    container=container.name,
                    modifiers=" ".join(method_match.group(1).split()),
                    signature=f"({method_match.group(3).strip()})",
                    start=line_start + method_match.start(1),
                    end=end,
                    name_start=line_start + method_match.start(2),
                    name_end=name_end,
                )
            )
            continue

        property_match = _PROPERTY_RE.match(line)
        if property_match is not None and property_match.group(2) not in _SKIP_MEMBER_NAMES:
            members.append(
                OutlineSymbol(
                    kind="property",
                    name=property_match.group(2),
                    container=container.name,
                    modifiers=" ".join(property_match.group(1).split()),
                    signature=None,
                    start=line_start + property_match.start(1),
                    end=line_end,
                    name_start=line_start + property_match.start(2),
                    name_end=line_start + property_match.end(2),
                )
            )
    return members


def _brace_depths(masked: str) -> tuple[int, ...]:
    """Return the ``{`` nesting depth before every offset, plus one past the end."""
    depths: list[int] = []
    depth = 0
    for char in masked:
        depths.append(depth)
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(0, depth - 1)
    depths.append(depth)
    return tuple(depths)
