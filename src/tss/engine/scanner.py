"""Offset-preserving lexical scanning of TypeScript/JavaScript text."""

from __future__ import annotations

import re
from dataclasses import dataclass

_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_BRACKET_PAIRS = {"}": "{", ")": "(", "]": "["}
_LINE_COMMENT = "//"
_BLOCK_COMMENT_START = "/*"
_BLOCK_COMMENT_END = "*/"
_STRING_DELIMITERS = ("'", '"', "`")


@dataclass(slots=True, frozen=True)
class IdentifierToken:
    """Identifier occurrence as a ``[start, end)`` offset span."""

    text: str
    start: int
    end: int


@dataclass(slots=True, frozen=True)
class BracketBlock:
    """Matched bracket pair."""

    open_char: str
    open_offset: int
    close_offset: int


@dataclass(slots=True, frozen=True)
class BracketScanResult:
    """Matched blocks plus the offsets of unbalanced brackets."""

    blocks: tuple[BracketBlock, ...]
    unmatched_closing: tuple[int, ...]
    unclosed_opening: tuple[int, ...]


def mask_comments_and_strings(text: str) -> str:
    """Blank out comments and string literals, keeping every offset and line break."""
    chars = list(text)
    length = len(text)
    index = 0
    state: tuple[str, str] | None = None

    while index < length:
        if state is None:
            if text.startswith(_LINE_COMMENT, index):
                _blank(chars, index, len(_LINE_COMMENT))
                state = ("line_comment", "")
                index += len(_LINE_COMMENT)
                continue

            if text.startswith(_BLOCK_COMMENT_START, index):
                _blank(chars, index, len(_BLOCK_COMMENT_START))
                state = ("block_comment", _BLOCK_COMMENT_END)
                index += len(_BLOCK_COMMENT_START)
                continue

            if text[index] in _STRING_DELIMITERS:
                chars[index] = " "
                state = ("string", text[index])
                index += 1
                continue

            index += 1
            continue

        mode, marker = state
        if mode == "line_comment":
            if text[index] in "\r\n":
                state = None
            else:
                chars[index] = " "
            index += 1
            continue

        closes = text.startswith(marker, index)
        if mode == "string":
            closes = closes and not _is_escaped(text, index)
            # unterminated single-line strings end at the line break
            if not closes and marker != "`" and text[index] in "\r\n":
                state = None
                index += 1
                continue
        if closes:
            _blank(chars, index, len(marker))
            state = None
            index += len(marker)
        else:
            if text[index] not in "\r\n":
                chars[index] = " "
            index += 1

    return "".join(chars)


def extract_identifier_tokens(masked_text: str) -> list[IdentifierToken]:
    """Return identifier tokens of already-masked text in offset order."""
    return [
        IdentifierToken(text=match.group(0), start=match.start(), end=match.end())
        for match in _IDENTIFIER_PATTERN.finditer(masked_text)
    ]


def identifier_at(masked_text: str, offset: int) -> IdentifierToken | None:
    """Return the identifier covering ``offset`` or ending right before it."""
    for token in extract_identifier_tokens(masked_text):
        if token.start <= offset <= token.end:
            return token
        if token.start > offset:
            break
    return None


def is_identifier_part(char: str) -> bool:
    """Return True for characters allowed inside an identifier."""
    return char.isalnum() or char in {"_", "$"}


def is_identifier_start(char: str) -> bool:
    """Return True for characters allowed to begin an identifier."""
    return char.isalpha() or char in {"_", "$"}


def scan_brackets(masked_text: str) -> BracketScanResult:
    """Match ``{}``, ``()`` and ``[]`` pairs in already-masked text."""
    stack: list[tuple[str, int]] = []
    blocks: list[BracketBlock] = []
    unmatched: list[int] = []

    for offset, char in enumerate(masked_text):
        if char in "{([":
            stack.append((char, offset))
        elif char in _BRACKET_PAIRS:
            if not stack or stack[-1][0] != _BRACKET_PAIRS[char]:
                unmatched.append(offset)
                continue
            open_char, open_offset = stack.pop()
            blocks.append(
                BracketBlock(
                    open_char=open_char,
                    open_offset=open_offset,
                    close_offset=offset,
                )
            )

    ordered = tuple(sorted(blocks, key=lambda item: (item.open_offset, item.close_offset)))
    return BracketScanResult(
        blocks=ordered,
        unmatched_closing=tuple(unmatched),
        unclosed_opening=tuple(offset for _, offset in stack),
    )


def _blank(chars: list[str], index: int, count: int) -> None:
    for offset in range(count):
        chars[index + offset] = " "


def _is_escaped(text: str, index: int) -> bool:
    backslashes = 0
    cursor = index - 1
    while cursor >= 0 and text[cursor] == "\\":
        backslashes += 1
        cursor -= 1
    return backslashes % 2 == 1
