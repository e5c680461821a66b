from __future__ import annotations

from tss.engine.outline import outline

SOURCE = (
    "export class Box {\n"
    "  private size: number;\n"
    "  constructor(size: number) {}\n"
    "  static make(): Box { return new Box(1); }\n"
    "}\n"
    "export interface Named { name: string; }\n"
    "enum Color { Red }\n"
    "type Id = string;\n"
    "export async function load(path: string) {}\n"
    "export const VERSION = \"1\";\n"
    "namespace Util {}\n"
)


def test_outline_lists_declarations_in_source_order() -> None:
    symbols = outline(SOURCE)

    assert [(symbol.kind, symbol.name) for symbol in symbols] == [
        ("class", "Box"),
        ("property", "size"),
        ("constructor", "constructor"),
        ("method", "make"),
        ("interface", "Named"),
        ("enum", "Color"),
        ("type_alias", "Id"),
        ("async_function", "load"),
        ("exported_variable", "VERSION"),
        ("module", "Util"),
    ]


def test_members_carry_container_and_modifiers() -> None:
    members = {symbol.name: symbol for symbol in outline(SOURCE) if symbol.container}

    assert members["size"].container == "Box"
    assert members["size"].modifiers == "private"
    assert members["make"].modifiers == "static"
    assert members["make"].signature == "()"


def test_block_declarations_span_their_body() -> None:
    symbols = {symbol.name: symbol for symbol in outline(SOURCE)}
    box = symbols["Box"]

    assert box.start == 0
    assert SOURCE[box.end - 1] == "}"
    assert SOURCE[box.name_start : box.name_end] == "Box"
    assert symbols["load"].signature == "(path: string)"
    assert symbols["load"].modifiers == "export"


def test_declarations_inside_comments_and_strings_are_ignored() -> None:
    text = "/*\nclass Hidden {}\n*/\nconst s = `\nclass AlsoHidden {}\n`;\n"

    assert [symbol.name for symbol in outline(text)] == ["s"]
