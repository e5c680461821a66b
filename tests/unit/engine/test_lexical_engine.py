from __future__ import annotations

from tss.engine.lexical import LexicalEngine
from tss.project.store import ProjectStore

SHAPES_PATH = "/proj/shapes.ts"
SHAPES = (
    "interface Shape {\n"
    "    area(): number;\n"
    "}\n"
    "class Square implements Shape {\n"
    "    side: number = 2;\n"
    "    area() {\n"
    "        return this.side * this.side;\n"
    "    }\n"
    "}\n"
    "let total: number = 0;\n"
    "total = total + new Square().area();\n"
)
USER_PATH = "/proj/user.ts"
USER = "let s = new Square();\n"


def _engine() -> tuple[ProjectStore, LexicalEngine]:
    store = ProjectStore(reader=lambda path: "")
    store.add(SHAPES_PATH, SHAPES)
    store.add(USER_PATH, USER)
    engine = LexicalEngine(store)
    engine.register_file(SHAPES_PATH)
    engine.register_file(USER_PATH)
    return store, engine


def test_file_names_follow_registration_order() -> None:
    _, engine = _engine()
    engine.register_file(SHAPES_PATH)

    assert engine.file_names() == [SHAPES_PATH, USER_PATH]


def test_lexical_structure_lists_outline_in_source_order() -> None:
    _, engine = _engine()

    items = engine.lexical_structure(SHAPES_PATH)

    assert [(item.name, item.container_name) for item in items] == [
        ("Shape", ""),
        ("area", "Shape"),
        ("Square", ""),
        ("side", "Square"),
        ("area", "Square"),
        ("total", ""),
    ]
    assert all(item.file_name == SHAPES_PATH for item in items)


def test_type_at_uses_member_annotation() -> None:
    _, engine = _engine()
    offset = SHAPES.index("this.side") + len("this.")

    info = engine.type_at(SHAPES_PATH, offset)

    assert info is not None
    assert info.member_name == "number"
    assert info.full_symbol_name == "Square.side"
    assert info.kind == "property"
    assert (info.min_char, info.lim_char) == (offset, offset + len("side"))


def test_type_at_whitespace_is_none() -> None:
    _, engine = _engine()

    assert engine.type_at(SHAPES_PATH, SHAPES.index("    side")) is None


def test_definition_of_class_usage_points_at_declaration() -> None:
    _, engine = _engine()

    definitions = engine.definitions_at(USER_PATH, USER.index("Square"))

    assert len(definitions) == 1
    definition = definitions[0]
    assert definition.file_name == SHAPES_PATH
    assert definition.kind == "class"
    assert definition.min_char == SHAPES.index("class Square")
    assert SHAPES[definition.lim_char - 1] == "}"


def test_references_span_every_registered_file_current_first() -> None:
    _, engine = _engine()

    references = engine.references_at(USER_PATH, USER.index("Square"))

    assert [reference.file_name for reference in references] == [
        USER_PATH,
        SHAPES_PATH,
        SHAPES_PATH,
    ]


def test_occurrences_mark_declarations_and_assignments_as_writes() -> None:
    _, engine = _engine()

    occurrences = engine.occurrences_at(SHAPES_PATH, SHAPES.index("total"))

    assert [entry.is_write_access for entry in occurrences] == [True, True, False]


def test_implementors_follow_heritage_clauses() -> None:
    _, engine = _engine()

    implementors = engine.implementors_at(SHAPES_PATH, SHAPES.index("Shape"))

    assert len(implementors) == 1
    start = SHAPES.index("Square")
    assert (implementors[0].min_char, implementors[0].lim_char) == (start, start + len("Square"))


def test_member_completions_list_class_and_interface_members() -> None:
    _, engine = _engine()
    offset = SHAPES.index(".area()") + 1

    info = engine.completions_at(SHAPES_PATH, offset, member=True)

    assert info is not None
    assert info.is_member_completion is True
    assert [entry.name for entry in info.entries] == ["area", "side"]


def test_completion_details_describe_declaration() -> None:
    _, engine = _engine()

    details = engine.completion_details(SHAPES_PATH, 0, "side")

    assert details.type == "number"
    assert details.full_symbol_name == "Square.side"
    assert engine.completion_details(SHAPES_PATH, 0, "unknown").kind == "identifier"


def test_clean_project_has_no_diagnostics() -> None:
    _, engine = _engine()

    assert engine.diagnostics() == []


def test_unbalanced_brace_is_syntactic_diagnostic() -> None:
    store = ProjectStore(reader=lambda path: "")
    store.add("/proj/broken.ts", "function f() {\n")
    engine = LexicalEngine(store)
    engine.register_file("/proj/broken.ts")

    diagnostics = engine.syntactic_diagnostics("/proj/broken.ts")

    assert [(item.start, item.message) for item in diagnostics] == [(13, "'}' expected.")]
    assert diagnostics[0].phase == "Syntax"


def test_duplicate_top_level_names_are_semantic_diagnostics() -> None:
    store = ProjectStore(reader=lambda path: "")
    store.add("/proj/dup.ts", "class A {}\nclass A {}\n")
    engine = LexicalEngine(store)
    engine.register_file("/proj/dup.ts")

    diagnostics = engine.semantic_diagnostics("/proj/dup.ts")

    assert [item.message for item in diagnostics] == ["Duplicate identifier 'A'."] * 2
    assert [item.start for item in diagnostics] == [6, 17]
    assert all(item.phase == "Semantic" for item in diagnostics)
