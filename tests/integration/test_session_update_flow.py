from __future__ import annotations

import io
import json
from pathlib import Path

from tss.config import CliOverrides
from tss.server import SessionServer, create_server


def _server(tmp_path: Path, eol: str | None = None) -> SessionServer:
    (tmp_path / "main.ts").write_text("let a = 1;\n", encoding="utf-8")
    return create_server(
        root="main.ts",
        working_dir=str(tmp_path),
        cli_overrides=CliOverrides(audit_enabled=False, eol=eol),
    )


def _serve(server: SessionServer, lines: list[str]) -> list[object]:
    out_stream = io.StringIO()
    server.serve(
        in_stream=io.StringIO("".join(f"{line}\n" for line in lines)),
        out_stream=out_stream,
    )
    return [json.loads(line) for line in out_stream.getvalue().splitlines()]


def test_update_adds_new_file_then_replaces_a_line(tmp_path: Path) -> None:
    server = _server(tmp_path)
    foo = str(tmp_path.resolve() / "foo.ts")

    outputs = _serve(
        server,
        [
            "update 2 foo.ts",
            "let x = 1;",
            "x;",
            "update 1 2-2 foo.ts",
            "y;",
            "dump - foo.ts",
            "files",
        ],
    )

    assert outputs[1:] == [
        f"added {foo}, (0/0) errors",
        f"updated lines 2-2 in {foo}, (0/0) errors",
        {"file": foo, "content": "let x = 1;\ny;"},
        [str(tmp_path.resolve() / "main.ts"), foo],
        "TSS closing",
    ]


def test_payload_lines_are_never_parsed_as_commands(tmp_path: Path) -> None:
    server = _server(tmp_path)

    outputs = _serve(server, ["update nocheck 2 main.ts", "quit", "help"])

    assert outputs[1] == f"updated {tmp_path.resolve() / 'main.ts'}"
    assert server.project.store.get(server.project.root_path) == "quit\nhelp"
    assert outputs[-1] == "TSS closing"


def test_range_update_of_new_file_is_rejected_without_collecting(tmp_path: Path) -> None:
    server = _server(tmp_path)

    outputs = _serve(server, ["update 1 1-1 new.ts", "files"])

    assert outputs[1] == "cannot update line range in new file"
    assert outputs[2] == [str(tmp_path.resolve() / "main.ts")]


def test_zero_line_update_applies_empty_content(tmp_path: Path) -> None:
    server = _server(tmp_path)
    empty = str(tmp_path.resolve() / "empty.ts")

    outputs = _serve(server, ["update 0 empty.ts", "dump - empty.ts"])

    assert outputs[1] == f"added {empty}, (0/0) errors"
    assert outputs[2] == {"file": empty, "content": ""}


def test_check_counts_syntactic_and_semantic_diagnostics(tmp_path: Path) -> None:
    server = _server(tmp_path)
    broken = str(tmp_path.resolve() / "broken.ts")

    outputs = _serve(
        server,
        ["update 3 broken.ts", "class A {}", "class A {}", "function f() {", "showErrors"],
    )

    assert outputs[1] == f"added {broken}, (1/2) errors"
    diagnostics = outputs[2]
    assert isinstance(diagnostics, list)
    assert [entry["phase"] for entry in diagnostics] == ["Syntax", "Semantic", "Semantic"]
    assert diagnostics[0] == {
        "file": broken,
        "start": {"line": 3, "character": 14},
        "end": {"line": 3, "character": 15},
        "text": "'}' expected.",
        "phase": "Syntax",
        "category": "Error",
    }


def test_crlf_setting_joins_payload_lines(tmp_path: Path) -> None:
    server = _server(tmp_path, eol="crlf")

    _serve(server, ["update 2 main.ts", "a", "b"])

    assert server.project.store.get(server.project.root_path) == "a\r\nb"


def test_end_of_input_mid_collection_applies_nothing(tmp_path: Path) -> None:
    server = _server(tmp_path)

    outputs = _serve(server, ["update 3 main.ts", "only one line"])

    assert outputs[1:] == ["TSS closing"]
    assert server.project.store.get(server.project.root_path) == "let a = 1;\n"
    assert server.closed


def test_reload_discards_in_memory_edits(tmp_path: Path) -> None:
    server = _server(tmp_path)
    main = str(tmp_path.resolve() / "main.ts")

    outputs = _serve(
        server,
        [
            "update nocheck 1 main.ts",
            "let b = 2;",
            "update nocheck 0 extra.ts",
            "dump - main.ts",
            "reload",
            "dump - main.ts",
            "files",
        ],
    )

    assert outputs[3] == {"file": main, "content": "let b = 2;"}
    assert outputs[4] == f"reloaded {main}, TSS listening.."
    assert outputs[5] == {"file": main, "content": "let a = 1;\n"}
    assert outputs[6] == [main]


def test_ranged_update_shifts_following_lines(tmp_path: Path) -> None:
    server = _server(tmp_path)
    foo = str(tmp_path.resolve() / "foo.ts")

    outputs = _serve(
        server,
        [
            "update nocheck 5 foo.ts",
            "a1",
            "a2",
            "a3",
            "a4",
            "a5",
            "update 2 3-3 foo.ts",
            "X",
            "YY",
            "dump - foo.ts",
            "occurrences 5 1 foo.ts",
        ],
    )

    assert outputs[2] == f"updated lines 3-3 in {foo}, (0/0) errors"
    assert outputs[3] == {"file": foo, "content": "a1\na2\nX\nYY\na4\na5"}
    (occurrence,) = outputs[4]
    assert occurrence["ref"]["min_char"] == len("a1\na2\na3\n") + len("X\nYY") - len("a3")
    assert occurrence["min"] == {"line": 5, "col": 1}
    assert occurrence["lim"] == {"line": 5, "col": 3}
