from __future__ import annotations

import io
import json
from pathlib import Path

from tss.commands.grammar import GRAMMAR
from tss.config import CliOverrides
from tss.server import create_server


def _run(tmp_path: Path, commands: list[str]) -> list[object]:
    server = create_server(
        root="main.ts",
        working_dir=str(tmp_path),
        cli_overrides=CliOverrides(audit_enabled=False),
    )
    in_stream = io.StringIO("".join(f"{command}\n" for command in commands))
    out_stream = io.StringIO()
    server.serve(in_stream=in_stream, out_stream=out_stream)
    return [json.loads(line) for line in out_stream.getvalue().splitlines()]


def _project(tmp_path: Path) -> str:
    (tmp_path / "main.ts").write_text("let a = 1;\n", encoding="utf-8")
    return str(tmp_path.resolve() / "main.ts")


def test_greeting_then_closing_line_on_end_of_input(tmp_path: Path) -> None:
    main = _project(tmp_path)

    assert _run(tmp_path, []) == [f"loaded {main}, TSS listening..", "TSS closing"]


def test_quit_emits_closing_line_once_and_stops_reading(tmp_path: Path) -> None:
    _project(tmp_path)

    outputs = _run(tmp_path, ["quit", "files"])

    assert outputs[1:] == ["TSS closing"]


def test_every_command_yields_exactly_one_line(tmp_path: Path) -> None:
    main = _project(tmp_path)

    outputs = _run(tmp_path, ["files", "frobnicate", "showErrors", "lastError", ""])

    assert outputs == [
        f"loaded {main}, TSS listening..",
        [main],
        "TSS command syntax error: frobnicate",
        [],
        "no last error",
        "TSS command syntax error: ",
        "TSS closing",
    ]


def test_processing_error_is_reported_and_recorded(tmp_path: Path) -> None:
    _project(tmp_path)

    outputs = _run(
        tmp_path,
        ["type 99 1 main.ts", "lastError", "lastErrorDump", "type 1 5 main.ts"],
    )

    assert outputs[1] == "TSS command processing error: Line 99 is outside 1..2."
    last_error = outputs[2]
    assert isinstance(last_error, dict)
    assert last_error["msg"] == "Line 99 is outside 1..2."
    assert "PositionError" in last_error["stack"]
    assert outputs[3] == last_error["stack"]
    assert isinstance(outputs[4], dict)
    assert outputs[4]["type"] == "any"


def test_unknown_file_is_a_processing_error(tmp_path: Path) -> None:
    _project(tmp_path)
    missing = str(tmp_path.resolve() / "nothere.ts")

    outputs = _run(tmp_path, ["structure nothere.ts"])

    assert outputs[1] == f"TSS command processing error: Unknown file: {missing}"


def test_help_lists_patterns_seen_this_session(tmp_path: Path) -> None:
    _project(tmp_path)

    outputs = _run(tmp_path, ["files", "help"])

    assert outputs[2] == [pattern.pattern for pattern, _ in GRAMMAR]


def test_dump_to_console_and_to_file(tmp_path: Path) -> None:
    main = _project(tmp_path)

    outputs = _run(tmp_path, ["dump - main.ts", "dump out.txt main.ts"])

    assert outputs[1] == {"file": main, "content": "let a = 1;\n"}
    assert outputs[2] == f"dumped {main} to out.txt"
    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "let a = 1;\n"


def test_missing_root_is_reported_through_show_errors(tmp_path: Path) -> None:
    missing = str(tmp_path.resolve() / "main.ts")

    outputs = _run(tmp_path, ["files", "showErrors"])

    assert outputs[0] == f"loaded {missing}, TSS listening.."
    assert outputs[1] == []
    assert outputs[2] == [
        {
            "file": None,
            "start": None,
            "end": None,
            "text": f"Cannot read file '{missing}'.",
            "phase": "Resolution",
            "category": "Error",
        }
    ]


def test_oversized_number_is_a_processing_error_and_session_continues(tmp_path: Path) -> None:
    main = _project(tmp_path)

    outputs = _run(tmp_path, [f"type 1 {'9' * 5000} main.ts", "files", "lastError"])

    assert isinstance(outputs[1], str)
    assert outputs[1].startswith("TSS command processing error: ")
    assert outputs[2] == [main]
    assert isinstance(outputs[3], dict)
    assert "integer string conversion" in outputs[3]["msg"]
    assert outputs[4:] == ["TSS closing"]
