from __future__ import annotations

from tss.commands.grammar import HelpCommand, UnknownCommand, UpdateCommand
from tss.session.state import IDLE, Collecting, LastError, feed_line, strip_line_terminator


def _always(_: UpdateCommand) -> bool:
    return True


def _never(_: UpdateCommand) -> bool:
    return False


def test_idle_line_is_trimmed_and_parsed() -> None:
    step = feed_line(IDLE, "  help  \n", can_collect=_always)
    assert step.state == IDLE
    assert step.ready == HelpCommand()


def test_unmatched_line_stays_idle() -> None:
    step = feed_line(IDLE, "what\n", can_collect=_always)
    assert step.state == IDLE
    assert step.ready == UnknownCommand(text="what")


def test_update_collects_payload_lines_verbatim() -> None:
    step = feed_line(IDLE, "update 2 a.ts\n", can_collect=_always)
    assert isinstance(step.state, Collecting)
    assert step.state.remaining == 2
    assert step.ready is None

    step = feed_line(step.state, "  indented line\r\n", can_collect=_always)
    assert isinstance(step.state, Collecting)
    assert step.state.remaining == 1
    assert step.state.buffer == ("  indented line",)
    assert step.ready is None

    step = feed_line(step.state, "quit\n", can_collect=_always)
    assert step.state == IDLE
    assert isinstance(step.ready, UpdateCommand)
    assert step.ready.path == "a.ts"
    assert step.ready.payload == ("  indented line", "quit")


def test_zero_line_update_is_ready_immediately() -> None:
    step = feed_line(IDLE, "update 0 a.ts\n", can_collect=_always)
    assert step.state == IDLE
    assert isinstance(step.ready, UpdateCommand)
    assert step.ready.payload == ()


def test_refused_update_is_dispatched_without_collecting() -> None:
    step = feed_line(IDLE, "update 3 1-2 new.ts\n", can_collect=_never)
    assert step.state == IDLE
    assert isinstance(step.ready, UpdateCommand)
    assert step.ready.has_range


def test_observed_patterns_are_not_touched_while_collecting() -> None:
    observed: dict[str, None] = {}
    step = feed_line(IDLE, "update 1 a.ts", can_collect=_always, observed=observed)
    seen = list(observed)
    feed_line(step.state, "help", can_collect=_always, observed=observed)
    assert list(observed) == seen


def test_strip_line_terminator_removes_one_terminator() -> None:
    assert strip_line_terminator("a\r\n") == "a"
    assert strip_line_terminator("a\n\n") == "a\n"
    assert strip_line_terminator("a\r") == "a"
    assert strip_line_terminator("a") == "a"


def test_last_error_wire_shape() -> None:
    assert LastError(message="boom", trace="Traceback").to_dict() == {
        "msg": "boom",
        "stack": "Traceback",
    }
