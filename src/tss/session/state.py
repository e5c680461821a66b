"""Session state machine: idle command lines and collected update payloads."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace

from tss.commands.grammar import Command, UpdateCommand, parse_command


@dataclass(slots=True, frozen=True)
class Idle:
    """Every line is parsed as a command."""


@dataclass(slots=True, frozen=True)
class Collecting:
    """Lines are gathered verbatim as the payload of a pending update."""

    remaining: int
    command: UpdateCommand
    buffer: tuple[str, ...] = ()


SessionState = Idle | Collecting

IDLE = Idle()


@dataclass(slots=True, frozen=True)
class Step:
    """Next state plus the command ready for dispatch, if any."""

    state: SessionState
    ready: Command | None


@dataclass(slots=True, frozen=True)
class LastError:
    """Most recent processing failure."""

    message: str
    trace: str

    def to_dict(self) -> dict[str, str]:
        return {"msg": self.message, "stack": self.trace}


def strip_line_terminator(raw_line: str) -> str:
    """Remove one trailing ``\\r\\n``, ``\\n`` or ``\\r``."""
    if raw_line.endswith("\r\n"):
        return raw_line[:-2]
    if raw_line.endswith(("\n", "\r")):
        return raw_line[:-1]
    return raw_line


def feed_line(
    state: SessionState,
    raw_line: str,
    *,
    can_collect: Callable[[UpdateCommand], bool],
    observed: dict[str, None] | None = None,
) -> Step:
    """Advance the session by one input line.

    While collecting, the line is appended to the payload and never parsed;
    the update becomes ready once its last line arrives. While idle, the
    trimmed line is parsed. An update with a positive line count starts
    collection unless ``can_collect`` refuses it, in which case it is
    dispatched at once so its handler can report the rejection.
    """
    if isinstance(state, Collecting):
        buffer = (*state.buffer, strip_line_terminator(raw_line))
        remaining = state.remaining - 1
        if remaining > 0:
            return Step(
                state=Collecting(remaining=remaining, command=state.command, buffer=buffer),
                ready=None,
            )
        return Step(state=IDLE, ready=replace(state.command, payload=buffer))

    command = parse_command(raw_line.strip(), observed)
    if isinstance(command, UpdateCommand) and command.line_count > 0 and can_collect(command):
        return Step(state=Collecting(remaining=command.line_count, command=command), ready=None)
    return Step(state=state, ready=command)
