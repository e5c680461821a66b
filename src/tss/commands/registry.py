"""Command handler registration and dispatch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

CommandHandler = Callable[[Any], object]


@dataclass(slots=True, frozen=True)
class CommandError(Exception):
    """Represents deterministic command dispatch failures."""

    code: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class CommandRegistry:
    """In-memory handler registry keyed by command name, in insertion order."""

    _handlers: dict[str, CommandHandler] = field(default_factory=dict)

    def register(self, name: str, handler: CommandHandler) -> None:
        """Register a named handler."""
        self._handlers[name] = handler

    def get(self, name: str) -> CommandHandler | None:
        """Return a handler by name."""
        return self._handlers.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered command names in registration order."""
        return tuple(self._handlers.keys())

    def dispatch(self, command: Any) -> object:
        """Run the handler registered under ``command.name``."""
        handler = self.get(command.name)
        if handler is None:
            raise CommandError(code="UNKNOWN_COMMAND", message=f"Unknown command: {command.name}")
        return handler(command)
