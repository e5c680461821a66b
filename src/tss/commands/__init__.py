"""Command grammar, dispatch and result encoding."""

from .grammar import GRAMMAR, Command, UnknownCommand, UpdateCommand, parse_command
from .registry import CommandError, CommandHandler, CommandRegistry

__all__ = [
    "Command",
    "CommandError",
    "CommandHandler",
    "CommandRegistry",
    "GRAMMAR",
    "UnknownCommand",
    "UpdateCommand",
    "parse_command",
]
