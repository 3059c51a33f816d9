"""Single-letter commands accepted at the review prompt."""

from __future__ import annotations

from enum import StrEnum


class Command(StrEnum):
    NEXT = "n"
    SKIP = "s"
    PREVIOUS = "p"
    MERCHANT = "m"
    NOTES = "o"
    CATEGORY = "c"
    BULK = "b"
    TAGS = "t"
    DATE = "d"
    RELOAD = "r"
    LINK = "l"
    FIND = "f"
    QUIT = "q"
    HELP = "h"


_ALIASES: dict[str, Command] = {"?": Command.HELP}

HELP_LINES: tuple[tuple[Command, str], ...] = (
    (Command.NEXT, "Mark the current transaction as reviewed and go to the next transaction"),
    (Command.SKIP, "Skip to the next transaction"),
    (Command.PREVIOUS, "Go to the previous transaction"),
    (Command.MERCHANT, "Set the merchant for this transaction"),
    (Command.NOTES, "Set the notes for this transaction"),
    (Command.CATEGORY, "Set the category for this transaction"),
    (Command.BULK, "Bulk set transaction categories"),
    (Command.TAGS, "Set the tags for this transaction"),
    (Command.DATE, "Set the date (when) for this transaction"),
    (Command.RELOAD, "Force reload this transaction"),
    (Command.LINK, "Open a link for this transaction"),
    (Command.FIND, "Find transactions for a given description"),
    (Command.QUIT, "Quit"),
)


def parse_command(text: str | None) -> tuple[Command, bool]:
    """Map raw input to a command.

    Returns ``(command, recognised)``. Anything unrecognised (including empty
    input) maps to :attr:`Command.HELP` with ``recognised=False``.
    """

    token = (text or "").strip()
    if token in _ALIASES:
        return _ALIASES[token], True
    try:
        return Command(token), True
    except ValueError:
        return Command.HELP, False


def help_text() -> str:
    lines = ["Available Commands:"]
    lines.extend(f"  {cmd.value}\t{desc}" for cmd, desc in HELP_LINES)
    return "\n".join(lines)


__all__ = ["Command", "HELP_LINES", "help_text", "parse_command"]
