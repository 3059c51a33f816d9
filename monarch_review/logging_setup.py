"""Logging for the ``monarch_review`` package.

Log records share the terminal with rich output and prompt_toolkit prompts,
so the CLI routes them through a :class:`rich.logging.RichHandler` bound to
its own :class:`~rich.console.Console`. The default level is ``WARNING``: the
per-action narration (saving, skipping) stays at ``INFO`` and only shows up
when ``MONARCH_REVIEW_LOG_LEVEL`` asks for it. Failures are logged once, at
``ERROR``, and rendered in red by the handler.

Modules call ``get_logger("monarch_review.<module>")`` and never attach
handlers themselves.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "monarch_review"
LOG_LEVEL_ENV = "MONARCH_REVIEW_LOG_LEVEL"
DEFAULT_LEVEL = logging.WARNING


def resolve_level(level: int | str | None = None) -> int:
    """``level`` if given, else ``$MONARCH_REVIEW_LOG_LEVEL``, else ``WARNING``.

    Names are case-insensitive; unknown names fall back to the default.
    """

    raw = level if level is not None else os.getenv(LOG_LEVEL_ENV, "")
    if isinstance(raw, int):
        return raw
    name = raw.strip().upper()
    if not name:
        return DEFAULT_LEVEL
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, DEFAULT_LEVEL)


def configure_logging(
    level: int | str | None = None, *, console: Console | None = None
) -> logging.Handler:
    """Send package logs to ``console`` (stderr by default).

    Calling again replaces the previous handler, so the CLI and tests can
    reconfigure without stacking output.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    for h in list(logger.handlers):
        if isinstance(h, (logging.NullHandler, RichHandler)):
            logger.removeHandler(h)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    # Records would otherwise be printed a second time by the root logger.
    logger.propagate = False
    return handler


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["DEFAULT_LEVEL", "LOG_LEVEL_ENV", "configure_logging", "get_logger", "resolve_level"]
