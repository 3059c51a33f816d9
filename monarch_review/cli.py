"""Console entry point for ``monarch-review``.

Loads a local ``.env`` with ``python-dotenv`` (existing environment wins),
configures logging, authenticates, fetches the transactions flagged for
review and hands them to :func:`monarch_review.review.run_review`.
"""

from __future__ import annotations

import webbrowser
from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .client import MonarchClient
from .config import Settings
from .errors import AuthError, MonarchError, TransportError
from .logging_setup import configure_logging, get_logger
from .models import SearchFilters
from .review import Prompter, ReviewContext, run_review
from .session import ReviewSession
from .term_ui import TerminalPrompter
from .token_cache import clear_token

_logger = get_logger("monarch_review.cli")

REVIEW_FILTERS = SearchFilters(needs_review=True, needs_review_unassigned=True)

app = typer.Typer(
    name="monarch-review",
    help="Review and bulk-edit Monarch Money transactions that need review.",
    add_completion=False,
)


def run(
    settings: Settings,
    *,
    console: Console,
    client: MonarchClient | None = None,
    prompter: Prompter | None = None,
    open_url: Callable[[str], Any] = webbrowser.open,
) -> int:
    """Run one review pass and return the process exit status."""

    client = client or MonarchClient.from_settings(settings)
    try:
        client.authenticate(settings.username, settings.password)
    except AuthError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1

    try:
        transactions = client.search_transactions(REVIEW_FILTERS)
    except TransportError as e:
        if e.status == 401 and client.token_from_cache:
            clear_token(settings.token_cache_path)
            console.print(
                "[red]Error:[/red] the cached token was rejected and has been removed. "
                "Run again to log in."
            )
        else:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    except MonarchError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1

    _logger.info("Loaded %d transactions to review", len(transactions))
    ctx = ReviewContext(
        client=client,
        prompter=prompter or TerminalPrompter(),
        print_fn=console.print,
        links_path=settings.links_path,
        open_url=open_url,
    )
    run_review(ctx, ReviewSession(transactions))
    console.print("done")
    return 0


@app.command()
def main() -> None:
    """Walk through every transaction that needs review.

    Credentials come from ``MONARCH_USERNAME``/``MONARCH_PASSWORD`` (or a
    ``.env`` file) unless a cached token exists.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    console = Console()
    configure_logging(console=console)
    code = run(Settings.from_env(), console=console)
    if code:
        raise typer.Exit(code)


if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    app()
