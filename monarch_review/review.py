"""Interactive review loop for transactions that need review.

One iteration per visible transaction: render it, read a single-letter
command, run the matching handler. Handlers mutate the
:class:`~monarch_review.session.ReviewSession` (replacing the current item
with the server's copy, or moving the cursor).

A :class:`~monarch_review.errors.MonarchError` raised by a handler is logged
and the session is left as it was; the loop then re-renders the same
transaction. :class:`~monarch_review.errors.ReviewAborted` (Ctrl-C/EOF at a
prompt) or a Ctrl-C during a request ends the pass.
"""

from __future__ import annotations

import webbrowser
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Protocol

from rich.markup import escape

from .client import MonarchClient
from .commands import Command, help_text, parse_command
from .config import DEFAULT_LINKS_PATH
from .errors import MonarchError, ReviewAborted
from .formatting import (
    format_merchant_counts,
    format_search_result,
    format_search_result_plain,
    parse_date,
    previous_categories,
    render_transaction,
)
from .links import LinkMap, load_links, resolve_link
from .logging_setup import get_logger
from .models import (
    BulkTransactionUpdates,
    Category,
    Merchant,
    SearchFilters,
    SearchOrder,
    Tag,
    Transaction,
    TransactionUpdates,
)
from .session import ReviewSession
from .term_ui import Choice

_logger = get_logger("monarch_review.review")

RELATED_SEARCH_LIMIT = 50
REIMBURSABLE_PREFIX = "Reimbursable"


class Prompter(Protocol):
    def command(self) -> str: ...

    def text(self, message: str, *, default: str = "") -> str: ...

    def notes(self, default: str = "") -> str: ...

    def choose(
        self, message: str, choices: Sequence[Choice], *, default: Choice | None = None
    ) -> Any | None: ...

    def choose_many(
        self, message: str, choices: Sequence[Choice], *, selected: Sequence[Any] = ()
    ) -> list[Any] | None: ...

    def merchant(
        self, *, current: str, original: str, search: Callable[[str], Sequence[Merchant]]
    ) -> str | None: ...

    def ask_date(self, message: str, *, default: date) -> date | None: ...


@dataclass
class ReviewContext:
    """Everything a handler needs, built once at startup.

    Categories, tags and links are loaded on first use and then kept for the
    life of the context.
    """

    client: MonarchClient
    prompter: Prompter
    print_fn: Callable[..., None]
    links_path: Path = Path(DEFAULT_LINKS_PATH)
    open_url: Callable[[str], Any] = webbrowser.open
    _categories: dict[str, Category] | None = field(default=None, repr=False)
    _tags: dict[str, Tag] | None = field(default=None, repr=False)
    _links: LinkMap | None = field(default=None, repr=False)

    def categories(self) -> dict[str, Category]:
        if self._categories is None:
            self._categories = {c.id: c for c in self.client.get_categories()}
        return self._categories

    def tags(self) -> dict[str, Tag]:
        if self._tags is None:
            self._tags = {t.id: t for t in self.client.get_tags()}
        return self._tags

    def links(self) -> LinkMap:
        if self._links is None:
            self._links = load_links(self.links_path)
        return self._links


type Handler = Callable[[ReviewContext, ReviewSession], None]


# ----------------------------------------------------------------------------
# Choice builders
# ----------------------------------------------------------------------------


def _category_choice(category: Category) -> Choice:
    return Choice(
        value=category.id,
        title=f"{category.icon}  {category.qualified_name}",
        name=category.name,
    )


def category_choices(categories: dict[str, Category]) -> list[Choice]:
    return sorted(
        (_category_choice(c) for c in categories.values()),
        key=lambda ch: ch.title.split("  ", 1)[-1],
    )


def tag_choices(tags: dict[str, Tag]) -> list[Choice]:
    return sorted((Choice(t.id, t.name, t.name) for t in tags.values()), key=lambda c: c.title)


def _prompt_category(ctx: ReviewContext, initial_id: str | None = None) -> Category | None:
    categories = ctx.categories()
    choices = category_choices(categories)
    default = next((c for c in choices if c.value == initial_id), None)
    chosen = ctx.prompter.choose("Category: ", choices, default=default)
    return categories.get(chosen) if chosen is not None else None


def _prompt_tags(ctx: ReviewContext, initial_ids: Sequence[str] = ()) -> list[Tag] | None:
    tags = ctx.tags()
    chosen = ctx.prompter.choose_many("Tags: ", tag_choices(tags), selected=list(initial_ids))
    if chosen is None:
        return None
    return [tags[i] for i in chosen if i in tags]


def _search_related(ctx: ReviewContext, initial_term: str) -> list[Transaction]:
    """Prompt for a search term and return matches, newest first."""

    term = ctx.prompter.text("Search transactions: ", default=initial_term)
    results = ctx.client.search_transactions(
        SearchFilters(search=term), SearchOrder.CHRONOLOGICAL, RELATED_SEARCH_LIMIT
    )
    return list(reversed(results))


def _save(ctx: ReviewContext, session: ReviewSession, updates: TransactionUpdates) -> None:
    txn = session.current
    _logger.info("Saving transaction %s...", txn.id)
    session.replace_current(ctx.client.update_transaction(txn, updates))


# ----------------------------------------------------------------------------
# Handlers
# ----------------------------------------------------------------------------


def handle_next(ctx: ReviewContext, session: ReviewSession) -> None:
    _logger.info("Marking as reviewed and going to next transaction...")
    _save(ctx, session, TransactionUpdates(reviewed=True))
    session.advance()


def handle_skip(ctx: ReviewContext, session: ReviewSession) -> None:
    _logger.info("Skipping to next transaction...")
    session.advance()


def handle_previous(ctx: ReviewContext, session: ReviewSession) -> None:
    _logger.info("Going to previous transaction...")
    session.retreat()


def handle_merchant(ctx: ReviewContext, session: ReviewSession) -> None:
    txn = session.current
    name = ctx.prompter.merchant(
        current=txn.merchant.name, original=txn.plaid_name, search=ctx.client.find_merchants
    )
    if name is None:
        return
    _logger.info('Updating merchant to "%s"', name)
    _save(ctx, session, TransactionUpdates(name=name))


def handle_notes(ctx: ReviewContext, session: ReviewSession) -> None:
    notes = ctx.prompter.notes(session.current.notes or "")
    _logger.info("Updating notes to %r", notes)
    _save(ctx, session, TransactionUpdates(notes=notes))


def handle_category(ctx: ReviewContext, session: ReviewSession) -> None:
    category = _prompt_category(ctx, session.current.category.id)
    if category is None:
        return
    hide = True if category.name.startswith(REIMBURSABLE_PREFIX) else None
    _save(ctx, session, TransactionUpdates(category=category.id, hide_from_reports=hide))


def handle_tags(ctx: ReviewContext, session: ReviewSession) -> None:
    txn = session.current
    tags = _prompt_tags(ctx, [t.id for t in txn.tags])
    if tags is None:
        return
    _logger.info("Updating tags for transaction %s...", txn.id)
    session.replace_current(ctx.client.set_transaction_tags(txn, [t.id for t in tags]))


def handle_date(ctx: ReviewContext, session: ReviewSession) -> None:
    new_date = ctx.prompter.ask_date("Date: ", default=parse_date(session.current.date))
    if new_date is None:
        return
    _save(ctx, session, TransactionUpdates(date=new_date.isoformat()))


def handle_reload(ctx: ReviewContext, session: ReviewSession) -> None:
    session.replace_current(ctx.client.get_transaction(session.current.id))


def handle_find(ctx: ReviewContext, session: ReviewSession) -> None:
    results = _search_related(ctx, session.current.merchant.name)
    if not results:
        ctx.print_fn("[red]No results found[/red]")
        return
    for txn in results:
        ctx.print_fn(format_search_result(txn))


def _bulk_apply(
    ctx: ReviewContext,
    ids: list[str],
    updates: BulkTransactionUpdates,
    what: str,
    patch: Callable[[], int],
) -> None:
    _logger.info("Updating %s for transactions %s...", what, ", ".join(ids))
    try:
        result = ctx.client.bulk_update_transactions(ids, updates)
    except MonarchError as e:
        _logger.error("Error saving transactions - please try again. Error: %s", e)
        return
    if result.affected_count != len(ids):
        _logger.warning(
            "Server reported %d of %d transactions updated", result.affected_count, len(ids)
        )
    patch()


def handle_bulk(ctx: ReviewContext, session: ReviewSession) -> None:
    results = _search_related(ctx, session.current.merchant.name)
    if not results:
        ctx.print_fn("No search results found.")
        return
    choices = [
        Choice(t.id, format_search_result_plain(t), t.merchant.name) for t in reversed(results)
    ]
    ids = ctx.prompter.choose_many("Transactions: ", choices)
    if not ids:
        ctx.print_fn("No transactions selected.")
        return

    category = _prompt_category(ctx)
    if category is not None:
        _bulk_apply(
            ctx,
            ids,
            BulkTransactionUpdates(category_id=category.id),
            "categories",
            lambda: session.patch_category(ids, category),
        )

    tags = _prompt_tags(ctx)
    if tags:
        _bulk_apply(
            ctx,
            ids,
            BulkTransactionUpdates(tags=[t.id for t in tags]),
            "tags",
            lambda: session.patch_tags(ids, tags),
        )


def handle_link(ctx: ReviewContext, session: ReviewSession) -> None:
    links = ctx.links()
    if not links:
        ctx.print_fn(
            f"[red]The file `{escape(str(ctx.links_path))}` does not exist. "
            "Create one based on `links.json.sample`.[/red]"
        )
        return
    label = ctx.prompter.choose("Link Type: ", [Choice(k, k, k) for k in links])
    if label is None:
        return
    url = resolve_link(links[label], session.current)
    _logger.info("Opening %s", url)
    ctx.open_url(url)


def handle_quit(ctx: ReviewContext, session: ReviewSession) -> None:
    _logger.info("Exiting...")
    session.finish()


def handle_help(ctx: ReviewContext, session: ReviewSession) -> None:
    ctx.print_fn(help_text())


HANDLERS: dict[Command, Handler] = {
    Command.NEXT: handle_next,
    Command.SKIP: handle_skip,
    Command.PREVIOUS: handle_previous,
    Command.MERCHANT: handle_merchant,
    Command.NOTES: handle_notes,
    Command.CATEGORY: handle_category,
    Command.BULK: handle_bulk,
    Command.TAGS: handle_tags,
    Command.DATE: handle_date,
    Command.RELOAD: handle_reload,
    Command.LINK: handle_link,
    Command.FIND: handle_find,
    Command.QUIT: handle_quit,
    Command.HELP: handle_help,
}


# ----------------------------------------------------------------------------
# Orchestration
# ----------------------------------------------------------------------------


def show_transaction(ctx: ReviewContext, session: ReviewSession) -> None:
    txn = session.current
    try:
        prior = ctx.client.search_transactions(
            SearchFilters(search=txn.merchant.name), SearchOrder.CHRONOLOGICAL, RELATED_SEARCH_LIMIT
        )
        hint = previous_categories(prior)
    except MonarchError as e:
        _logger.warning("Unable to load previous transactions: %s", e)
        hint = ""
    ctx.print_fn(
        render_transaction(txn, position=session.cursor, total=len(session), previous_hint=hint)
    )


def dispatch(ctx: ReviewContext, session: ReviewSession, command: Command) -> None:
    """Run one command; remote failures are logged once and leave state untouched."""

    try:
        HANDLERS[command](ctx, session)
    except MonarchError as e:
        _logger.error("Command %r failed - please try again. Error: %s", command.value, e)


def run_review(ctx: ReviewContext, session: ReviewSession) -> ReviewSession:
    """Drive the review loop until the session is finished."""

    ctx.print_fn(format_merchant_counts(session.merchant_counts()))
    while not session.done:
        try:
            show_transaction(ctx, session)
            raw = ctx.prompter.command()
            command, recognised = parse_command(raw)
            if not recognised:
                ctx.print_fn(f'Unknown command "{escape(raw or "")}"')
            dispatch(ctx, session, command)
        except (ReviewAborted, KeyboardInterrupt):
            # Ctrl-C can also land while a request is in flight.
            _logger.info("Input interrupted; ending review.")
            session.finish()
    return session


__all__ = [
    "HANDLERS",
    "Prompter",
    "ReviewContext",
    "category_choices",
    "dispatch",
    "run_review",
    "show_transaction",
    "tag_choices",
]
