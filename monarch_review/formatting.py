"""Presentation helpers for the review loop.

Everything here is pure: functions take models/values and return ``rich``
markup strings for ``Console.print``. User-provided text (merchant names,
notes, category and tag names) is escaped so brackets render literally.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date as _date

from rich.markup import escape

from .models import Category, Tag, Transaction

UNCATEGORIZED = "Uncategorized"
PREVIOUS_CATEGORY_SAMPLE = 50
PREVIOUS_CATEGORY_TOP = 2
NOTES_PREVIEW_CHARS = 50

_NEWLINES_RE = re.compile(r"\n+")


def format_currency(amount: float) -> str:
    """US-style currency string, e.g. ``-$1,234.50``."""

    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_amount(amount: float) -> str:
    color = "green" if amount > 0 else "magenta"
    return f"[{color}]{format_currency(amount)}[/{color}]"


def parse_date(value: str | _date) -> _date:
    if isinstance(value, _date):
        return value
    # Accept full timestamps as well as plain dates.
    return _date.fromisoformat(value[:10])


def format_date_plain(value: str | _date) -> str:
    """``ddd MMM D YYYY``, e.g. ``Tue Jan 2 2024``."""

    d = parse_date(value)
    return f"{d:%a %b} {d.day} {d.year}"


def format_date(value: str | _date) -> str:
    return f"[bold cyan]{format_date_plain(value)}[/bold cyan]"


def category_label(category: Category) -> str:
    """Unstyled ``icon  name`` label used for counting and pickers."""

    return f"{category.icon}  {category.name}"


def format_category(category: Category) -> str:
    style = "bold underline yellow" if category.name == UNCATEGORIZED else "yellow"
    return f"{escape(category.icon)}  [{style}]{escape(category.name)}[/{style}]"


def format_tags(tags: Sequence[Tag]) -> str:
    if not tags:
        return "[grey50]none[/grey50]"
    joined = ", ".join(f"🏷️ {escape(t.name)}" for t in tags)
    return f"[yellow]{joined}[/yellow]"


def previous_category_hint(labels: Iterable[str]) -> str:
    """Summarize how earlier transactions were categorized.

    Counts each label, drops labels seen only once, orders by descending count
    (first occurrence breaks ties) and keeps the top two:
    ``["A", "A", "B", "A", "C", "C"]`` gives ``"A x3, C x2"``.
    """

    counts = Counter(labels)
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    kept = [(label, n) for label, n in ranked if n > 1][:PREVIOUS_CATEGORY_TOP]
    return ", ".join(f"{label} x{n}" for label, n in kept)


def previous_categories(transactions: Iterable[Transaction]) -> str:
    sample = list(transactions)[:PREVIOUS_CATEGORY_SAMPLE]
    return previous_category_hint(category_label(t.category) for t in sample)


def _one_line(text: str | None, limit: int | None = None) -> str:
    s = _NEWLINES_RE.sub(" ", text or "")
    return s[:limit] if limit is not None else s


def format_search_result(txn: Transaction) -> str:
    return (
        f"{format_date(txn.date)}  {format_amount(txn.amount)}  "
        f"[yellow]{escape(txn.merchant.name)}[/yellow] {format_category(txn.category)} "
        f"{format_tags(txn.tags)} "
        f"[grey50]{escape(_one_line(txn.notes, NOTES_PREVIEW_CHARS))}[/grey50]"
    )


def format_search_result_plain(txn: Transaction) -> str:
    """Unstyled one-line row for pickers that cannot render markup."""

    tags = ", ".join(t.name for t in txn.tags) or "none"
    return (
        f"{format_date_plain(txn.date)}  {format_currency(txn.amount)}  "
        f"{txn.merchant.name}  {category_label(txn.category)}  [{tags}]  "
        f"{_one_line(txn.notes, NOTES_PREVIEW_CHARS)}"
    ).rstrip()


def render_transaction(
    txn: Transaction, *, position: int, total: int, previous_hint: str = ""
) -> str:
    """Multi-line block shown above the command prompt.

    ``position`` is zero-based; the header shows it one-based.
    """

    headline = f"{format_date(txn.date)}  {format_amount(txn.amount)}  "
    headline += f"[yellow]{escape(txn.merchant.name)}[/yellow] "
    if txn.hide_from_reports:
        headline += "[red]Hidden[/red] "
    if txn.notes:
        headline += f"[grey50]{escape(_NEWLINES_RE.sub(chr(10), txn.notes))}[/grey50]"

    category_line = f"   [bold]Category[/bold]: {format_category(txn.category)}"
    if previous_hint:
        category_line += f" [grey50](prev. txns.: {escape(previous_hint)})[/grey50]"

    lines = [
        f"========== {position + 1} of {total} ==========",
        headline.rstrip(),
        category_line,
        f"   [bold]Tags[/bold]: {format_tags(txn.tags)}",
        f"   [grey50]{escape(txn.account.display_name)}[/grey50]",
        f"   [grey50]{escape(txn.original_date or '')}[/grey50]\t"
        f"[grey50]{escape(txn.plaid_name)}[/grey50]",
    ]
    return "\n".join(lines)


def format_merchant_counts(counts: Iterable[tuple[str, int]]) -> str:
    lines = ["========== Transactions To Review - Count by Merchant =========="]
    lines.extend(f"  {n}\t{escape(name)}" for name, n in counts)
    return "\n".join(lines)


__all__ = [
    "category_label",
    "format_amount",
    "format_category",
    "format_currency",
    "format_date",
    "format_date_plain",
    "format_merchant_counts",
    "format_search_result",
    "format_search_result_plain",
    "format_tags",
    "parse_date",
    "previous_categories",
    "previous_category_hint",
    "render_transaction",
]
