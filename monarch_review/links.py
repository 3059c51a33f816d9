"""User-defined links opened for the current transaction.

``links.json`` maps a label to a URL template, for example::

    {"Search receipts": "https://mail.example.com/#search/{plaidName}"}

Only three placeholders are recognised: ``{plaidName}``, ``{date}`` and
``{transactionId}``. Values are percent-encoded before substitution and any
other braces in the template are left untouched.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from urllib.parse import quote

from .errors import LinksFileError
from .models import Transaction

type LinkMap = dict[str, str]

PLACEHOLDERS: tuple[str, ...] = ("plaidName", "date", "transactionId")
_PLACEHOLDER_RE = re.compile(r"\{(" + "|".join(PLACEHOLDERS) + r")\}")

# Characters ``encodeURIComponent`` leaves alone; everything else is escaped.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def load_links(path: Path) -> LinkMap:
    """Read the links file; a missing file yields an empty mapping."""

    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise LinksFileError(f"Unable to read {path}: {e}") from e
    if not isinstance(data, dict):
        raise LinksFileError(f"{path} must contain a JSON object of label -> URL template")
    bad = [k for k, v in data.items() if not isinstance(v, str)]
    if bad:
        raise LinksFileError(f"{path}: URL templates must be strings (check {', '.join(bad)})")
    return dict(data)


def placeholder_values(transaction: Transaction) -> dict[str, str]:
    return {
        "plaidName": transaction.plaid_name,
        "date": transaction.date,
        "transactionId": transaction.id,
    }


def substitute(template: str, values: dict[str, str]) -> str:
    """Replace known placeholders with percent-encoded ``values``."""

    encoded = {k: quote(values.get(k, ""), safe=_URI_COMPONENT_SAFE) for k in PLACEHOLDERS}
    return _PLACEHOLDER_RE.sub(lambda m: encoded[m.group(1)], template)


def resolve_link(template: str, transaction: Transaction) -> str:
    return substitute(template, placeholder_values(transaction))


__all__ = [
    "LinkMap",
    "PLACEHOLDERS",
    "load_links",
    "placeholder_values",
    "resolve_link",
    "substitute",
]
