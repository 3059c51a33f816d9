"""On-disk cache for the API session token.

File shape: ``{"token": "<string>"}``. Writes go to ``<path>.tmp`` first and
are then moved into place with ``os.replace``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from .logging_setup import get_logger

_logger = get_logger("monarch_review.token_cache")


def load_token(path: Path) -> str | None:
    """Return the cached token, or ``None`` when absent or unreadable."""

    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _logger.warning("Ignoring unreadable token cache %s: %s", path, e)
        return None
    token = data.get("token") if isinstance(data, dict) else None
    if not isinstance(token, str) or not token.strip():
        return None
    return token


def save_token(path: Path, token: str) -> None:
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps({"token": token}), encoding="utf-8")
    os.replace(tmp, path)


def clear_token(path: Path) -> bool:
    """Delete the cache file; return whether one existed."""

    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
