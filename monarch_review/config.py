"""Runtime settings resolved from the environment.

``Settings.from_env()`` reads plain environment variables; the CLI loads a
local ``.env`` with ``python-dotenv`` (without overriding existing values)
before calling it, so both sources work.

Variables
---------
- ``MONARCH_USERNAME`` / ``MONARCH_PASSWORD``: login credentials, required only
  when no cached token exists.
- ``MONARCH_BASE_URL``: API root (default ``https://api.monarchmoney.com``).
- ``MONARCH_TOKEN_CACHE``: token cache file (default ``.token_cache``).
- ``MONARCH_LINKS_PATH``: custom links file (default ``links.json``).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_BASE_URL = "https://api.monarchmoney.com"
DEFAULT_TOKEN_CACHE = ".token_cache"
DEFAULT_LINKS_PATH = "links.json"


def _env_str(env: Mapping[str, str], key: str) -> str | None:
    val = env.get(key)
    if val is None or not val.strip():
        return None
    return val.strip()


@dataclass(frozen=True, slots=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    token_cache_path: Path = Path(DEFAULT_TOKEN_CACHE)
    links_path: Path = Path(DEFAULT_LINKS_PATH)
    username: str | None = None
    password: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``env`` (defaults to ``os.environ``).

        Blank values are treated as unset. Paths are relative to the current
        working directory unless absolute.
        """

        env = os.environ if env is None else env
        base_url = _env_str(env, "MONARCH_BASE_URL") or DEFAULT_BASE_URL
        return cls(
            base_url=base_url.rstrip("/"),
            token_cache_path=Path(
                _env_str(env, "MONARCH_TOKEN_CACHE") or DEFAULT_TOKEN_CACHE
            ).expanduser(),
            links_path=Path(_env_str(env, "MONARCH_LINKS_PATH") or DEFAULT_LINKS_PATH).expanduser(),
            username=_env_str(env, "MONARCH_USERNAME"),
            # Passwords may legitimately carry surrounding spaces; keep as-is.
            password=env.get("MONARCH_PASSWORD") or None,
        )


__all__ = ["Settings", "DEFAULT_BASE_URL", "DEFAULT_TOKEN_CACHE", "DEFAULT_LINKS_PATH"]
