"""Pytest configuration for test isolation.

The CLI reads ``MONARCH_*`` variables and a ``.env`` from the working
directory, and the client caches its token relative to it. Each test runs in
its own temporary directory with those variables cleared so a developer's real
credentials or cache never leak into a run.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("MONARCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def printed() -> list[str]:
    """Collects everything the review loop prints."""

    return []
