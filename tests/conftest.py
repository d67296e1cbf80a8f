from __future__ import annotations

import random
from datetime import datetime

import pytest


class FixedClock:
    """Clock pinned to a single instant."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 15, 10, 30, 0))


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory with no biblib or Zotero variables set."""
    for variable in ("BIBLIB_CONFIG", "BIBLIB_VAULT", "ZOTERO_LIBRARY_ID", "ZOTERO_LIBRARY_TYPE", "ZOTERO_API_KEY", "ZOTERO_LOCAL"):
        monkeypatch.delenv(variable, raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setattr("biblib.infrastructure.config.environment.load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch
