"""Shared test fixtures for the tripguard test suite.

The _isolate_tripguard_config fixture (autouse) prevents TripguardConfig
from reading the user's real ~/.tripguard/config.json during tests.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tripguard.config.schema import TripguardConfig


class FakeClock:
    """Millisecond epoch clock that only moves when told to."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0) -> None:
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += seconds * 1000


@pytest.fixture(autouse=True)
def _isolate_tripguard_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point TripguardConfig's json_file at an empty temp file for every test."""
    empty_config = tmp_path / "tripguard_test_config.json"
    empty_config.write_text("{}", encoding="utf-8")
    monkeypatch.setitem(TripguardConfig.model_config, "json_file", empty_config)
    for name in list(os.environ):
        if name.startswith("TRIPGUARD_"):
            monkeypatch.delenv(name)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> TripguardConfig:
    return TripguardConfig()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Create a temporary config file path."""
    path = tmp_path / "config.json"
    path.write_text("{}", encoding="utf-8")
    return path
