"""Shared test fixtures for the skimline test suite."""

import os

import pytest

from skimline.config import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's SKIM_* variables out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("SKIM_"):
            monkeypatch.delenv(name)


@pytest.fixture
def settings() -> Settings:
    return Settings(tmux=False)
