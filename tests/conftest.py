"""
Shared fixtures for the config tests.
"""

import os
from logging import getLogger
from pathlib import Path
from typing import Callable

import pytest

logger = getLogger(__name__)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Drop any PROMETHEUS_* variables so defaults are really defaults.
    """
    for name in list(os.environ):
        if name.upper().startswith("PROMETHEUS_"):
            logger.debug("Removing %s from the test environment", name)
            monkeypatch.delenv(name)


@pytest.fixture
def write_catalog(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes a catalog file and gives back its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "prometheus.properties"
        path.write_text(content, encoding="utf-8")
        return path

    return _write
