"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _isolated_store_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host TABLESTORE_* variables from leaking into tests."""
    for variable in (
        "TABLESTORE_DATA_ROOT",
        "TABLESTORE_KEY_PREFIX",
        "TABLESTORE_CODEC",
        "TABLESTORE_MEDIUM",
        "TABLESTORE_S3_BUCKET",
        "TABLESTORE_S3_REGION",
        "TABLESTORE_S3_PROFILE",
    ):
        monkeypatch.delenv(variable, raising=False)
