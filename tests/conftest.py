"""Pytest configuration shared by the whole suite."""

from __future__ import annotations

import pytest

from tests import _ensure_repo_on_path


def pytest_configure(config: pytest.Config) -> None:
    """Make the repository importable before any test module imports ``freet``."""

    _ensure_repo_on_path()
