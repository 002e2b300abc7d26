"""Shared pytest fixtures for ansiloom tests."""

from __future__ import annotations

import pytest

from ansiloom.config import get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
