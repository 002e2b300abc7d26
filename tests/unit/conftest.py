"""Shared fixtures for unit tests."""

from __future__ import annotations

import pytest

from tests.helpers.ansi import RecordingRenderer


@pytest.fixture
def recording() -> RecordingRenderer:
    """A fresh xterm renderer that records everything it emits."""
    return RecordingRenderer()
