# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Patch the async sleeps so backoff and batch delays run instantly."""
    with patch("src.services.retry._sleep", new=AsyncMock()), patch(
        "src.services.search_pipeline._sleep", new=AsyncMock()
    ):
        yield
