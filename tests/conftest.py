"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- The anyio backend used by async tests
- An identity provider mock with a successful default script
"""

from unittest.mock import AsyncMock

import pytest

from tests.helpers import make_provider


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def provider() -> AsyncMock:
    return make_provider()
