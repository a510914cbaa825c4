"""
Unit tests for SessionRegistry.

Tests verify that only one email change session is active at a time
and that discarding a session tears down its poller.
"""

from unittest.mock import AsyncMock

import pytest

from src.domain.exceptions import NoActiveSession
from src.domain.ports import SessionState
from src.domain.sessions import SessionRegistry
from tests.helpers import NEW_EMAIL, PASSWORD, open_flow

pytestmark = pytest.mark.anyio


def make_registry(provider: AsyncMock) -> SessionRegistry:
    async def factory():
        return await open_flow(provider)

    return SessionRegistry(factory)


class TestSessionRegistry:
    """Tests for opening, replacing and discarding sessions."""

    async def test_no_session_initially(self, provider: AsyncMock) -> None:
        registry = make_registry(provider)

        with pytest.raises(NoActiveSession):
            _ = registry.current

    async def test_open_returns_current(self, provider: AsyncMock) -> None:
        registry = make_registry(provider)

        flow = await registry.open()

        assert registry.current is flow
        assert flow.state == SessionState.EDITING

    async def test_open_discards_previous_session(self, provider: AsyncMock) -> None:
        """A new session closes the old one and stops its poller."""
        registry = make_registry(provider)
        first = await registry.open()
        await first.submit(NEW_EMAIL, PASSWORD)
        assert first.polling is True

        second = await registry.open()

        assert first.closed is True
        assert first.polling is False
        assert registry.current is second
        assert second.state == SessionState.EDITING

    async def test_discard(self, provider: AsyncMock) -> None:
        registry = make_registry(provider)
        flow = await registry.open()

        await registry.discard()
        await registry.discard()

        assert flow.closed is True
        with pytest.raises(NoActiveSession):
            _ = registry.current

    async def test_finalized_session_is_not_current(self, provider: AsyncMock) -> None:
        """A session closed by finalize no longer counts as active."""
        registry = make_registry(provider)
        flow = await registry.open()
        await flow.close()

        with pytest.raises(NoActiveSession):
            _ = registry.current

    async def test_aclose(self, provider: AsyncMock) -> None:
        registry = make_registry(provider)
        flow = await registry.open()

        await registry.aclose()

        assert flow.closed is True
