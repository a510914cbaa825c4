"""
Session registry - one email change attempt at a time.

Opening a new session tears down the previous one, poller included.
"""

import logging
from collections.abc import Awaitable, Callable

from .email_change import EmailChangeFlow
from .exceptions import NoActiveSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns the single active EmailChangeFlow."""

    def __init__(self, factory: Callable[[], Awaitable[EmailChangeFlow]]) -> None:
        """
        Initialize registry.

        Args:
            factory: Coroutine function returning a started flow
        """
        self._factory = factory
        self._current: EmailChangeFlow | None = None

    @property
    def current(self) -> EmailChangeFlow:
        if self._current is None or self._current.closed:
            raise NoActiveSession("No email change in progress")
        return self._current

    async def open(self) -> EmailChangeFlow:
        """Discard any previous session and open a new one."""
        await self.discard()
        self._current = await self._factory()
        return self._current

    async def discard(self) -> None:
        """Close and forget the active session, if any."""
        flow, self._current = self._current, None
        if flow is not None and not flow.closed:
            logger.info("Discarding email change session")
            await flow.close()

    async def aclose(self) -> None:
        await self.discard()
