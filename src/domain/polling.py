"""
Verification poller - cancellable periodic background task.

Runs a check coroutine on a fixed interval until the check reports
completion or the poller is stopped. Any failure inside a tick is
logged and retried on the next tick.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .exceptions import IdentityProviderError

logger = logging.getLogger(__name__)


class VerificationPoller:
    """
    Periodic asyncio task driving a verification check.

    stop() cancels the task synchronously so no tick can run to
    completion once it returns. The check itself must still re-check
    its own liveness after every await it performs.
    """

    def __init__(
        self,
        check: Callable[[], Awaitable[bool]],
        interval_seconds: float,
    ) -> None:
        """
        Initialize poller.

        Args:
            check: Coroutine function returning True when polling should end
            interval_seconds: Delay before each tick
        """
        self._check = check
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        task = self._task
        return task is not None and not task.done() and not task.cancelling()

    def start(self) -> None:
        """Spawn the polling task on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the polling task. Safe to call when not running."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def aclose(self) -> None:
        """Stop polling and wait for the task to finish."""
        task = self._task
        self.stop()
        if task is None or task is asyncio.current_task():
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        ticks = 0
        while True:
            await asyncio.sleep(self._interval)
            ticks += 1
            try:
                done = await self._check()
            except IdentityProviderError as e:
                logger.warning("Verification poll tick %d failed: %s", ticks, e)
                continue
            except Exception:
                logger.exception("Verification poll tick %d raised unexpectedly", ticks)
                continue
            if done:
                logger.info("Verification polling finished after %d tick(s)", ticks)
                return
