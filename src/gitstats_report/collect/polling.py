"""Polling for results that GitHub computes asynchronously.

Some endpoints (contributor statistics in particular) answer "still
computing" until a background job finishes. The poller re-probes on a fixed
interval and only ever hands a finished result to its caller.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from gitstats_report.models import Pending

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[object]]


class PollingExhausted(Exception):
    """Raised when a result is still pending after the allowed attempts."""

    def __init__(self, label: str, attempts: int) -> None:
        self.label = label
        self.attempts = attempts
        super().__init__(f"{label or 'Result'} still pending after {attempts} attempts")


class PollCancelled(Exception):
    """Raised when the caller abandons a poll through its cancel event."""


class AsyncResultPoller:
    """Re-probes a resource until it stops reporting Pending.

    Args:
        interval: Seconds to wait between probes.
        max_attempts: Probe limit; None polls until ready or cancelled.
        sleep: Awaitable delay function, replaceable in tests.
    """

    DEFAULT_INTERVAL = 0.5

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        max_attempts: int | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._interval = interval
        self._max_attempts = max_attempts
        self._sleep = sleep

    async def wait(
        self,
        probe: Callable[[], Awaitable[Pending | T]],
        cancel: asyncio.Event | None = None,
        label: str = "",
    ) -> T:
        """Probe until the result is no longer Pending.

        Args:
            probe: Coroutine function performing one request.
            cancel: Event that abandons the poll when set.
            label: Resource name used in logs and errors.

        Returns:
            The first non-pending result.

        Raises:
            PollCancelled: If ``cancel`` is set before a result is ready.
            PollingExhausted: If ``max_attempts`` probes all came back pending.
        """
        attempt = 0
        while True:
            self._check_cancelled(cancel, label)
            attempt += 1
            result = await self._probe(probe, cancel, label)
            if not isinstance(result, Pending):
                if attempt > 1:
                    logger.debug("%s ready after %d attempts", label, attempt)
                return result

            if self._max_attempts is not None and attempt >= self._max_attempts:
                raise PollingExhausted(label, attempt)

            logger.debug(
                "%s pending (attempt %d), retrying in %.2fs", label, attempt, self._interval
            )
            await self._pause(cancel)

    def _check_cancelled(self, cancel: asyncio.Event | None, label: str) -> None:
        if cancel is not None and cancel.is_set():
            raise PollCancelled(f"Polling for {label or 'result'} was cancelled")

    async def _probe(
        self,
        probe: Callable[[], Awaitable[Pending | T]],
        cancel: asyncio.Event | None,
        label: str,
    ) -> Pending | T:
        """Run one probe, abandoning it if ``cancel`` is set while it is in flight."""
        if cancel is None:
            return await probe()

        task = await self._until_cancelled(probe(), cancel)
        if task is None:
            logger.debug("%s probe abandoned in flight", label)
            raise PollCancelled(f"Polling for {label or 'result'} was cancelled")
        return task.result()

    async def _pause(self, cancel: asyncio.Event | None) -> None:
        """Wait one interval, returning early if ``cancel`` is set."""
        if cancel is None:
            await self._sleep(self._interval)
            return
        await self._until_cancelled(self._sleep(self._interval), cancel)

    @staticmethod
    async def _until_cancelled(work: Awaitable[T], cancel: asyncio.Event) -> "asyncio.Future[T] | None":
        """Run ``work`` until it finishes or ``cancel`` is set.

        Neither task outlives the call. Returns the finished task, or None
        when ``work`` was cancelled first.
        """
        task = asyncio.ensure_future(work)
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for running in (task, waiter):
                if not running.done():
                    running.cancel()
            await asyncio.gather(task, waiter, return_exceptions=True)
        return None if task.cancelled() else task
