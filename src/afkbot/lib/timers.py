"""Cancellable asyncio timers.

Owns the two timing shapes the bot needs: a repeating tick and a
single-slot delayed call. Both keep exactly one scheduling task per
instance, and every (re)start cancels the previous task first, so a
timer can never be running twice.

Usage:
    from afkbot.lib.timers import RepeatingTimer, TimerSlot

    async def tick() -> None:
        await do_something()

    timer = RepeatingTimer(1.0, tick)
    timer.start()
    ...
    timer.cancel()

    release = TimerSlot()
    release.schedule(0.3, release_key)  # replaces any pending call
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None] | None]
"""Sync or async callback fired by a timer."""


async def _invoke(callback: TimerCallback) -> None:
    result = callback()
    if result is not None:
        await result


class RepeatingTimer:
    """Fires *callback* every *interval* seconds until cancelled.

    Each tick runs as its own task, so a slow callback never delays the
    next tick. Deadlines missed while the loop was busy are skipped, not
    fired in a burst. A callback that raises is logged and the timer
    keeps running.
    """

    def __init__(self, interval: float, callback: TimerCallback) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._interval = interval
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[None]] = set()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        """Whether the tick task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def in_flight(self) -> int:
        """Callbacks started and not yet finished."""
        return len(self._ticks)

    def start(self) -> None:
        """Start ticking. Restarts from zero if already running."""
        self.cancel()
        self._task = asyncio.create_task(self.run())

    def cancel(self) -> bool:
        """Stop ticking and cancel running callbacks.

        Returns whether a live tick task was cancelled.
        """
        current = asyncio.current_task()
        for tick in list(self._ticks):
            if tick is not current:
                tick.cancel()
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def run(self) -> None:
        """Tick loop coroutine."""
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self._interval
        try:
            while True:
                await asyncio.sleep(max(0.0, next_at - loop.time()))
                next_at = max(next_at + self._interval, loop.time())
                tick = asyncio.create_task(self._tick())
                self._ticks.add(tick)
                tick.add_done_callback(self._ticks.discard)
        except asyncio.CancelledError:
            pass

    async def _tick(self) -> None:
        try:
            await _invoke(self._callback)
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Timer callback failed")


class TimerSlot:
    """Holds at most one pending delayed call.

    ``schedule()`` replaces whatever is pending, so repeated scheduling
    never leaves more than one outstanding timer.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        """Whether a call is waiting to fire."""
        return self._task is not None and not self._task.done()

    def schedule(self, delay: float, callback: TimerCallback) -> None:
        """Fire *callback* after *delay* seconds, replacing any pending call."""
        self.cancel()
        self._task = asyncio.create_task(self.run(delay, callback))

    def cancel(self) -> bool:
        """Drop the pending call. Returns whether one was cancelled."""
        task, self._task = self._task, None
        # A callback rescheduling its own slot must not cancel itself.
        if task is None or task.done() or task is asyncio.current_task():
            return False
        task.cancel()
        return True

    async def run(self, delay: float, callback: TimerCallback) -> None:
        """Delayed call coroutine."""
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        try:
            await _invoke(callback)
        except Exception:
            logger.exception("Delayed callback failed")
