"""Reconnect state machine.

    IDLE --trigger--> RECONNECTING --connect ok / give up--> IDLE

A trigger while RECONNECTING is a no-op, so at most one reconnect task
exists. Each attempt waits the fixed delay, re-checks that reconnecting
is still wanted, then connects. A failed connect re-runs the same
transition straight away: flags re-checked, counter bumped, fixed delay
waited again. There is no attempt cap and the delay never grows.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from afkbot.bot.errors import ConnectFailed
from afkbot.bot.models import Statistics
from afkbot.lib.retry import retry_while

logger = logging.getLogger(__name__)


class ReconnectState(StrEnum):
    IDLE = "idle"
    RECONNECTING = "reconnecting"


class ReconnectMachine:
    """Schedules reconnects after the session drops.

    Args:
        connect: Opens a new session; raises ``ConnectFailed`` on failure.
        should_reconnect: Global flag, false after /disconnect or exit.
        auto_reconnect: Configuration flag, toggled by /toggle reconnect.
        stats: Statistics; this machine is the only writer of reconnects.
        echo: Console output callback.
        delay: Fixed seconds to wait before every attempt.
    """

    def __init__(
        self,
        *,
        connect: Callable[[], Awaitable[object]],
        should_reconnect: Callable[[], bool],
        auto_reconnect: Callable[[], bool],
        stats: Statistics,
        echo: Callable[[str], None],
        delay: float = 10.0,
    ) -> None:
        self._connect = connect
        self._should_reconnect = should_reconnect
        self._auto_reconnect = auto_reconnect
        self._stats = stats
        self._echo = echo
        self._delay = delay
        self._state = ReconnectState.IDLE
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ReconnectState:
        return self._state

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def task(self) -> asyncio.Task[None] | None:
        return self._task

    def allowed(self) -> bool:
        return self._should_reconnect() and self._auto_reconnect()

    def trigger(self, reason: str) -> bool:
        """Start a reconnect after a session loss. Returns whether one started."""
        if not self.allowed():
            logger.debug("Reconnect not wanted (reason: %s)", reason)
            return False
        if self._state is ReconnectState.RECONNECTING:
            self._echo("[Reconnect] Already reconnecting...")
            return False

        logger.info("Reconnecting after %s", reason)
        self._state = ReconnectState.RECONNECTING
        self._announce_attempt()
        self._task = asyncio.create_task(self.run(), name="reconnect")
        return True

    def cancel(self) -> bool:
        """Drop a pending reconnect. Returns whether one was pending."""
        task, self._task = self._task, None
        self._state = ReconnectState.IDLE
        if task is None or task.done() or task is asyncio.current_task():
            return False
        task.cancel()
        return True

    async def run(self) -> None:
        """Reconnect task: delay, check, connect; retry on ConnectFailed."""
        try:
            async for attempt in retry_while(
                keep_going=self.allowed,
                exceptions=(ConnectFailed,),
                on_failure=self._report_failure,
                before_retry=lambda _n: self._announce_attempt(),
            ):
                with attempt:
                    await asyncio.sleep(self._delay)
                    if not self._should_reconnect():
                        logger.info("Reconnect abandoned before connecting")
                        return
                    self._echo("[Reconnect] Connecting...")
                    await self._connect()
        except ConnectFailed:
            self._echo("[Reconnect] Giving up")
        finally:
            if self._task is asyncio.current_task():
                self._task = None
                self._state = ReconnectState.IDLE

    def _announce_attempt(self) -> None:
        self._stats.reconnects += 1
        self._echo(f"[Reconnect] Waiting {self._delay:g}s...")

    def _report_failure(self, exc: BaseException, attempt: int) -> None:
        logger.warning("Reconnect attempt %d failed: %s", attempt, exc)
        self._echo(f"[Reconnect] Failed: {exc}")
