"""Anti-idle driver: periodic jump pulses so the server never sees an idle player.

One repeating timer presses the jump key; a separate single-slot timer
releases it after a short hold. The release never delays the next tick,
and restarting the driver always cancels the old timer first, so at most
one tick timer is alive at any moment.
"""

import logging
from collections.abc import Callable

from afkbot.bot.config import MIN_JUMP_INTERVAL_MS
from afkbot.bot.errors import BotError, InvalidInput
from afkbot.bot.models import JumpAction, Session
from afkbot.bot.session import GameSessionAdapter
from afkbot.lib.timers import RepeatingTimer, TimerSlot

logger = logging.getLogger(__name__)


class AntiIdleDriver:
    """Schedules jump pulses on the current session.

    Args:
        adapter: Adapter used to send jump actions.
        current_session: Returns the orchestrator's current session.
        echo: Console output callback.
        release_delay: Seconds the jump key stays pressed.
    """

    def __init__(
        self,
        adapter: GameSessionAdapter,
        current_session: Callable[[], Session | None],
        echo: Callable[[str], None],
        *,
        release_delay: float = 0.3,
    ) -> None:
        self._adapter = adapter
        self._current_session = current_session
        self._echo = echo
        self._release_delay = release_delay
        self._timer: RepeatingTimer | None = None
        self._release = TimerSlot()

    @property
    def running(self) -> bool:
        return self._timer is not None and self._timer.running

    @property
    def timer(self) -> RepeatingTimer | None:
        """The live tick timer, if any."""
        return self._timer

    def start(self, interval_ms: int) -> None:
        """Start ticking every *interval_ms*, replacing any running timer."""
        if interval_ms < MIN_JUMP_INTERVAL_MS:
            raise InvalidInput(
                f"Must be >= {MIN_JUMP_INTERVAL_MS}ms", tag="Anti-AFK"
            )
        self.stop(quiet=True)
        self._timer = RepeatingTimer(interval_ms / 1000, self.tick)
        self._timer.start()
        self._echo(f"[Anti-AFK] Jumping enabled (every {interval_ms / 1000:g}s)")

    def stop(self, *, quiet: bool = False) -> bool:
        """Cancel the tick timer. Returns whether one was running."""
        timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        if not quiet:
            self._echo("[Anti-AFK] Jumping stopped")
        return True

    async def tick(self) -> None:
        """One timer tick; skipped while there is no spawned session."""
        session = self._current_session()
        if session is None or not session.connected or not session.spawned:
            return
        try:
            await self.press(session)
        except BotError as e:
            logger.debug("Anti-idle jump skipped: %s", e)

    async def pulse(self) -> None:
        """Jump once, independent of the timer.

        Raises:
            SessionUnavailable: if there is no connected session.
            ActionFailed: if the client rejected the jump.
        """
        await self.press(self._current_session())

    async def press(self, session: Session | None) -> None:
        await self._adapter.perform(session, JumpAction(jumping=True))
        self._release.schedule(self._release_delay, self.release)

    async def release(self) -> None:
        session = self._current_session()
        if session is None or not session.connected:
            return
        try:
            await self._adapter.perform(session, JumpAction(jumping=False))
        except BotError as e:
            logger.debug("Jump release skipped: %s", e)
