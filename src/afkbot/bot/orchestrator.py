"""Session orchestrator: the single owner of bot state.

Owns the current session, statistics, the reconnect machine, the
auto-eat guard and the anti-idle driver, and is the only place that
mutates them. Game events come in through ``dispatch()``; console lines
come in through the ``CommandRouter``. Both run on the same event loop
and never overlap, so no locking is needed.

Lifecycle:
    bot = Orchestrator(config, adapter, console)
    await bot.run()        # banner, connect, console loop, until exit
"""

import asyncio
import logging
import time

from afkbot.bot.anti_idle import AntiIdleDriver
from afkbot.bot.auto_eat import AutoEatPolicy
from afkbot.bot.commands import CommandRouter
from afkbot.bot.config import MAX_HEALTH, BotConfig
from afkbot.bot.errors import ActionFailed, BotError, ConnectFailed, SessionUnavailable
from afkbot.bot.models import (
    SOCKET_CLOSED,
    ChatAction,
    ChatEvent,
    ConnectionStatus,
    DeathEvent,
    EndEvent,
    ErrorEvent,
    HealthEvent,
    KickedEvent,
    LoginEvent,
    RespawnAction,
    Session,
    SessionEvent,
    SpawnEvent,
    Statistics,
    WhisperEvent,
)
from afkbot.bot.reconnect import ReconnectMachine, ReconnectState
from afkbot.bot.session import GameSessionAdapter
from afkbot.lib.console import LineConsole
from afkbot.lib.tasks import BackgroundTasks
from afkbot.lib.timers import TimerSlot

logger = logging.getLogger(__name__)

LOW_HEALTH = 10
BANNER_WIDTH = 60


class Orchestrator:
    """Wires game events, console commands and bot behaviours together.

    Args:
        config: Run configuration; commands toggle parts of it.
        adapter: Session adapter over the protocol client.
        console: Operator console.
    """

    def __init__(
        self,
        config: BotConfig,
        adapter: GameSessionAdapter,
        console: LineConsole,
    ) -> None:
        self.config = config
        self.adapter = adapter
        self.console = console
        self.stats = Statistics()
        self.session: Session | None = None
        self.should_reconnect = True
        self.exiting = False

        self.tasks = BackgroundTasks(on_error=self._report_task_error)
        self.anti_idle = AntiIdleDriver(
            adapter,
            self.current_session,
            self.echo,
            release_delay=config.jump_release_delay,
        )
        self.auto_eat = AutoEatPolicy(
            config.auto_eat,
            adapter,
            self.stats,
            self.current_session,
            self.echo,
            self.tasks,
        )
        self.reconnect = ReconnectMachine(
            connect=self.connect,
            should_reconnect=lambda: self.should_reconnect,
            auto_reconnect=lambda: self.config.auto_reconnect,
            stats=self.stats,
            echo=self.echo,
            delay=config.reconnect_delay,
        )
        self.router = CommandRouter(self)

        self._manual_connect = TimerSlot()
        self._exit_timer = TimerSlot()
        self._finished = asyncio.Event()

    # ------------------------------------------------------------------
    # Shared state accessors
    # ------------------------------------------------------------------

    def current_session(self) -> Session | None:
        return self.session

    @property
    def connection_state(self) -> str:
        """Human-readable connection state for /status."""
        if self.session is not None:
            return self.session.status.value
        if self.reconnect.state is ReconnectState.RECONNECTING:
            return ConnectionStatus.RECONNECTING.value
        return ConnectionStatus.DISCONNECTED.value

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    # ------------------------------------------------------------------
    # Console output
    # ------------------------------------------------------------------

    def echo(self, message: str = "") -> None:
        self.console.echo(message)

    def reprompt(self) -> None:
        """Redraw the prompt, unless the exit sequence has started."""
        if not self.exiting:
            self.console.reprompt()

    def show_banner(self) -> None:
        identity = self.config.identity
        rule = "=" * BANNER_WIDTH
        self.echo(rule)
        self.echo("Minecraft AFK Bot - CLI Tool".center(BANNER_WIDTH).rstrip())
        self.echo(rule)
        self.echo(f"Server: {identity.host}:{identity.port}")
        self.echo(f"Username: {identity.username}")
        self.echo(f"Auth: {identity.auth}")
        self.echo("\nType '/help' for commands")
        self.echo("Type '//command' to send server commands")
        self.echo("Type anything else to chat")
        self.echo(rule + "\n")

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> Session:
        """Replace the current session with a new one.

        The new session is current before it starts opening, so events
        that arrive while ``open()`` is still returning are not dropped.

        Raises:
            ConnectFailed: if the client could not be created or opened.
        """
        previous, self.session = self.session, None
        if previous is not None:
            self.anti_idle.stop(quiet=True)
            self.adapter.disconnect(previous)

        session = self.adapter.create(self.config.identity, self.dispatch)
        self.session = session
        try:
            await self.adapter.open(session)
        except ConnectFailed:
            if self.session is session:
                self.session = None
            raise
        if self.exiting:
            self.adapter.disconnect(session)
        return session

    async def open_session(self) -> None:
        """Connect, handing failures to the reconnect machine."""
        if self.exiting:
            return
        try:
            await self.connect()
        except ConnectFailed as e:
            self.echo(f"[Connect] Failed: {e}")
            self.reconnect.trigger("connect failed")
        self.reprompt()

    def disconnect(self) -> None:
        """Operator disconnect: stop reconnecting and close the session."""
        self.should_reconnect = False
        session = self.session
        if session is None or session.status is ConnectionStatus.DISCONNECTED:
            self.echo("[Disconnect] Not connected")
            return
        self.echo("[Disconnect] Disconnecting...")
        self.adapter.disconnect(session)

    def request_reconnect(self) -> None:
        """Operator reconnect: drop the session and connect again shortly."""
        session = self.session
        if session is not None:
            self.echo("[Reconnect] Disconnecting first...")
            self._drop_session(session)
        self.should_reconnect = True
        self.reconnect.cancel()
        self.echo("[Reconnect] Connecting...")
        self._manual_connect.schedule(
            self.config.manual_reconnect_delay, self.open_session
        )

    def shutdown(self) -> None:
        """Exit sequence shared by /exit, Ctrl-C, SIGINT and EOF."""
        if self.exiting:
            return
        self.echo("\n[Exit] Shutting down...")
        self.exiting = True
        self.should_reconnect = False
        self.reconnect.cancel()
        self._manual_connect.cancel()
        self.anti_idle.stop()

        session, self.session = self.session, None
        self.adapter.disconnect(session)
        self.console.close()
        self._exit_timer.schedule(self.config.exit_grace, self._finished.set)

    def _drop_session(self, session: Session, *, close: bool = True) -> None:
        self.anti_idle.stop()
        if self.session is session:
            self.session = None
        if close:
            self.adapter.disconnect(session)
        else:
            session.status = ConnectionStatus.DISCONNECTED

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def send_chat(self, text: str) -> None:
        """Send chat (or a server command) from the operator."""
        try:
            await self.adapter.perform(self.session, ChatAction(text=text))
        except SessionUnavailable:
            self.echo("[Chat] Not connected")
            return
        except ActionFailed as e:
            self.echo(f"[Chat] Error: {e}")
            return
        self.stats.messages_sent += 1

    # ------------------------------------------------------------------
    # Game events
    # ------------------------------------------------------------------

    def dispatch(self, session: Session, event: SessionEvent) -> None:
        """Handle one game event. Never raises."""
        if session is not self.session:
            logger.debug(
                "Dropping %s event from stale session %d", event.kind, session.id
            )
            return
        try:
            self._handle(session, event)
        except Exception as e:
            logger.exception("Error handling %s event", event.kind)
            self.echo(f"[Error] {e}")
        self.reprompt()

    def _handle(self, session: Session, event: SessionEvent) -> None:
        match event:
            case LoginEvent(username=username):
                session.started_at = time.monotonic()
                name = username or session.identity.username
                self.echo(f"[Login] Logged in as {name}")

            case SpawnEvent(position=position):
                session.spawned = True
                self.echo("[Spawn] Spawned in world")
                if position is not None:
                    self.echo(f"[Spawn] Position: {position}")
                self.anti_idle.start(self.config.jump_interval_ms)

            case ChatEvent(username=username, message=message):
                if self._is_own(session, username):
                    return
                self.echo(f"<{username}> {message}")
                self.stats.messages_received += 1

            case WhisperEvent(username=username, message=message):
                if self._is_own(session, username):
                    return
                self.echo(f"[Whisper] <{username}> {message}")
                self.stats.messages_received += 1

            case KickedEvent(reason=reason):
                self.echo(f"[Kicked] {reason}")
                self._drop_session(session)
                self.reconnect.trigger("kicked")

            case ErrorEvent(message=message):
                self.echo(f"[Error] {message}")

            case EndEvent(reason=reason):
                self.echo(f"[Disconnected] {reason or 'Connection ended'}")
                self._drop_session(session, close=False)
                if reason != SOCKET_CLOSED:
                    self.reconnect.trigger("disconnected")

            case DeathEvent():
                self.echo("[Death] Died, respawning...")
                self.stats.deaths += 1
                self.tasks.spawn(self._respawn(session), name="respawn")

            case HealthEvent(health=health, food=food):
                if health < LOW_HEALTH:
                    self.echo(f"[Health] Low health: {health:.1f}/{MAX_HEALTH}")
                self.auto_eat.trigger(food)

    @staticmethod
    def _is_own(session: Session, username: str) -> bool:
        return username == (session.username or session.identity.username)

    async def _respawn(self, session: Session) -> None:
        try:
            await self.adapter.perform(session, RespawnAction())
        except BotError as e:
            self.echo(f"[Death] Respawn failed: {e}")

    def _report_task_error(self, name: str, exc: BaseException) -> None:
        self.echo(f"[Error] {name}: {exc}")

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def read_console(self) -> None:
        """Feed console lines to the router until the console closes."""
        try:
            async for line in self.console.lines():
                await self.router.handle_line(line)
        except KeyboardInterrupt:
            pass
        self.shutdown()

    async def wait_finished(self) -> None:
        await self._finished.wait()

    async def run(self) -> None:
        """Banner, first connect, then the console loop until exit."""
        self.show_banner()
        await self.open_session()
        reader = asyncio.create_task(self.read_console(), name="console")
        try:
            await self.wait_finished()
        finally:
            reader.cancel()
            self.tasks.cancel_all()
            self.reconnect.cancel()
