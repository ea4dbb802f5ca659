"""GameSession adapter over an external protocol client.

The protocol client (mineflayer, a fake in tests, ...) is reached only
through the ``GameClient`` protocol defined here. The adapter adds the
session bookkeeping on top:

- ``create()`` builds a client and wraps it in a ``Session``; ``open()``
  starts its connection in a worker thread. Any failure in either step
  becomes ``ConnectFailed``.
- events from the client are tagged with their session before they
  reach the orchestrator, so events from a replaced session can be told
  apart from the current one.
- client calls that may block never run on the event loop thread.
- ``perform()`` turns "no session" into ``SessionUnavailable`` and client
  rejections into ``ActionFailed``. It never retries.

Usage:
    adapter = GameSessionAdapter(client_factory)
    session = await adapter.connect(identity, on_event=orchestrator.dispatch)
    await adapter.perform(session, ChatAction(text="hi"))
    adapter.disconnect(session)
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from afkbot.bot.errors import ActionFailed, ConnectFailed, SessionUnavailable
from afkbot.bot.models import (
    Action,
    ChatAction,
    ConnectionStatus,
    ConsumeAction,
    EquipAction,
    InventoryItem,
    JumpAction,
    LoginEvent,
    PlayerStatus,
    RespawnAction,
    Session,
    SessionEvent,
    SessionIdentity,
    Vec3,
)

logger = logging.getLogger(__name__)

EventSink = Callable[[SessionEvent], None]
"""Client-side callback receiving raw events, on the event loop thread."""

SessionEventHandler = Callable[[Session, SessionEvent], None]
"""Orchestrator-side callback receiving events tagged with their session."""


class RegistryUnavailable(LookupError):
    """The client cannot look up food data for this game version."""


class GameClient(Protocol):
    """Interface of a connected protocol client.

    Implementations deliver events through the ``EventSink`` they were
    built with, always on the event loop thread.
    """

    @property
    def username(self) -> str | None: ...

    @property
    def health(self) -> float: ...

    @property
    def food(self) -> int: ...

    @property
    def position(self) -> Vec3 | None: ...

    def open(self) -> None:
        """Start connecting. Blocking; returns before login completes."""
        ...

    def inventory_items(self) -> list[InventoryItem]:
        """Inventory stacks in slot order."""
        ...

    def food_registry(self) -> Mapping[str, Any]:
        """Edible item data keyed by item name.

        Raises:
            RegistryUnavailable: if the lookup is not supported.
        """
        ...

    async def chat(self, text: str) -> None: ...

    async def set_control_state(self, control: str, state: bool) -> None: ...

    async def equip(self, item: InventoryItem, destination: str) -> None: ...

    async def consume(self) -> None: ...

    async def respawn(self) -> None: ...

    def quit(self) -> None:
        """Request a clean close. Ends with an ``EndEvent``."""
        ...


ClientFactory = Callable[[SessionIdentity, EventSink], GameClient]
"""Builds a client for *identity* that reports events to the sink.

Must not block: network and bridge work belongs in ``GameClient.open()``.
"""


class GameSessionAdapter:
    """Creates sessions and performs actions on them.

    Args:
        client_factory: Builds the protocol client for each session.
    """

    def __init__(self, client_factory: ClientFactory) -> None:
        self._client_factory = client_factory

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(
        self, identity: SessionIdentity, on_event: SessionEventHandler
    ) -> Session:
        """Build a session and its client without contacting the server.

        Raises:
            ConnectFailed: if the client could not be built.
        """
        session = Session(identity=identity, status=ConnectionStatus.CONNECTING)

        def sink(event: SessionEvent) -> None:
            if isinstance(event, LoginEvent):
                session.status = ConnectionStatus.CONNECTED
                session.username = event.username
            on_event(session, event)

        try:
            session.client = self._client_factory(identity, sink)
        except Exception as e:
            session.status = ConnectionStatus.DISCONNECTED
            raise ConnectFailed(str(e) or type(e).__name__) from e
        return session

    async def open(self, session: Session) -> None:
        """Start the session's connection in a worker thread.

        Returns before login completes.

        Raises:
            ConnectFailed: if the client could not start connecting.
        """
        if session.status is ConnectionStatus.DISCONNECTED:
            return
        identity = session.identity
        logger.info(
            "Connecting session %d to %s:%d as %s",
            session.id,
            identity.host,
            identity.port,
            identity.username,
        )
        try:
            await asyncio.to_thread(session.client.open)
        except Exception as e:
            session.status = ConnectionStatus.DISCONNECTED
            raise ConnectFailed(str(e) or type(e).__name__) from e
        if session.status is ConnectionStatus.DISCONNECTED:
            # Closed while opening: the earlier quit() had no bot to stop.
            logger.info("Session %d closed while opening", session.id)
            session.client.quit()

    async def connect(
        self, identity: SessionIdentity, on_event: SessionEventHandler
    ) -> Session:
        """``create()`` then ``open()``."""
        session = self.create(identity, on_event)
        await self.open(session)
        return session

    def disconnect(self, session: Session | None) -> None:
        """Request a clean close. No-op if already closed."""
        if session is None or session.status is ConnectionStatus.DISCONNECTED:
            return
        session.status = ConnectionStatus.DISCONNECTED
        if session.client is None:
            return
        logger.info("Disconnecting session %d", session.id)
        try:
            session.client.quit()
        except Exception as e:
            logger.warning("Session %d did not close cleanly: %s", session.id, e)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def perform(self, session: Session | None, action: Action) -> None:
        """Run one action on the session's client.

        Raises:
            SessionUnavailable: if there is no connected session.
            ActionFailed: if the client rejected the action.
        """
        client = self._require_client(session)
        try:
            match action:
                case ChatAction(text=text):
                    await client.chat(text)
                case JumpAction(jumping=jumping):
                    await client.set_control_state("jump", jumping)
                case EquipAction(item=item, destination=destination):
                    await client.equip(item, destination)
                case ConsumeAction():
                    await client.consume()
                case RespawnAction():
                    await client.respawn()
        except ActionFailed:
            raise
        except Exception as e:
            raise ActionFailed(f"{action.kind}: {e}") from e

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    # Client reads may block on the protocol bridge, so they run in a
    # worker thread like the actions do.

    async def status(self, session: Session) -> PlayerStatus:
        """Health, food and position of the session's character."""
        client = session.client
        if client is None:
            return PlayerStatus(username=session.username or session.identity.username)
        return await asyncio.to_thread(self._read_status, session, client)

    async def inventory(self, session: Session) -> list[InventoryItem]:
        """Inventory stacks in slot order."""
        client = self._require_client(session)
        return list(await asyncio.to_thread(client.inventory_items))

    async def food_registry(self, session: Session) -> Mapping[str, Any] | None:
        """Edible item data, or None when the client cannot provide it."""
        client = session.client
        if client is None:
            return None
        try:
            return await asyncio.to_thread(client.food_registry)
        except Exception as e:
            logger.debug("Food registry unavailable: %s", e)
            return None

    @staticmethod
    def _read_status(session: Session, client: GameClient) -> PlayerStatus:
        return PlayerStatus(
            username=client.username or session.username or session.identity.username,
            health=client.health or 0.0,
            food=client.food or 0,
            position=client.position,
        )

    def _require_client(self, session: Session | None) -> GameClient:
        if session is None or not session.connected or session.client is None:
            raise SessionUnavailable()
        return session.client
