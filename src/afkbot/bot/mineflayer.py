"""GameClient backed by mineflayer through the ``javascript`` bridge.

The bridge runs a Node.js process and calls event handlers on its own
thread. Handlers here never touch bot state: they build a typed event
and hand it to the event loop with ``call_soon_threadsafe``. Calls into
JavaScript block until the bridge answers, so creating the bot, reading
state and running actions all happen off the event loop thread.

Requires Node.js with the ``mineflayer`` package available to the bridge.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

from afkbot.bot.models import (
    ChatEvent,
    DeathEvent,
    EndEvent,
    ErrorEvent,
    HealthEvent,
    InventoryItem,
    KickedEvent,
    LoginEvent,
    SessionEvent,
    SessionIdentity,
    SpawnEvent,
    Vec3,
    WhisperEvent,
)
from afkbot.bot.session import (
    ClientFactory,
    EventSink,
    GameClient,
    RegistryUnavailable,
)

logger = logging.getLogger(__name__)


def describe_reason(reason: Any) -> str:
    """Render a kick/end reason (plain string or chat component) as text."""
    if reason is None:
        return ""
    if isinstance(reason, str):
        return reason
    try:
        value = reason.valueOf() if hasattr(reason, "valueOf") else reason
        return json.dumps(value)
    except Exception:
        return str(reason)


class MineflayerClient:
    """A single mineflayer bot instance.

    Construction only records the settings. ``open()`` loads the bridge,
    creates the bot and wires its events; it blocks on Node.js and is
    called from a worker thread.
    """

    def __init__(
        self,
        identity: SessionIdentity,
        sink: EventSink,
        *,
        hide_errors: bool = False,
    ) -> None:
        self._loop = asyncio.get_running_loop()
        self._identity = identity
        self._sink = sink
        self._hide_errors = hide_errors
        self._registry: dict[str, Any] | None = None
        self._bot: Any = None

    def open(self) -> None:
        from javascript import On, require

        identity = self._identity
        mineflayer = require("mineflayer")
        self._bot = mineflayer.createBot(
            {
                "host": identity.host,
                "port": identity.port,
                "username": identity.username,
                "auth": identity.auth,
                "version": False,
                "hideErrors": self._hide_errors,
            }
        )
        bot = self._bot

        @On(bot, "login")
        def on_login(_this: Any, *_args: Any) -> None:
            self._emit(LoginEvent(username=self.username))

        @On(bot, "spawn")
        def on_spawn(_this: Any, *_args: Any) -> None:
            self._emit(SpawnEvent(position=self.position))

        @On(bot, "chat")
        def on_chat(_this: Any, username: Any, message: Any, *_args: Any) -> None:
            self._emit(ChatEvent(username=str(username), message=str(message)))

        @On(bot, "whisper")
        def on_whisper(_this: Any, username: Any, message: Any, *_args: Any) -> None:
            self._emit(WhisperEvent(username=str(username), message=str(message)))

        @On(bot, "kicked")
        def on_kicked(_this: Any, reason: Any = None, *_args: Any) -> None:
            self._emit(KickedEvent(reason=describe_reason(reason)))

        @On(bot, "error")
        def on_error(_this: Any, err: Any = None, *_args: Any) -> None:
            message = getattr(err, "message", None) or str(err)
            self._emit(ErrorEvent(message=str(message)))

        @On(bot, "end")
        def on_end(_this: Any, reason: Any = None, *_args: Any) -> None:
            self._emit(EndEvent(reason=describe_reason(reason) or None))

        @On(bot, "death")
        def on_death(_this: Any, *_args: Any) -> None:
            self._emit(DeathEvent())

        @On(bot, "health")
        def on_health(_this: Any, *_args: Any) -> None:
            self._emit(HealthEvent(health=self.health, food=self.food))

    def _emit(self, event: SessionEvent) -> None:
        self._loop.call_soon_threadsafe(self._sink, event)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    # Reads block on the bridge; the adapter calls them from a worker thread.

    @property
    def username(self) -> str | None:
        if self._bot is None:
            return None
        name = self._bot.username
        return str(name) if name else None

    @property
    def health(self) -> float:
        if self._bot is None:
            return 0.0
        return float(self._bot.health or 0)

    @property
    def food(self) -> int:
        if self._bot is None:
            return 0
        return int(self._bot.food or 0)

    @property
    def position(self) -> Vec3 | None:
        entity = self._bot.entity if self._bot is not None else None
        if not entity or not entity.position:
            return None
        pos = entity.position
        return Vec3(x=float(pos.x), y=float(pos.y), z=float(pos.z))

    def inventory_items(self) -> list[InventoryItem]:
        items = self._bot.inventory.items()
        result: list[InventoryItem] = []
        for i in range(int(items.length)):
            item = items[i]
            if not item or not item.name:
                continue
            result.append(
                InventoryItem(name=str(item.name), count=int(item.count or 1), handle=item)
            )
        return result

    def food_registry(self) -> Mapping[str, Any]:
        if self._registry is None:
            try:
                foods = self._bot.registry.foodsByName.valueOf()
            except Exception as e:
                raise RegistryUnavailable(str(e)) from e
            if not isinstance(foods, dict):
                raise RegistryUnavailable("foodsByName is not a mapping")
            self._registry = foods
        return self._registry

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def chat(self, text: str) -> None:
        await asyncio.to_thread(self._bot.chat, text)

    async def set_control_state(self, control: str, state: bool) -> None:
        await asyncio.to_thread(self._bot.setControlState, control, state)

    async def equip(self, item: InventoryItem, destination: str) -> None:
        await asyncio.to_thread(self._bot.equip, item.handle, destination)

    async def consume(self) -> None:
        await asyncio.to_thread(self._bot.consume)

    async def respawn(self) -> None:
        await asyncio.to_thread(self._bot.respawn)

    def quit(self) -> None:
        if self._bot is not None:
            self._bot.quit()


def mineflayer_factory(*, hide_errors: bool = False) -> ClientFactory:
    """ClientFactory producing ``MineflayerClient`` instances."""

    def factory(identity: SessionIdentity, sink: EventSink) -> GameClient:
        return MineflayerClient(identity, sink, hide_errors=hide_errors)

    return factory
