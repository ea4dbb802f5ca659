"""Shared test fixtures.

Fakes stand in for the two outer edges of the bot: the protocol client
(``FakeGameClient``, built by ``FakeClientFactory``) and the terminal
(``RecordingConsole``). Everything between them is the real code.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from typing import Any

import pytest

from afkbot.bot.config import BotConfig
from afkbot.bot.models import (
    InventoryItem,
    LoginEvent,
    SessionEvent,
    SessionIdentity,
    SpawnEvent,
    Vec3,
)
from afkbot.bot.orchestrator import Orchestrator
from afkbot.bot.session import EventSink, GameSessionAdapter, RegistryUnavailable


class FakeGameClient:
    """In-memory GameClient that records every action it is asked to do."""

    def __init__(
        self,
        identity: SessionIdentity,
        sink: EventSink,
        *,
        items: list[InventoryItem] | None = None,
        registry: Mapping[str, Any] | None = None,
    ) -> None:
        self.identity = identity
        self.sink = sink
        self.username: str | None = identity.username
        self.health = 20.0
        self.food = 20
        self.position: Vec3 | None = Vec3(x=10.5, y=64.0, z=-3.25)
        self.items = list(items or [])
        self.registry = registry
        self.actions: list[tuple[Any, ...]] = []
        self.failures: dict[str, Exception] = {}
        self.quit_calls = 0
        self.open_calls = 0
        self.open_error: Exception | None = None

    def open(self) -> None:
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error

    def emit(self, event: SessionEvent) -> None:
        self.sink(event)

    def calls(self, name: str) -> list[tuple[Any, ...]]:
        return [action for action in self.actions if action[0] == name]

    def inventory_items(self) -> list[InventoryItem]:
        return list(self.items)

    def food_registry(self) -> Mapping[str, Any]:
        if self.registry is None:
            raise RegistryUnavailable("foodsByName missing")
        return self.registry

    async def _record(self, name: str, *args: Any) -> None:
        self.actions.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    async def chat(self, text: str) -> None:
        await self._record("chat", text)

    async def set_control_state(self, control: str, state: bool) -> None:
        await self._record(control, state)

    async def equip(self, item: InventoryItem, destination: str) -> None:
        await self._record("equip", item.name, destination)

    async def consume(self) -> None:
        await self._record("consume")

    async def respawn(self) -> None:
        await self._record("respawn")

    def quit(self) -> None:
        self.quit_calls += 1


class FakeClientFactory:
    """ClientFactory that hands out FakeGameClients, or fails on request."""

    def __init__(self) -> None:
        self.clients: list[FakeGameClient] = []
        self.errors: list[Exception] = []
        self.items: list[InventoryItem] = []
        self.registry: Mapping[str, Any] | None = None
        self.open_errors: list[Exception] = []

    def __call__(self, identity: SessionIdentity, sink: EventSink) -> FakeGameClient:
        if self.errors:
            raise self.errors.pop(0)
        client = FakeGameClient(
            identity, sink, items=self.items, registry=self.registry
        )
        if self.open_errors:
            client.open_error = self.open_errors.pop(0)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeGameClient:
        return self.clients[-1]


class RecordingConsole:
    """LineConsole that records output and replays queued input lines."""

    def __init__(self) -> None:
        self.output: list[str] = []
        self.reprompts = 0
        self.clears = 0
        self.closed = False
        self._lines: asyncio.Queue[str | None] = asyncio.Queue()

    @property
    def text(self) -> str:
        return "\n".join(self.output)

    def feed(self, *lines: str) -> None:
        for line in lines:
            self._lines.put_nowait(line)

    def echo(self, message: str = "", *, style: str | None = None) -> None:
        self.output.append(message)

    def clear(self) -> None:
        self.clears += 1

    def reprompt(self) -> None:
        self.reprompts += 1

    async def lines(self) -> AsyncIterator[str]:
        while not self.closed:
            line = await self._lines.get()
            if line is None:
                return
            yield line

    def close(self) -> None:
        self.closed = True
        self._lines.put_nowait(None)


@pytest.fixture
def identity() -> SessionIdentity:
    return SessionIdentity(host="localhost", port=25565, username="AfkBot")


@pytest.fixture
def config(identity: SessionIdentity) -> BotConfig:
    """Bot configuration with delays short enough for tests."""
    return BotConfig(
        identity=identity,
        jump_interval_ms=1000,
        reconnect_delay=0.01,
        manual_reconnect_delay=0.01,
        jump_release_delay=0.01,
        exit_grace=0.01,
    )


@pytest.fixture
def factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def adapter(factory: FakeClientFactory) -> GameSessionAdapter:
    return GameSessionAdapter(factory)


@pytest.fixture
def console() -> RecordingConsole:
    return RecordingConsole()


@pytest.fixture
def bot(
    config: BotConfig, adapter: GameSessionAdapter, console: RecordingConsole
) -> Orchestrator:
    return Orchestrator(config, adapter, console)


@pytest.fixture
def connect_bot(
    bot: Orchestrator, factory: FakeClientFactory
) -> Callable[..., Awaitable[FakeGameClient]]:
    """Connect the bot and play the login (and spawn) events."""

    async def connect(*, spawn: bool = True) -> FakeGameClient:
        await bot.open_session()
        client = factory.last
        client.emit(LoginEvent(username=client.username))
        if spawn:
            client.emit(SpawnEvent(position=client.position))
        return client

    return connect
