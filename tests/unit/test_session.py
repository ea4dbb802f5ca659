"""Tests for GameSessionAdapter."""

import threading

import pytest

from afkbot.bot.errors import ActionFailed, ConnectFailed, SessionUnavailable
from afkbot.bot.models import (
    ChatAction,
    ChatEvent,
    ConnectionStatus,
    JumpAction,
    LoginEvent,
    Session,
    SessionEvent,
    SessionIdentity,
)
from afkbot.bot.session import GameSessionAdapter

from conftest import FakeClientFactory


@pytest.mark.asyncio
async def test_connect_returns_before_login(
    adapter: GameSessionAdapter, identity: SessionIdentity
) -> None:
    session = await adapter.connect(identity, lambda s, e: None)

    assert session.status is ConnectionStatus.CONNECTING
    assert session.identity == identity
    assert session.client is not None


@pytest.mark.asyncio
async def test_events_are_tagged_with_their_session(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    received: list[tuple[Session, SessionEvent]] = []
    session = await adapter.connect(identity, lambda s, e: received.append((s, e)))

    factory.last.emit(LoginEvent(username="AfkBot"))
    factory.last.emit(ChatEvent(username="Alex", message="hi"))

    assert session.connected
    assert [s for s, _ in received] == [session, session]
    assert [e.kind for _, e in received] == ["login", "chat"]


@pytest.mark.asyncio
async def test_factory_failure_becomes_connect_failed(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    factory.errors.append(OSError("ECONNREFUSED"))

    with pytest.raises(ConnectFailed, match="ECONNREFUSED"):
        await adapter.connect(identity, lambda s, e: None)


@pytest.mark.asyncio
async def test_perform_requires_a_connected_session(
    adapter: GameSessionAdapter, identity: SessionIdentity
) -> None:
    with pytest.raises(SessionUnavailable):
        await adapter.perform(None, ChatAction(text="hi"))

    session = await adapter.connect(identity, lambda s, e: None)
    with pytest.raises(SessionUnavailable):
        await adapter.perform(session, ChatAction(text="hi"))


@pytest.mark.asyncio
async def test_perform_forwards_to_client(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    session = await adapter.connect(identity, lambda s, e: None)
    factory.last.emit(LoginEvent(username="AfkBot"))

    await adapter.perform(session, ChatAction(text="hello"))
    await adapter.perform(session, JumpAction(jumping=True))

    assert factory.last.actions == [("chat", "hello"), ("jump", True)]


@pytest.mark.asyncio
async def test_client_rejection_becomes_action_failed(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    session = await adapter.connect(identity, lambda s, e: None)
    client = factory.last
    client.emit(LoginEvent(username="AfkBot"))
    client.failures["chat"] = RuntimeError("muted")

    with pytest.raises(ActionFailed, match="chat: muted"):
        await adapter.perform(session, ChatAction(text="hello"))


@pytest.mark.asyncio
async def test_disconnect_is_idempotent(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    session = await adapter.connect(identity, lambda s, e: None)

    adapter.disconnect(session)
    adapter.disconnect(session)
    adapter.disconnect(None)

    assert session.status is ConnectionStatus.DISCONNECTED
    assert factory.last.quit_calls == 1


@pytest.mark.asyncio
async def test_food_registry_is_optional(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    session = await adapter.connect(identity, lambda s, e: None)
    assert await adapter.food_registry(session) is None

    factory.last.registry = {"bread": {"foodPoints": 5}}
    assert await adapter.food_registry(session) == {"bread": {"foodPoints": 5}}


@pytest.mark.asyncio
async def test_status_falls_back_to_identity_username(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    session = await adapter.connect(identity, lambda s, e: None)
    factory.last.username = None
    factory.last.health = 7.5
    factory.last.food = 12

    status = await adapter.status(session)

    assert status.username == "AfkBot"
    assert status.health == 7.5
    assert status.food == 12


@pytest.mark.asyncio
async def test_client_opens_off_the_event_loop_thread(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    threads: list[int] = []
    session = adapter.create(identity, lambda s, e: None)
    client = factory.last
    client.open = lambda: threads.append(threading.get_ident())

    assert threads == []
    await adapter.open(session)

    assert len(threads) == 1
    assert threads[0] != threading.get_ident()


@pytest.mark.asyncio
async def test_snapshots_are_read_off_the_event_loop_thread(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    threads: list[int] = []
    session = await adapter.connect(identity, lambda s, e: None)
    client = factory.last
    client.emit(LoginEvent(username="AfkBot"))

    def read_items() -> list:
        threads.append(threading.get_ident())
        return []

    def read_registry() -> dict:
        threads.append(threading.get_ident())
        return {}

    client.inventory_items = read_items
    client.food_registry = read_registry

    assert await adapter.inventory(session) == []
    assert await adapter.food_registry(session) == {}
    assert len(threads) == 2
    assert threading.get_ident() not in threads


@pytest.mark.asyncio
async def test_open_failure_becomes_connect_failed(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    factory.open_errors.append(OSError("getaddrinfo ENOTFOUND"))

    with pytest.raises(ConnectFailed, match="ENOTFOUND"):
        await adapter.connect(identity, lambda s, e: None)

    assert factory.last.open_calls == 1


@pytest.mark.asyncio
async def test_session_closed_before_open_is_not_opened(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    session = adapter.create(identity, lambda s, e: None)
    adapter.disconnect(session)

    await adapter.open(session)

    assert factory.last.open_calls == 0


@pytest.mark.asyncio
async def test_session_closed_while_opening_is_quit_afterwards(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    session = adapter.create(identity, lambda s, e: None)
    client = factory.last

    def open_then_close() -> None:
        session.status = ConnectionStatus.DISCONNECTED

    client.open = open_then_close
    await adapter.open(session)

    assert client.quit_calls == 1


@pytest.mark.asyncio
async def test_login_records_the_assigned_username(
    adapter: GameSessionAdapter,
    factory: FakeClientFactory,
    identity: SessionIdentity,
) -> None:
    session = await adapter.connect(identity, lambda s, e: None)
    factory.last.emit(LoginEvent(username="AfkBot_1"))

    assert session.username == "AfkBot_1"
