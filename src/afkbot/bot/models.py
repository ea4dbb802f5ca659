"""Data models for sessions, events, actions and statistics.

Game events arrive from the client as one of the ``SessionEvent``
models; the orchestrator dispatches on them with ``match``. Actions go
the other way, from the bot to the client, as ``Action`` models.
"""

import itertools
import time
from enum import StrEnum
from typing import Annotated, Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# SESSION
# =============================================================================


class ConnectionStatus(StrEnum):
    """Lifecycle of one session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class SessionIdentity(BaseModel):
    """Who connects where."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(default=25565, ge=1, le=65535)
    username: str
    auth: str = Field(default="offline", description="offline or microsoft")


_session_ids = itertools.count(1)


class Session(BaseModel):
    """One live or pending connection to the server.

    Owned by the orchestrator. ``client`` is the protocol client backing
    this session; it is never shared between sessions.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: int = Field(default_factory=lambda: next(_session_ids))
    identity: SessionIdentity
    status: ConnectionStatus = ConnectionStatus.CONNECTING
    username: str | None = Field(
        default=None, description="Name the server assigned at login"
    )
    started_at: float | None = Field(
        default=None, description="time.monotonic() at login"
    )
    spawned: bool = False
    client: Any = Field(default=None, exclude=True, repr=False)

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    def uptime_seconds(self, now: float | None = None) -> int | None:
        """Whole seconds since login, or None before login."""
        if self.started_at is None:
            return None
        current = time.monotonic() if now is None else now
        return max(0, int(current - self.started_at))


# =============================================================================
# WORLD SNAPSHOTS
# =============================================================================


class Vec3(BaseModel):
    """A position in the world."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float

    def floored(self) -> tuple[int, int, int]:
        return (int(self.x // 1), int(self.y // 1), int(self.z // 1))

    def __str__(self) -> str:
        return f"({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"


class InventoryItem(BaseModel):
    """One inventory stack. ``handle`` is the client's own item object."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    count: int = 1
    handle: Any = Field(default=None, exclude=True, repr=False)


class PlayerStatus(BaseModel):
    """Read-only snapshot of the character for the status command."""

    username: str | None = None
    health: float = 0.0
    food: int = 0
    position: Vec3 | None = None


# =============================================================================
# EVENTS (client -> bot)
# =============================================================================


class LoginEvent(BaseModel):
    kind: Literal["login"] = "login"
    username: str | None = None


class SpawnEvent(BaseModel):
    kind: Literal["spawn"] = "spawn"
    position: Vec3 | None = None


class ChatEvent(BaseModel):
    kind: Literal["chat"] = "chat"
    username: str
    message: str


class WhisperEvent(BaseModel):
    kind: Literal["whisper"] = "whisper"
    username: str
    message: str


class KickedEvent(BaseModel):
    kind: Literal["kicked"] = "kicked"
    reason: str = ""


class ErrorEvent(BaseModel):
    kind: Literal["error"] = "error"
    message: str


class EndEvent(BaseModel):
    kind: Literal["end"] = "end"
    reason: str | None = None


class DeathEvent(BaseModel):
    kind: Literal["death"] = "death"


class HealthEvent(BaseModel):
    kind: Literal["health"] = "health"
    health: float
    food: int


SessionEvent: TypeAlias = Annotated[
    LoginEvent
    | SpawnEvent
    | ChatEvent
    | WhisperEvent
    | KickedEvent
    | ErrorEvent
    | EndEvent
    | DeathEvent
    | HealthEvent,
    Field(discriminator="kind"),
]
"""Any event a game client can deliver."""

SOCKET_CLOSED = "socketClosed"
"""End reason for a locally closed socket; never triggers a reconnect."""


# =============================================================================
# ACTIONS (bot -> client)
# =============================================================================


class ChatAction(BaseModel):
    kind: Literal["chat"] = "chat"
    text: str


class JumpAction(BaseModel):
    kind: Literal["jump"] = "jump"
    jumping: bool


class EquipAction(BaseModel):
    kind: Literal["equip"] = "equip"
    item: InventoryItem
    destination: str = "hand"


class ConsumeAction(BaseModel):
    kind: Literal["consume"] = "consume"


class RespawnAction(BaseModel):
    kind: Literal["respawn"] = "respawn"


Action: TypeAlias = ChatAction | JumpAction | EquipAction | ConsumeAction | RespawnAction


# =============================================================================
# STATISTICS
# =============================================================================


class Statistics(BaseModel):
    """Process-lifetime counters. Each field has exactly one writer."""

    messages_received: int = Field(default=0, ge=0)
    messages_sent: int = Field(default=0, ge=0)
    deaths: int = Field(default=0, ge=0)
    reconnects: int = Field(default=0, ge=0)
    food_eaten: int = Field(default=0, ge=0)


def format_uptime(seconds: int) -> str:
    """Format seconds as ``1h 2m 3s``, omitting zero hours and minutes."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)
