"""Bot behaviour: session handling, automation and the console commands."""

from afkbot.bot.config import BotConfig, Settings, settings
from afkbot.bot.errors import (
    ActionFailed,
    BotError,
    ConnectFailed,
    InvalidInput,
    SessionUnavailable,
)
from afkbot.bot.orchestrator import Orchestrator
from afkbot.bot.session import ClientFactory, GameClient, GameSessionAdapter

__all__ = [
    # Config
    "BotConfig",
    "Settings",
    "settings",
    # Errors
    "ActionFailed",
    "BotError",
    "ConnectFailed",
    "InvalidInput",
    "SessionUnavailable",
    # Session
    "ClientFactory",
    "GameClient",
    "GameSessionAdapter",
    "Orchestrator",
]
