"""Operator console: line parsing and the bot command table.

Line classes (after trimming):
- ``/name args...``: a bot command, resolved by name then alias
- ``//text``: server passthrough, sent as chat with one slash removed
- anything else: plain chat
- blank: nothing

Command handlers raise ``BotError`` subclasses for operator mistakes;
the router turns those into tagged console lines so a bad command never
has side effects beyond its own message.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from afkbot.bot.config import MAX_FOOD, MAX_HEALTH, MIN_JUMP_INTERVAL_MS
from afkbot.bot.errors import ActionFailed, BotError, InvalidInput, SessionUnavailable
from afkbot.bot.models import format_uptime

if TYPE_CHECKING:
    from afkbot.bot.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

CommandHandler = Callable[..., Awaitable[None] | None]
"""Handler signature: ``(bot: Orchestrator, args: list[str])``, sync or async."""


# =============================================================================
# PARSING
# =============================================================================


class LineKind(StrEnum):
    BLANK = "blank"
    COMMAND = "command"
    PASSTHROUGH = "passthrough"
    CHAT = "chat"


class ParsedLine(BaseModel):
    """One operator line, classified."""

    kind: LineKind
    name: str | None = None
    args: list[str] = Field(default_factory=list)
    text: str | None = None


def parse_line(line: str) -> ParsedLine:
    """Classify a raw console line."""
    trimmed = line.strip()
    if not trimmed:
        return ParsedLine(kind=LineKind.BLANK)
    if trimmed.startswith("//"):
        return ParsedLine(kind=LineKind.PASSTHROUGH, text=trimmed[1:])
    if trimmed.startswith("/"):
        parts = trimmed[1:].split()
        if not parts:
            return ParsedLine(kind=LineKind.COMMAND, name="")
        return ParsedLine(kind=LineKind.COMMAND, name=parts[0].lower(), args=parts[1:])
    return ParsedLine(kind=LineKind.CHAT, text=trimmed)


# =============================================================================
# COMMAND TABLE
# =============================================================================


class Command(BaseModel):
    """A named console command."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    usage: str
    aliases: tuple[str, ...] = ()
    handler: CommandHandler


def _help(bot: "Orchestrator", args: list[str]) -> None:
    if args:
        command = bot.router.resolve(args[0].lower())
        if command is None:
            raise InvalidInput(f"Unknown command: {args[0]}")
        bot.echo(f"\n{command.name} - {command.description}")
        bot.echo(f"Usage: {command.usage}")
        if command.aliases:
            bot.echo(f"Aliases: {', '.join(command.aliases)}")
        return

    bot.echo("\n=== Available Commands ===")
    for command in bot.router.commands:
        bot.echo(f"  {command.name:<15} - {command.description}")
    bot.echo("\nType '/help <command>' for more info")
    bot.echo("Type '//command' to send commands to the server")
    bot.echo("Type anything else to send as chat\n")


async def _status(bot: "Orchestrator", _args: list[str]) -> None:
    session = bot.session
    bot.echo("\n=== Bot Status ===")
    bot.echo(f"State: {bot.connection_state}")
    if session is not None:
        status = await bot.adapter.status(session)
        bot.echo(f"Username: {status.username or 'Unknown'}")
        bot.echo(f"Health: {status.health:g}/{MAX_HEALTH}")
        bot.echo(f"Food: {status.food}/{MAX_FOOD}")
        if status.position is not None:
            x, y, z = status.position.floored()
            bot.echo(f"Position: {x}, {y}, {z}")
        uptime = session.uptime_seconds()
        if uptime is not None:
            bot.echo(f"Uptime: {format_uptime(uptime)}")

    stats = bot.stats
    bot.echo("\n=== Statistics ===")
    bot.echo(f"Messages received: {stats.messages_received}")
    bot.echo(f"Messages sent: {stats.messages_sent}")
    bot.echo(f"Deaths: {stats.deaths}")
    bot.echo(f"Reconnects: {stats.reconnects}")
    bot.echo(f"Food eaten: {stats.food_eaten}")
    bot.echo("")


async def _jump(bot: "Orchestrator", _args: list[str]) -> None:
    try:
        await bot.anti_idle.pulse()
    except SessionUnavailable:
        bot.echo("[Command] Not connected")
        return
    except ActionFailed as e:
        bot.echo(f"[Command] Failed: {e}")
        return
    bot.echo("[Command] Jumped")


def _on_off(flag: bool) -> str:
    return "ON" if flag else "OFF"


def _toggle(bot: "Orchestrator", args: list[str]) -> None:
    config = bot.config
    if not args:
        bot.echo("[Toggle] Usage: toggle <afk|eat|reconnect>")
        bot.echo("Current settings:")
        bot.echo(f"  Anti-AFK: {_on_off(bot.anti_idle.running)}")
        bot.echo(f"  Auto-eat: {_on_off(config.auto_eat.enabled)}")
        bot.echo(f"  Auto-reconnect: {_on_off(config.auto_reconnect)}")
        return

    match args[0].lower():
        case "afk":
            if bot.anti_idle.running:
                bot.anti_idle.stop()
                bot.echo("[Toggle] Anti-AFK disabled")
            else:
                bot.anti_idle.start(config.jump_interval_ms)
                bot.echo("[Toggle] Anti-AFK enabled")
        case "eat":
            config.auto_eat.enabled = not config.auto_eat.enabled
            state = "enabled" if config.auto_eat.enabled else "disabled"
            bot.echo(f"[Toggle] Auto-eat {state}")
        case "reconnect":
            config.auto_reconnect = not config.auto_reconnect
            state = "enabled" if config.auto_reconnect else "disabled"
            bot.echo(f"[Toggle] Auto-reconnect {state}")
        case feature:
            raise InvalidInput(
                f"Unknown feature: {feature}\nAvailable: afk, eat, reconnect",
                tag="Toggle",
            )


def _interval(bot: "Orchestrator", args: list[str]) -> None:
    if not args:
        bot.echo(f"[Interval] Current: {bot.config.jump_interval_ms}ms")
        return

    # ASCII digits only: int() also accepts "1_000" and non-Latin digits.
    raw = args[0]
    if not (raw.isascii() and raw.isdigit()):
        raise InvalidInput(f"Must be >= {MIN_JUMP_INTERVAL_MS}ms", tag="Interval")
    value = int(raw)
    if value < MIN_JUMP_INTERVAL_MS:
        raise InvalidInput(f"Must be >= {MIN_JUMP_INTERVAL_MS}ms", tag="Interval")

    bot.config.jump_interval_ms = value
    bot.echo(f"[Interval] Set to {value}ms")
    if bot.anti_idle.running:
        bot.anti_idle.start(value)
        bot.echo("[Interval] Restarted with new timing")


def _disconnect(bot: "Orchestrator", _args: list[str]) -> None:
    bot.disconnect()


def _reconnect(bot: "Orchestrator", _args: list[str]) -> None:
    bot.request_reconnect()


def _clear(bot: "Orchestrator", _args: list[str]) -> None:
    bot.console.clear()
    bot.show_banner()


def _exit(bot: "Orchestrator", _args: list[str]) -> None:
    bot.shutdown()


DEFAULT_COMMANDS: tuple[Command, ...] = (
    Command(
        name="help",
        description="Show all available commands",
        usage="help [command]",
        handler=_help,
    ),
    Command(
        name="status",
        description="Show bot status and statistics",
        usage="status",
        aliases=("s", "info"),
        handler=_status,
    ),
    Command(
        name="jump",
        description="Make the bot jump once",
        usage="jump",
        aliases=("j",),
        handler=_jump,
    ),
    Command(
        name="toggle",
        description="Toggle features on/off",
        usage="toggle <afk|eat|reconnect>",
        aliases=("t",),
        handler=_toggle,
    ),
    Command(
        name="interval",
        description="Change jump interval",
        usage="interval <milliseconds>",
        handler=_interval,
    ),
    Command(
        name="disconnect",
        description="Disconnect from server",
        usage="disconnect",
        aliases=("dc",),
        handler=_disconnect,
    ),
    Command(
        name="reconnect",
        description="Reconnect to server",
        usage="reconnect",
        aliases=("rc",),
        handler=_reconnect,
    ),
    Command(
        name="clear",
        description="Clear the console",
        usage="clear",
        aliases=("cls",),
        handler=_clear,
    ),
    Command(
        name="exit",
        description="Exit the bot",
        usage="exit",
        handler=_exit,
    ),
)


def completion_words(commands: Iterable[Command] = DEFAULT_COMMANDS) -> list[str]:
    """Slash-prefixed names and aliases for tab completion."""
    words: list[str] = []
    for command in commands:
        words.append(f"/{command.name}")
        words.extend(f"/{alias}" for alias in command.aliases)
    return words


# =============================================================================
# ROUTER
# =============================================================================


class CommandRouter:
    """Dispatches console lines to commands or chat.

    Args:
        bot: The orchestrator commands act on.
        commands: Command table, in help order.
    """

    def __init__(
        self, bot: "Orchestrator", commands: Iterable[Command] = DEFAULT_COMMANDS
    ) -> None:
        self._bot = bot
        self._commands: dict[str, Command] = {c.name: c for c in commands}

    @property
    def commands(self) -> list[Command]:
        return list(self._commands.values())

    def completions(self) -> list[str]:
        return completion_words(self._commands.values())

    def resolve(self, name: str) -> Command | None:
        """Find a command by exact name, then by alias."""
        command = self._commands.get(name)
        if command is not None:
            return command
        for candidate in self._commands.values():
            if name in candidate.aliases:
                return candidate
        return None

    async def handle_line(self, line: str) -> None:
        """Process one console line. Never raises for operator mistakes."""
        parsed = parse_line(line)
        try:
            match parsed.kind:
                case LineKind.BLANK:
                    pass
                case LineKind.COMMAND:
                    await self._run_command(parsed.name or "", parsed.args)
                case LineKind.PASSTHROUGH | LineKind.CHAT:
                    await self._bot.send_chat(parsed.text or "")
        except BotError as e:
            self._bot.echo(f"[{e.tag}] {e}")
        except Exception as e:
            logger.exception("Console line failed: %r", line)
            self._bot.echo(f"[Command] Error: {e}")
        finally:
            self._bot.reprompt()

    async def _run_command(self, name: str, args: list[str]) -> None:
        command = self.resolve(name)
        if command is None:
            raise InvalidInput(
                f"Unknown: {name}\nType '/help' for available commands"
            )
        logger.debug("Running command %s %s", command.name, args)
        result = command.handler(self._bot, args)
        if result is not None:
            await result
