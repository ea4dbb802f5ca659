"""Command-line entry point for the AFK bot.

Positional slots are fixed, as in ``afkbot <host> [port] <username> [auth]``:
a non-numeric port falls back to the default but still occupies its slot.

Usage:
    afkbot localhost 25565 Steve
    afkbot play.example.com 25565 player@example.com microsoft
    uv run python -m afkbot.environment.cli localhost 25565 Steve
"""

import asyncio
import contextlib
import logging
import signal
from typing import Annotated

import typer

from afkbot.bot.commands import completion_words
from afkbot.bot.config import BotConfig, settings
from afkbot.bot.mineflayer import mineflayer_factory
from afkbot.bot.models import SessionIdentity
from afkbot.bot.orchestrator import Orchestrator
from afkbot.bot.session import GameSessionAdapter
from afkbot.lib.console import ConsoleIO
from afkbot.version import BOT_VERSION

logger = logging.getLogger(__name__)

DEFAULT_PORT = 25565

USAGE = """Usage: afkbot <host> [port] <username/email> [offline|microsoft]

Examples:
  afkbot localhost 25565 BotName
  afkbot play.example.com 25565 your@email.com microsoft"""

app = typer.Typer(
    name="afkbot",
    help="Keep a Minecraft account online with an interactive console",
    add_completion=False,
)


def parse_port(value: str | None) -> int:
    """Port from the command line; anything unusable means the default."""
    if value is None:
        return DEFAULT_PORT
    try:
        port = int(value)
    except ValueError:
        return DEFAULT_PORT
    if not 0 < port < 65536:
        return DEFAULT_PORT
    return port


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"afkbot {BOT_VERSION}")
        raise typer.Exit()


async def run_bot(config: BotConfig) -> None:
    """Run the bot until the operator exits."""
    adapter = GameSessionAdapter(
        mineflayer_factory(hide_errors=config.hide_client_errors)
    )
    console = ConsoleIO(commands=completion_words())
    bot = Orchestrator(config, adapter, console)

    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, bot.shutdown)

    logger.info("Starting bot for %s", config.identity.username)
    await bot.run()


@app.command()
def main(
    host: Annotated[
        str | None, typer.Argument(help="Server hostname or address")
    ] = None,
    port: Annotated[
        str | None, typer.Argument(help="Server port (default 25565)")
    ] = None,
    username: Annotated[
        str | None, typer.Argument(help="Offline username or Microsoft email")
    ] = None,
    auth: Annotated[
        str, typer.Argument(help="Authentication mode: offline or microsoft")
    ] = "offline",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit",
        ),
    ] = False,
) -> None:
    """Connect to a server and keep the account online."""
    if not host or not username:
        typer.echo(USAGE)
        raise typer.Exit(code=1)

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    identity = SessionIdentity(
        host=host, port=parse_port(port), username=username, auth=auth
    )
    config = BotConfig.from_settings(settings, identity=identity)
    asyncio.run(run_bot(config))


if __name__ == "__main__":
    app()
