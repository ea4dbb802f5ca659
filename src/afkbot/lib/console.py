"""Interactive line console for long-running sessions.

Output goes through a Rich console; input comes from a prompt_toolkit
``PromptSession`` running under ``patch_stdout``, so lines printed by
event handlers appear above the live prompt instead of corrupting it.

Two channels, same object:
- **Output** (``echo`` / ``clear`` / ``reprompt``): callable from any
  handler on the event loop.
- **Input** (``lines()``): async iterator of operator lines, ended by
  ``close()`` or EOF.

Examples:
    >>> console = ConsoleIO(commands=["/help", "/exit"])
    >>> console.echo("[Login] Logged in as Steve")
    >>> async for line in console.lines():
    ...     await handle(line)
"""

from collections.abc import AsyncIterator, Iterable
from typing import Protocol

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console


class LineConsole(Protocol):
    """What a bot needs from its console."""

    def echo(self, message: str = "", *, style: str | None = None) -> None: ...

    def clear(self) -> None: ...

    def reprompt(self) -> None: ...

    def lines(self) -> AsyncIterator[str]: ...

    def close(self) -> None: ...


class ConsoleIO:
    """Rich output plus an async prompt_toolkit input loop.

    Args:
        prompt: Prompt string shown before each input line.
        commands: Words offered by tab completion.
        console: Rich console to print through (a plain one by default).
    """

    def __init__(
        self,
        *,
        prompt: str = "> ",
        commands: Iterable[str] = (),
        console: Console | None = None,
    ) -> None:
        self._prompt = prompt
        self._commands = list(commands)
        self._console = console or Console(highlight=False, markup=False)
        self._session: PromptSession[str] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def echo(self, message: str = "", *, style: str | None = None) -> None:
        """Print one message line."""
        self._console.print(message, style=style, soft_wrap=True)

    def clear(self) -> None:
        """Clear the terminal."""
        self._console.clear()

    def reprompt(self) -> None:
        """Redraw the input prompt after asynchronous output."""
        if self._session is None:
            return
        app = self._session.app
        if app.is_running:
            app.invalidate()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    async def lines(self) -> AsyncIterator[str]:
        """Yield operator lines until ``close()`` or EOF.

        Ctrl-C at the prompt raises ``KeyboardInterrupt`` to the caller.
        prompt_toolkit is kept away from SIGINT so a handler the caller
        installed on the loop survives every prompt.
        """
        self._session = PromptSession(
            message=self._prompt,
            history=InMemoryHistory(),
            completer=WordCompleter(self._commands, sentence=True),
        )
        with patch_stdout(raw=True):
            while not self._closed:
                try:
                    line = await self._session.prompt_async(handle_sigint=False)
                except EOFError:
                    return
                yield line

    def close(self) -> None:
        """Stop reading input; an active prompt returns immediately."""
        self._closed = True
        if self._session is None:
            return
        app = self._session.app
        if app.is_running and not app.is_done:
            app.exit(exception=EOFError)
