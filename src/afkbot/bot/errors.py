"""Error taxonomy for the bot.

Every error carries the tag of the component that raised it, so console
messages can be prefixed consistently (``[AutoEat] ...``,
``[Reconnect] ...``). Kicks and connection ends are events, not errors;
see afkbot.bot.models.
"""


class BotError(Exception):
    """Base class for recoverable bot errors."""

    tag: str = "Bot"

    def __init__(self, message: str, *, tag: str | None = None) -> None:
        super().__init__(message)
        if tag is not None:
            self.tag = tag

    @property
    def message(self) -> str:
        return str(self)


class SessionUnavailable(BotError):
    """An action was attempted with no live session."""

    tag = "Session"

    def __init__(self, message: str = "Not connected", *, tag: str | None = None) -> None:
        super().__init__(message, tag=tag)


class ActionFailed(BotError):
    """The game client rejected an action (chat, equip, consume, ...)."""

    tag = "Action"


class ConnectFailed(BotError):
    """Creating a session failed before any event was delivered."""

    tag = "Connect"


class InvalidInput(BotError):
    """Operator input could not be interpreted."""

    tag = "Command"
