"""Library utilities for long-running console bots.

This package contains reusable, **parametric** abstractions configured
through arguments, never by editing the source. Game-specific code
belongs in afkbot.bot.

Modules:
- console: Rich output + prompt_toolkit input loop (ConsoleIO)
- guards: Single-flight guard flag (InFlightGuard)
- retry: Uncapped tenacity retry controller (retry_while)
- tasks: Tracked fire-and-forget tasks (BackgroundTasks)
- timers: Repeating and single-slot delayed timers
"""

from afkbot.lib.console import ConsoleIO, LineConsole
from afkbot.lib.guards import InFlightGuard
from afkbot.lib.retry import FailureHook, RetryHook, retry_while
from afkbot.lib.tasks import BackgroundTasks, ErrorHandler
from afkbot.lib.timers import RepeatingTimer, TimerCallback, TimerSlot

__all__ = [
    # Console
    "ConsoleIO",
    "LineConsole",
    # Guards
    "InFlightGuard",
    # Retry
    "FailureHook",
    "RetryHook",
    "retry_while",
    # Tasks
    "BackgroundTasks",
    "ErrorHandler",
    # Timers
    "RepeatingTimer",
    "TimerCallback",
    "TimerSlot",
]
