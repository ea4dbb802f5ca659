"""Minecraft AFK bot with an interactive console.

Keeps an account logged in on a server: jumps on a timer so the server
does not kick it for idling, eats when hungry, respawns after death and
reconnects after kicks, while the operator chats and issues commands
from the terminal.

Structure:
- afkbot/bot/: Bot behaviour
  - orchestrator.py: Owns session state, routes events and commands
  - session.py: GameSession adapter over a protocol client
  - mineflayer.py: Protocol client backed by mineflayer
  - anti_idle.py: Timed jump pulses
  - auto_eat.py: Food selection and the eat sequence
  - reconnect.py: Reconnect state machine
  - commands.py: Console line parsing and the command table
  - config.py: Configuration via pydantic-settings
  - models.py: Session, event, action and statistics models
  - errors.py: Tagged error hierarchy

- afkbot/lib/: Reusable asyncio helpers (timers, guards, retry, console)

- afkbot/environment/: Process entry points
  - cli/__main__.py: The ``afkbot`` command
"""
