"""Environment harness for running the bot.

This package contains the outer scaffolding around afkbot.bot:
- Command-line parsing and usage errors
- Logging setup
- Signal handling and the event loop

The behaviour lives in afkbot.bot; this code only wires it to a terminal.

Structure:
- cli/__main__.py: Entry point (``afkbot`` script)
"""
