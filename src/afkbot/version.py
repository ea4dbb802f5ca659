"""Bot version tracking.

BOT_VERSION tracks user-visible bot behaviour: console commands, event
handling, reconnect and auto-eat policy. Bump this when behaviour
changes, not for dependency updates or refactors.

Bump rules:
- Patch (0.1.x): bug fixes, message wording, default tweaks
- Minor (0.x.0): new commands, new automatic behaviours
- Major (x.0.0): protocol client or architecture changes
"""

BOT_VERSION = "0.1.0"
