"""Configuration management using pydantic-settings.

Two layers:
1. ``Settings``: process defaults from environment variables
   (``AFKBOT_*``) and ``.env`` / ``.env.local`` files. Read once.
2. ``BotConfig``: the per-run configuration built from settings plus the
   command-line identity. Immutable in practice except for the fields the
   console commands toggle (auto-reconnect, jump interval, auto-eat).

Usage:
    from afkbot.bot.config import settings, BotConfig
    config = BotConfig.from_settings(settings, identity=identity)
"""

import logging
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from afkbot.bot.models import SessionIdentity

logger = logging.getLogger(__name__)

MIN_JUMP_INTERVAL_MS = 100
MAX_FOOD = 20
MAX_HEALTH = 20


class Settings(BaseSettings):
    """Process-wide defaults loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="AFKBOT_",
        env_file=(".env", ".env.local"),
        extra="ignore",
    )

    @model_validator(mode="after")
    def warn_risky_values(self) -> Self:
        """Warn about settings that make the bot misbehave on purpose."""
        if self.reconnect_delay_seconds < 1:
            logger.warning(
                "reconnect delay %.2fs is very short; an unreachable host "
                "will be retried almost continuously",
                self.reconnect_delay_seconds,
            )
        return self

    # ==========================================================================
    # RECONNECT
    # ==========================================================================

    auto_reconnect: bool = Field(
        default=True, description="Reconnect after kicks and dropped connections"
    )

    reconnect_delay_seconds: float = Field(
        default=10.0, ge=0, description="Fixed wait before each reconnect attempt"
    )

    manual_reconnect_delay_seconds: float = Field(
        default=1.0, ge=0, description="Wait before connecting after /reconnect"
    )

    # ==========================================================================
    # ANTI-IDLE
    # ==========================================================================

    jump_interval_ms: int = Field(
        default=1000,
        ge=MIN_JUMP_INTERVAL_MS,
        description="Milliseconds between anti-idle jumps",
    )

    jump_release_ms: int = Field(
        default=300, ge=0, description="How long each jump key press is held"
    )

    # ==========================================================================
    # AUTO-EAT
    # ==========================================================================

    auto_eat_enabled: bool = Field(default=True, description="Eat when hungry")

    auto_eat_start_at: int = Field(
        default=14,
        ge=0,
        le=MAX_FOOD,
        description="Eat when the food bar drops below this value",
    )

    banned_foods: list[str] = Field(
        default_factory=list, description="Item names never eaten"
    )

    # ==========================================================================
    # PROCESS
    # ==========================================================================

    exit_grace_seconds: float = Field(
        default=0.5, ge=0, description="Output flush delay before exiting"
    )

    hide_client_errors: bool = Field(
        default=False,
        description="Silence the protocol client's own error output",
    )


class AutoEatConfig(BaseModel):
    """Auto-eat settings; toggled at runtime by /toggle eat."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = True
    start_at: int = Field(default=14, ge=0, le=MAX_FOOD)
    banned_foods: frozenset[str] = frozenset()


class BotConfig(BaseModel):
    """Configuration for one bot run.

    Only ``auto_reconnect``, ``jump_interval_ms`` and ``auto_eat`` change
    after startup, and only through console commands.
    """

    model_config = ConfigDict(validate_assignment=True)

    identity: SessionIdentity
    auto_reconnect: bool = True
    jump_interval_ms: int = Field(default=1000, ge=MIN_JUMP_INTERVAL_MS)
    auto_eat: AutoEatConfig = Field(default_factory=AutoEatConfig)

    reconnect_delay: float = Field(default=10.0, ge=0)
    manual_reconnect_delay: float = Field(default=1.0, ge=0)
    jump_release_delay: float = Field(default=0.3, ge=0)
    exit_grace: float = Field(default=0.5, ge=0)
    hide_client_errors: bool = False

    @classmethod
    def from_settings(cls, settings: Settings, *, identity: SessionIdentity) -> Self:
        """Combine process settings with a command-line identity."""
        return cls(
            identity=identity,
            auto_reconnect=settings.auto_reconnect,
            jump_interval_ms=settings.jump_interval_ms,
            auto_eat=AutoEatConfig(
                enabled=settings.auto_eat_enabled,
                start_at=settings.auto_eat_start_at,
                banned_foods=frozenset(settings.banned_foods),
            ),
            reconnect_delay=settings.reconnect_delay_seconds,
            manual_reconnect_delay=settings.manual_reconnect_delay_seconds,
            jump_release_delay=settings.jump_release_ms / 1000,
            exit_grace=settings.exit_grace_seconds,
            hide_client_errors=settings.hide_client_errors,
        )


# Singleton instance
settings = Settings.model_validate({})
