"""Configuration management for the solo RPG turn engine.

Settings are loaded with pydantic-settings from environment variables and
an optional ``.env`` file.

Example:
    >>> from solo_rpg.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.game.equipment_roll_bonus_cap
    5

Environment Variables:
    SOLO_RPG_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    SOLO_RPG_GAME_DEFAULT_SYSTEM: RPG system used when a campaign names none
    SOLO_RPG_NARRATIVE_MAX_RETRIES: Extra generation attempts after a failure
    SOLO_RPG_STORAGE_DATABASE_PATH: SQLite file for turn persistence
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from solo_rpg.core.exceptions import ConfigurationError


class GameSettings(BaseSettings):
    """Tunables for the rules layer.

    Attributes:
        default_system: RPG system name used when none is given.
        equipment_roll_bonus_cap: Ceiling on the summed equipment roll bonus.
        minimum_damage: Floor applied after armor reduction.
        context_message_limit: History window handed to the narrative generator.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOLO_RPG_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_system: str = Field(
        default="Generic",
        description="RPG system used when a campaign names none",
    )
    equipment_roll_bonus_cap: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Maximum total roll bonus granted by carried equipment",
    )
    minimum_damage: int = Field(default=0, ge=0)
    context_message_limit: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Number of recent messages sent as narrative context",
    )


class NarrativeSettings(BaseSettings):
    """Configuration for calls to the narrative generator.

    Attributes:
        max_retries: Extra attempts after a failed generation call.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOLO_RPG_NARRATIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_retries: int = Field(default=2, ge=0, le=10, description="Retry attempts")


class StorageSettings(BaseSettings):
    """Configuration for turn persistence.

    Attributes:
        database_path: Path to the SQLite database file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOLO_RPG_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path("data/solo_rpg.db"),
        description="Path to SQLite database",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        game: Rules-layer settings.
        narrative: Narrative generator settings.
        storage: Persistence settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOLO_RPG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="Solo RPG", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    game: GameSettings = Field(default_factory=GameSettings)
    narrative: NarrativeSettings = Field(default_factory=NarrativeSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            True if not in debug mode.
        """
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "GameSettings",
    "NarrativeSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
