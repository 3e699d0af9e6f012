"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        SoloRpgError: Base exception for all engine errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Data validation errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from solo_rpg.core.config import (
    GameSettings,
    NarrativeSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from solo_rpg.core.exceptions import (
    AttributeOutOfRangeError,
    CharacterDeadError,
    ConfigurationError,
    EffectApplicationError,
    GameEngineError,
    InvalidGameStateError,
    InvalidNotationError,
    NarrativeError,
    NarrativeGenerationError,
    NarrativeResponseError,
    NoPointsAvailableError,
    ProgressionError,
    RecordNotFoundError,
    SoloRpgError,
    StorageError,
    TurnInProgressError,
    UnknownAttributeError,
    UnknownResourceError,
    ValidationError,
)
from solo_rpg.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "SoloRpgError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Game engine exceptions
    "GameEngineError",
    "InvalidNotationError",
    "InvalidGameStateError",
    "TurnInProgressError",
    "CharacterDeadError",
    "ProgressionError",
    "NoPointsAvailableError",
    "UnknownAttributeError",
    "AttributeOutOfRangeError",
    "EffectApplicationError",
    "UnknownResourceError",
    # Narrative exceptions
    "NarrativeError",
    "NarrativeGenerationError",
    "NarrativeResponseError",
    # Storage exceptions
    "StorageError",
    "RecordNotFoundError",
    # Configuration
    "Settings",
    "GameSettings",
    "NarrativeSettings",
    "StorageSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
