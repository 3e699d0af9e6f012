"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from solo_rpg.core.config import (
    GameSettings,
    NarrativeSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from solo_rpg.core.exceptions import ConfigurationError


class TestGameSettings:
    """Tests for GameSettings configuration."""

    def test_default_values(self) -> None:
        """Test default rules-layer settings."""
        settings = GameSettings()

        assert settings.default_system == "Generic"
        assert settings.equipment_roll_bonus_cap == 5
        assert settings.minimum_damage == 0
        assert settings.context_message_limit == 20

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are read from prefixed environment variables."""
        monkeypatch.setenv("SOLO_RPG_GAME_EQUIPMENT_ROLL_BONUS_CAP", "2")
        monkeypatch.setenv("SOLO_RPG_GAME_DEFAULT_SYSTEM", "D&D 5e")

        settings = GameSettings()

        assert settings.equipment_roll_bonus_cap == 2
        assert settings.default_system == "D&D 5e"


class TestNarrativeSettings:
    """Tests for NarrativeSettings configuration."""

    def test_default_retries(self) -> None:
        """Test two extra attempts by default."""
        assert NarrativeSettings().max_retries == 2

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test retries are read from the narrative prefix."""
        monkeypatch.setenv("SOLO_RPG_NARRATIVE_MAX_RETRIES", "0")

        assert NarrativeSettings().max_retries == 0

    def test_retry_bounds(self) -> None:
        """Test out-of-range retry counts are rejected."""
        with pytest.raises(PydanticValidationError):
            NarrativeSettings(max_retries=11)

    def test_unrelated_narrative_variables_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test backend selection variables do not affect loading."""
        monkeypatch.setenv("SOLO_RPG_NARRATIVE_PROVIDER", "claude")
        monkeypatch.delenv("SOLO_RPG_NARRATIVE_CLAUDE_API_KEY", raising=False)

        assert get_settings().narrative.max_retries == 2


class TestStorageSettings:
    """Tests for StorageSettings configuration."""

    def test_default_path(self) -> None:
        """Test the default database location."""
        assert StorageSettings().database_path == Path("data/solo_rpg.db")

    def test_custom_path(self, tmp_path: Path) -> None:
        """Test a custom database path."""
        settings = StorageSettings(database_path=tmp_path / "game.db")

        assert settings.database_path == tmp_path / "game.db"


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default settings initialization."""
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.app_name == "Solo RPG"
        assert settings.app_version == "0.1.0"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.game, GameSettings)

    def test_debug_mode(self, mock_env_vars: dict[str, str]) -> None:
        """Test debug mode and nested settings from the environment."""
        settings = Settings()

        assert settings.debug is True
        assert settings.is_production is False
        assert settings.log_level == "DEBUG"
        assert settings.game.equipment_roll_bonus_cap == 3
        assert settings.narrative.max_retries == 4

    def test_is_production_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test is_production property."""
        monkeypatch.setenv("SOLO_RPG_DEBUG", "false")

        assert Settings().is_production is True


class TestGetSettings:
    """Tests for get_settings singleton function."""

    def test_returns_settings_instance(self) -> None:
        """Test that get_settings returns a Settings instance."""
        assert isinstance(get_settings(), Settings)

    def test_caching(self) -> None:
        """Test that settings are cached."""
        assert get_settings() is get_settings()

    def test_cache_clear(self) -> None:
        """Test that cache can be cleared."""
        settings1 = get_settings()
        clear_settings_cache()
        settings2 = get_settings()

        assert settings1 is not settings2

    def test_invalid_value_is_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test load failures are wrapped in ConfigurationError."""
        monkeypatch.setenv("SOLO_RPG_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()

        assert "original_error" in exc_info.value.details
