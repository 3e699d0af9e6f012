"""Custom exception hierarchy for the solo RPG turn engine.

Every error raised by the package inherits from SoloRpgError so callers
can handle failures uniformly at the session boundary while still
catching the narrower domain errors where they matter (dice notation,
level-up allocation, effect application, narrative generation).

Example:
    >>> from solo_rpg.core.exceptions import InvalidNotationError
    >>> raise InvalidNotationError("Sides out of range", notation="1d1")
"""

from __future__ import annotations

from typing import Any


class SoloRpgError(Exception):
    """Base exception for all solo RPG engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(SoloRpgError):
    """Raised when settings are missing or inconsistent."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with the offending key.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(SoloRpgError):
    """Raised when domain data fails validation outside of pydantic."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


# =============================================================================
# Game Engine Exceptions
# =============================================================================


class GameEngineError(SoloRpgError):
    """Base exception for rules-layer errors."""


class InvalidNotationError(GameEngineError):
    """Raised when a dice notation string does not parse or is out of range."""

    def __init__(
        self,
        message: str,
        *,
        notation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize notation error with the rejected input.

        Args:
            message: Human-readable error description.
            notation: The notation string that was rejected.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if notation is not None:
            combined_details["notation"] = notation
        super().__init__(message, details=combined_details)


class InvalidGameStateError(GameEngineError):
    """Raised when an operation is attempted in an invalid turn state."""

    def __init__(
        self,
        message: str,
        *,
        current_state: str | None = None,
        expected_states: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize state error with state context.

        Args:
            message: Human-readable error description.
            current_state: The current turn state.
            expected_states: List of valid states for the operation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if current_state:
            combined_details["current_state"] = current_state
        if expected_states:
            combined_details["expected_states"] = expected_states
        super().__init__(message, details=combined_details)


class TurnInProgressError(InvalidGameStateError):
    """Raised when input arrives while another turn is still resolving."""


class CharacterDeadError(InvalidGameStateError):
    """Raised when input arrives after the character has died."""


class ProgressionError(GameEngineError):
    """Base exception for experience and attribute allocation errors."""


class NoPointsAvailableError(ProgressionError):
    """Raised when allocating an attribute point with none pending."""


class UnknownAttributeError(ProgressionError):
    """Raised when an attribute name is not part of the system template."""

    def __init__(
        self,
        message: str,
        *,
        attribute: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if attribute:
            combined_details["attribute"] = attribute
        super().__init__(message, details=combined_details)


class AttributeOutOfRangeError(ProgressionError):
    """Raised when an allocation would push an attribute past its bounds."""

    def __init__(
        self,
        message: str,
        *,
        attribute: str | None = None,
        value: int | None = None,
        min_value: int | None = None,
        max_value: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize range error with the attempted value and bounds.

        Args:
            message: Human-readable error description.
            attribute: Attribute being changed.
            value: The value the attribute would have reached.
            min_value: Lower bound from the template.
            max_value: Upper bound from the template.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if attribute:
            combined_details["attribute"] = attribute
        if value is not None:
            combined_details["value"] = value
        if min_value is not None:
            combined_details["min_value"] = min_value
        if max_value is not None:
            combined_details["max_value"] = max_value
        super().__init__(message, details=combined_details)


class EffectApplicationError(GameEngineError):
    """Raised when a character effect cannot be applied."""

    def __init__(
        self,
        message: str,
        *,
        effect_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if effect_type:
            combined_details["effect_type"] = effect_type
        super().__init__(message, details=combined_details)


class UnknownResourceError(EffectApplicationError):
    """Raised when an effect names a resource the character does not track."""

    def __init__(
        self,
        message: str,
        *,
        resource_name: str | None = None,
        effect_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if resource_name:
            combined_details["resource_name"] = resource_name
        super().__init__(message, effect_type=effect_type, details=combined_details)


# =============================================================================
# Narrative Generator Exceptions
# =============================================================================


class NarrativeError(SoloRpgError):
    """Base exception for narrative generator failures."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize narrative error with provider context.

        Args:
            message: Human-readable error description.
            provider: The generator backend that failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class NarrativeGenerationError(NarrativeError):
    """Raised when the generator call itself fails (network, quota, timeout)."""


class NarrativeResponseError(NarrativeError):
    """Raised when generator output cannot be interpreted."""


# =============================================================================
# Storage Exceptions
# =============================================================================


class StorageError(SoloRpgError):
    """Base exception for persistence failures."""


class RecordNotFoundError(StorageError):
    """Raised when a record lookup finds nothing."""

    def __init__(
        self,
        message: str,
        *,
        record_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if record_id:
            combined_details["record_id"] = record_id
        super().__init__(message, details=combined_details)


__all__ = [
    "SoloRpgError",
    "ConfigurationError",
    "ValidationError",
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
    "NarrativeError",
    "NarrativeGenerationError",
    "NarrativeResponseError",
    "StorageError",
    "RecordNotFoundError",
]
