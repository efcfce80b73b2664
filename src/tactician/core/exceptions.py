"""Custom exception hierarchy for the Tactician turn assistant.

This module defines the exception hierarchy used across the suggestion
resolution pipeline. All exceptions inherit from TacticianError, enabling
unified error handling at the cycle boundary while preserving
domain-specific context in ``details``.

Example:
    >>> from tactician.core.exceptions import CostOverrunError
    >>> raise CostOverrunError("Not enough actions", required=2, remaining=1)
"""

from __future__ import annotations

from typing import Any


class TacticianError(Exception):
    """Base exception for all Tactician errors.

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
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Turn Engine Exceptions
# =============================================================================


class TurnEngineError(TacticianError):
    """Base exception for turn engine errors.

    Raised when there are issues with turn state, cost arbitration, or
    suggestion resolution.
    """


class TurnManagementError(TurnEngineError):
    """Raised when turn state cannot be created, read, or mutated.

    This includes missing turn state and overlapping resolution cycles
    for the same combatant.
    """

    def __init__(
        self,
        message: str,
        *,
        combatant_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize turn management error with combatant context.

        Args:
            message: Human-readable error description.
            combatant_id: Identifier of the combatant involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if combatant_id:
            combined_details["combatant_id"] = combatant_id
        super().__init__(message, details=combined_details)


class StaleTurnError(TurnManagementError):
    """Raised when a cycle finishes after the combatant's turn has moved on.

    The cycle result is discarded and the turn state cleared.
    """


class CostOverrunError(TurnManagementError):
    """Raised when an arbitrated cost exceeds the actions remaining."""

    def __init__(
        self,
        message: str,
        *,
        required: int | None = None,
        remaining: int | None = None,
        combatant_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize cost overrun error with action counts.

        Args:
            message: Human-readable error description.
            required: Minimum number of actions the suggestion needs.
            remaining: Actions the combatant has left this turn.
            combatant_id: Identifier of the combatant involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if required is not None:
            combined_details["required"] = required
        if remaining is not None:
            combined_details["remaining"] = remaining
        super().__init__(message, combatant_id=combatant_id, details=combined_details)


class InvalidCostError(TurnEngineError):
    """Raised when a cost value violates its own invariants.

    For example a range whose maximum is below its minimum.
    """


class PrerequisiteError(TurnEngineError):
    """Raised when a suggested action fails its prerequisite rule."""

    def __init__(
        self,
        message: str,
        *,
        action_name: str | None = None,
        target: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize prerequisite error with action context.

        Args:
            message: Human-readable failure reason.
            action_name: Canonical name of the rejected action.
            target: Target the action was aimed at.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if action_name:
            combined_details["action_name"] = action_name
        if target:
            combined_details["target"] = target
        super().__init__(message, details=combined_details)


# =============================================================================
# AI Control Exceptions
# =============================================================================


class AIControlError(TacticianError):
    """Base exception for all LLM-related errors."""

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AI control error with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class TransportError(AIControlError):
    """Raised when the LLM call fails or times out."""


class AIResponseError(AIControlError):
    """Raised when an LLM reply cannot be processed."""


class UnparseableReplyError(AIResponseError):
    """Raised when no action or target can be read from an LLM reply."""

    def __init__(
        self,
        message: str,
        *,
        reply_preview: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize unparseable reply error.

        Args:
            message: Human-readable error description.
            reply_preview: Leading portion of the offending reply.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if reply_preview is not None:
            combined_details["reply_preview"] = reply_preview
        super().__init__(message, details=combined_details)


# =============================================================================
# Configuration & Storage Exceptions
# =============================================================================


class ConfigurationError(TacticianError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class StorageError(TacticianError):
    """Raised when the turn state flag store cannot be read or written."""


__all__ = [
    # Base exception
    "TacticianError",
    # Turn engine exceptions
    "TurnEngineError",
    "TurnManagementError",
    "StaleTurnError",
    "CostOverrunError",
    "InvalidCostError",
    "PrerequisiteError",
    # AI control exceptions
    "AIControlError",
    "TransportError",
    "AIResponseError",
    "UnparseableReplyError",
    # Configuration & storage
    "ConfigurationError",
    "StorageError",
]
