"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        TacticianError: Base exception for all application errors.
        TurnManagementError, CostOverrunError, StaleTurnError: Turn errors.
        TransportError, UnparseableReplyError: LLM errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        configure_from_settings: Set up logging from Settings.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from tactician.core.config import (
    EngineSettings,
    LLMSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from tactician.core.exceptions import (
    AIControlError,
    AIResponseError,
    ConfigurationError,
    CostOverrunError,
    InvalidCostError,
    PrerequisiteError,
    StaleTurnError,
    StorageError,
    TacticianError,
    TransportError,
    TurnEngineError,
    TurnManagementError,
    UnparseableReplyError,
)
from tactician.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    unbind_context,
)


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
    "Settings",
    "LLMSettings",
    "EngineSettings",
    "StorageSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
