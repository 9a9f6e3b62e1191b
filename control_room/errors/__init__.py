# =============================================================================
# control_room/errors/__init__.py
# Centralized Error Handling for Control Room
# =============================================================================

from .exceptions import (
    ControlRoomError,
    ConnectivityError,
    RemoteRejectedError,
    DataValidationError,
    CurrencyConversionError,
    QueueEntryError,
    ConfigurationError,
)

from .handlers import handle_error

__all__ = [
    # Exceptions
    "ControlRoomError",
    "ConnectivityError",
    "RemoteRejectedError",
    "DataValidationError",
    "CurrencyConversionError",
    "QueueEntryError",
    "ConfigurationError",
    # Handlers
    "handle_error",
]
