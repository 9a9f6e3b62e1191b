# =============================================================================
# control_room/errors/exceptions.py
# Custom Exception Hierarchy for Control Room
# =============================================================================

from typing import Optional, Dict, Any


class ControlRoomError(Exception):
    """
    Base exception for all Control Room errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "NET_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "CR_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form for logs and ServiceResult metadata."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# REMOTE STORE EXCEPTIONS
# =============================================================================

class ConnectivityError(ControlRoomError):
    """
    Raised when the remote store cannot be reached at all.

    Covers DNS/socket failures and transport timeouts. Callers recover
    locally: reads fall back to the cache, writes go to the sync queue.
    """

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            code="NET_001",
            details=details,
            **kwargs,
        )


class RemoteRejectedError(ControlRoomError):
    """
    Raised when the remote store answered but refused the request
    (validation error, constraint violation, server error).

    Never queued for retry: replaying a rejected write repeats the failure.
    """

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        remote_code: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation
        if remote_code:
            details["remote_code"] = remote_code

        super().__init__(
            message=message,
            code="REMOTE_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# DATA LAYER EXCEPTIONS
# =============================================================================

class DataValidationError(ControlRoomError):
    """Raised when an entity or table name fails validation"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if expected:
            details["expected"] = expected
        if actual is not None:
            details["actual"] = actual

        super().__init__(
            message=message,
            code="DATA_001",
            details=details,
            **kwargs,
        )


class CurrencyConversionError(ControlRoomError):
    """Raised when an amount is in a currency missing from the rate table"""

    def __init__(self, message: str, currency: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if currency:
            details["currency"] = currency

        super().__init__(
            message=message,
            code="DATA_002",
            details=details,
            **kwargs,
        )


class QueueEntryError(ControlRoomError):
    """Raised when a queued mutation cannot be decoded or dispatched"""

    def __init__(self, message: str, entry_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if entry_id:
            details["entry_id"] = entry_id

        super().__init__(
            message=message,
            code="QUEUE_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(ControlRoomError):
    """Settings missing or unusable (Supabase credentials, numeric env values)."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
