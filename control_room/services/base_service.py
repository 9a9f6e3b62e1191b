# =============================================================================
# control_room/services/base_service.py
# Service Results and the Service Base Class
# =============================================================================

from __future__ import annotations
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from control_room.errors import ControlRoomError, handle_error
from control_room.logging import LogContext, get_logger


@dataclass
class ServiceResult:
    """
    Outcome of a service call. Truthy on success.

    Display code branches on the result instead of catching exceptions:

        result = room.dashboard.load_overview()
        if result:
            render(result.data)
        else:
            st.error(result.error)
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any = None, **metadata: Any) -> ServiceResult:
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, error_code: str = "UNKNOWN", **metadata: Any) -> ServiceResult:
        return cls(success=False, error=error, error_code=error_code, metadata=metadata)

    @classmethod
    def from_exception(cls, e: Exception) -> ServiceResult:
        """Keep the code and details of package errors; anything else is EXCEPTION."""
        if isinstance(e, ControlRoomError):
            return cls.fail(e.message, error_code=e.code, **e.details)
        return cls.fail(str(e), error_code="EXCEPTION")

    def unwrap(self) -> Any:
        """Return ``data`` or raise a RuntimeError carrying the error."""
        if not self.success:
            raise RuntimeError(f"[{self.error_code}] {self.error}")
        return self.data


class BaseService(ABC):
    """
    Shared plumbing for services: a class-named logger, an optional notifier
    and ``safe_execute`` which turns failures into ``ServiceResult.fail``.
    """

    def __init__(self, notifier: Any = None):
        self.logger = get_logger(self.__class__.__name__)
        self.notifier = notifier

    def log_operation(self, operation: str, **fields: Any) -> LogContext:
        return LogContext(self.logger, operation, **fields)

    def safe_execute(
        self,
        operation: str,
        func: Callable[..., Any],
        *args,
        notify: bool = False,
        **kwargs,
    ) -> ServiceResult:
        """
        Run ``func`` inside a timed log context.

        Package errors go through ``handle_error`` (shown through the
        notifier only when ``notify`` is set); any other exception is
        logged with its traceback. Neither escapes.
        """
        try:
            with self.log_operation(operation):
                data = func(*args, **kwargs)
        except ControlRoomError as e:
            handle_error(e, show_user_message=notify, notifier=self.notifier)
            return ServiceResult.from_exception(e)
        except Exception as e:
            self.logger.error(f"{operation} failed: {e}")
            if notify and self.notifier is not None:
                self.notifier.error(f"حصل خطأ أثناء: {operation}")
            return ServiceResult.from_exception(e)
        return ServiceResult.ok(data)
