# =============================================================================
# control_room/errors/handlers.py
# Error Handling Utilities for Control Room
# =============================================================================
"""
Turning exceptions into log lines and user notices.

Notices go to a notifier (anything with an ``error(message)`` method, see
``control_room.services.notifier``) or straight to ``st.error`` when the
caller has none. Package errors log at WARNING when recoverable since the
offline path usually absorbs them; everything else logs at ERROR with the
traceback.
"""

from __future__ import annotations
from typing import Any, Optional

import streamlit as st

from control_room.logging import get_logger
from .exceptions import ControlRoomError

logger = get_logger(__name__)


SETTINGS_PREFIX = "خطأ في الإعدادات"


def _show(message: str, notifier: Any = None) -> None:
    if notifier is not None:
        notifier.error(message)
    else:
        st.error(message)


def _log(error: Exception, message: str) -> None:
    if isinstance(error, ControlRoomError):
        line = f"[{error.code}] {message}"
        if error.details:
            line += f" {error.details}"
        if error.recoverable:
            logger.warning(line)
        else:
            logger.error(line, exc_info=error)
    else:
        logger.error(f"[UNKNOWN] {message}", exc_info=error)


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    log_error: bool = True,
    user_message: Optional[str] = None,
    notifier: Any = None,
) -> str:
    """
    Log ``error`` and optionally show it to the user.

    Args:
        error: The exception
        show_user_message: Display a notice
        log_error: Write a log line
        user_message: Text to show instead of the error's own message
        notifier: Destination of the notice; ``st.error`` when None

    Returns:
        The message that was (or would have been) shown.
    """
    base = error.message if isinstance(error, ControlRoomError) else str(error)
    message = user_message or base
    if isinstance(error, ControlRoomError) and not error.recoverable:
        message = f"{SETTINGS_PREFIX}: {message}"

    if log_error:
        _log(error, base)
    if show_user_message:
        _show(message, notifier)
    return message
