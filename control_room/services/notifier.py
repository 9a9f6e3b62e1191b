# =============================================================================
# control_room/services/notifier.py
# User-Visible Notices
# =============================================================================
"""
Notifiers carry short messages to the user: the neutral offline-save notice,
sync result counts, and errors for rejected online writes.

Repositories and the sync manager only call ``info/success/warning/error``;
the Streamlit implementation is wired in by the application container and
tests pass a MagicMock.
"""

from __future__ import annotations
import logging
import threading
from typing import List, Tuple

import streamlit as st

logger = logging.getLogger(__name__)


class Notifier:
    """Logs notices; base for display-specific notifiers."""

    def info(self, message: str) -> None:
        logger.info(message)

    def success(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)


class StreamlitNotifier(Notifier):
    """Transient toasts for info/success, persistent boxes for problems."""

    def info(self, message: str) -> None:
        super().info(message)
        st.toast(message, icon="💾")

    def success(self, message: str) -> None:
        super().success(message)
        st.toast(message, icon="✅")

    def warning(self, message: str) -> None:
        super().warning(message)
        st.warning(message)

    def error(self, message: str) -> None:
        super().error(message)
        st.error(message)


class RecordingNotifier(Notifier):
    """
    Keeps every notice in memory.

    The sync manager drains the queue on the connectivity monitor thread,
    where Streamlit calls have no page to draw on. Its notices are recorded
    here and replayed on the page thread with ``ControlRoom.flush_sync_notices``.
    """

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def _record(self, level: str, message: str) -> None:
        with self._lock:
            self.messages.append((level, message))

    def info(self, message: str) -> None:
        super().info(message)
        self._record("info", message)

    def success(self, message: str) -> None:
        super().success(message)
        self._record("success", message)

    def warning(self, message: str) -> None:
        super().warning(message)
        self._record("warning", message)

    def error(self, message: str) -> None:
        super().error(message)
        self._record("error", message)

    def drain(self) -> List[Tuple[str, str]]:
        """Return and forget the collected notices."""
        with self._lock:
            messages, self.messages = self.messages, []
        return messages
