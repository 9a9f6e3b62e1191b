# =============================================================================
# control_room/offline/connection_manager.py
# Connectivity Monitor for the Remote Store
# =============================================================================
"""
ConnectionManager - tracks whether the remote store is reachable.

Features:
- Event-driven: ``set_online`` is the entry point for platform signals
- Optional background probe (socket check against the Supabase host)
- Callbacks on every status transition; each transition to online is
  time-stamped
- Optimistic default: ONLINE until something proves otherwise. A probe that
  cannot report (returns None) leaves the status untouched.
"""

from __future__ import annotations
import socket
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional
import logging

logger = logging.getLogger(__name__)

Probe = Callable[[], Optional[bool]]


class ConnectionStatus(Enum):
    """Reachability of the remote store as last observed."""
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass
class ConnectionState:
    """Snapshot passed to transition callbacks."""
    status: ConnectionStatus = ConnectionStatus.ONLINE
    last_check: Optional[datetime] = None
    last_online: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None


def socket_probe(host: Optional[str], port: int = 443, timeout: float = 5.0) -> Probe:
    """
    Build a probe that opens a TCP connection to ``host:port``.

    With no host configured the probe cannot report, so it returns None.
    """
    def probe() -> Optional[bool]:
        if not host:
            return None
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError as e:
            logger.debug(f"Probe to {host}:{port} failed: {e}")
            return False

    return probe


class ConnectionManager:
    """
    Connectivity monitor.

    Usage:
        monitor = ConnectionManager(probe=socket_probe(settings.supabase_host))
        monitor.register_callback(on_change)
        monitor.start_monitoring()
        if monitor.is_online:
            ...
    """

    CHECK_INTERVAL_ONLINE = 30      # Seconds between checks when online
    CHECK_INTERVAL_OFFLINE = 10     # Seconds between checks when offline

    def __init__(
        self,
        probe: Optional[Probe] = None,
        check_interval: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._probe = probe
        self._clock = clock
        self._state = ConnectionState(last_online=clock())
        self._state_lock = threading.Lock()
        self._callbacks: List[Callable[[ConnectionState], None]] = []
        self._monitor_thread: Optional[threading.Thread] = None
        self._stop_monitoring = threading.Event()
        if check_interval is not None:
            self.CHECK_INTERVAL_ONLINE = check_interval
            self.CHECK_INTERVAL_OFFLINE = min(check_interval, self.CHECK_INTERVAL_OFFLINE)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_online(self) -> bool:
        return self._state.status == ConnectionStatus.ONLINE

    @property
    def is_offline(self) -> bool:
        return self._state.status == ConnectionStatus.OFFLINE

    @property
    def last_online(self) -> Optional[datetime]:
        return self._state.last_online

    # =========================================================================
    # STATUS TRANSITIONS
    # =========================================================================

    def set_online(self, online: bool, error_message: Optional[str] = None) -> bool:
        """
        Record a connectivity signal. Returns True if the status changed.

        Callbacks run after the state lock is released, in the caller's thread.
        """
        new_status = ConnectionStatus.ONLINE if online else ConnectionStatus.OFFLINE
        with self._state_lock:
            old_status = self._state.status
            self._state.last_check = self._clock()
            if online:
                self._state.consecutive_failures = 0
                self._state.error_message = None
            else:
                self._state.consecutive_failures += 1
                self._state.error_message = error_message
            changed = old_status != new_status
            self._state.status = new_status
            if changed and online:
                self._state.last_online = self._clock()

        if changed:
            logger.info(f"Connection status changed: {old_status.value} -> {new_status.value}")
            self._notify_callbacks()
        return changed

    def report_connectivity_failure(self, error: Optional[Exception] = None) -> None:
        """A request failed at the transport level; go offline."""
        self.set_online(False, error_message=str(error) if error else None)

    def force_offline(self) -> None:
        """Treat the remote store as unreachable until the next transition."""
        self.set_online(False, error_message="forced offline")
        logger.info("Forced offline mode")

    def check_connection(self) -> ConnectionState:
        """
        Run the probe once and apply its answer.

        A probe result of None (cannot report) keeps the current status.
        """
        if self._probe is None:
            return self._state
        try:
            result = self._probe()
        except Exception as e:
            logger.error(f"Error in connection probe: {e}")
            result = None
        if result is not None:
            self.set_online(bool(result), error_message=None if result else "probe failed")
        return self._state

    # =========================================================================
    # BACKGROUND MONITORING
    # =========================================================================

    def start_monitoring(self) -> None:
        """Start the background probe thread (no-op without a probe)."""
        if self._probe is None:
            return
        if self._monitor_thread is not None and self._monitor_thread.is_alive():
            return

        self._stop_monitoring.clear()
        self._monitor_thread = threading.Thread(
            target=self._monitoring_loop,
            daemon=True,
            name="ConnectionMonitor",
        )
        self._monitor_thread.start()
        logger.debug("Connection monitoring started")

    def stop_monitoring(self) -> None:
        self._stop_monitoring.set()
        if self._monitor_thread:
            self._monitor_thread.join(timeout=5)
        logger.debug("Connection monitoring stopped")

    def _monitoring_loop(self) -> None:
        while not self._stop_monitoring.is_set():
            interval = (
                self.CHECK_INTERVAL_ONLINE
                if self.is_online
                else self.CHECK_INTERVAL_OFFLINE
            )
            if self._stop_monitoring.wait(timeout=interval):
                break
            self.check_connection()

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def register_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """Register a callback for connection status changes."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}", exc_info=True)

    def get_status_display(self) -> dict:
        """Plain dict for a status badge."""
        return {
            "status": self._state.status.value,
            "is_online": self.is_online,
            "last_check": self._state.last_check.isoformat() if self._state.last_check else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "failures": self._state.consecutive_failures,
            "error": self._state.error_message,
        }
