# =============================================================================
# control_room/app.py
# Application Container
# =============================================================================
"""
ControlRoom - builds every long-lived service once and wires them together.

Collaborators are passed in explicitly so tests can swap the gateway, the
connectivity probe, the notifier or the clock. ``get_control_room()`` keeps
one instance for the lifetime of the process.
"""

from __future__ import annotations
import logging
import threading
from datetime import date, datetime
from typing import Any, Callable, Optional

from control_room.logging import setup_logging
from control_room.models import CurrencyTable
from control_room.offline import (
    ConnectionManager,
    LocalCache,
    LocalDatabase,
    QueryCache,
    RemoteGateway,
    SupabaseGateway,
    SyncManager,
    SyncQueue,
    socket_probe,
)
from control_room.repositories import (
    CallRepository,
    DailyMoveRepository,
    DealEventRepository,
    DealFileRepository,
    DealRepository,
    DealTaskRepository,
    DebtRepository,
    JobRepository,
)
from control_room.services import DashboardService, Notifier, RecordingNotifier, StreamlitNotifier
from control_room.settings import Settings, create_supabase_client, load_settings

logger = logging.getLogger(__name__)


class ControlRoom:
    """
    Usage:
        room = ControlRoom(load_settings())
        room.start()                 # probe loop + drain on reconnect
        room.flush_sync_notices()    # on every page rerun
        room.deals.create({"name": "صفقة"})
        report = room.dashboard.get_priority_report()
    """

    def __init__(
        self,
        settings: Settings,
        gateway: Optional[RemoteGateway] = None,
        monitor: Optional[ConnectionManager] = None,
        notifier: Any = None,
        clock: Callable[[], datetime] = datetime.now,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.notifier = notifier if notifier is not None else Notifier()
        self.currency_table = CurrencyTable(settings.currency_rates)

        self.db = LocalDatabase(settings.db_path)
        self.db.initialize()
        self.cache = LocalCache(self.db, clock=clock)
        self.queue = SyncQueue(self.db, clock=clock)
        self.query_cache = QueryCache()

        self.monitor = monitor or ConnectionManager(
            probe=socket_probe(settings.supabase_host),
            check_interval=settings.probe_interval,
            clock=clock,
        )
        self.gateway = gateway or SupabaseGateway(lambda: create_supabase_client(settings))

        # Drains run on the monitor thread; the page replays these notices
        self.sync_notices = RecordingNotifier()
        self.sync_manager = SyncManager(
            self.queue,
            self.cache,
            self.gateway,
            self.monitor,
            notifier=self.sync_notices,
            query_cache=self.query_cache,
            clock=clock,
        )

        repo_args = dict(
            cache=self.cache,
            queue=self.queue,
            gateway=self.gateway,
            monitor=self.monitor,
            query_cache=self.query_cache,
            notifier=self.notifier,
            clock=clock,
        )
        self.deals = DealRepository(**repo_args)
        self.debts = DebtRepository(**repo_args)
        self.jobs = JobRepository(**repo_args)
        self.calls = CallRepository(**repo_args)
        self.deal_tasks = DealTaskRepository(**repo_args)
        self.deal_events = DealEventRepository(**repo_args)
        self.deal_files = DealFileRepository(**repo_args)
        self.daily_moves = DailyMoveRepository(**repo_args)

        self.dashboard = DashboardService(
            self.deals,
            self.debts,
            self.jobs,
            self.calls,
            self.deal_tasks,
            self.query_cache,
            currency_table=self.currency_table,
            today=today,
            notifier=self.notifier,
        )
        self._started = False

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online

    def start(self) -> None:
        """Subscribe the sync manager and start the connectivity probe."""
        if self._started:
            return
        self.sync_manager.start()
        if self.settings.has_remote:
            self.monitor.start_monitoring()
        else:
            logger.warning("Supabase credentials missing; running on the local cache only")
        self._started = True

    def stop(self) -> None:
        self.monitor.stop_monitoring()
        self.sync_manager.stop()
        self.dashboard.close()
        self.db.close()
        self._started = False

    def flush_sync_notices(self) -> int:
        """
        Show the notices collected from sync passes since the last call.

        Called by the page on every rerun; returns how many were shown.
        """
        notices = self.sync_notices.drain()
        for level, message in notices:
            getattr(self.notifier, level)(message)
        return len(notices)

    def get_status(self) -> dict:
        """Connection and sync status for a status badge."""
        return {
            "connection": self.monitor.get_status_display(),
            "sync": self.sync_manager.get_status_display(),
        }


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_control_room: Optional[ControlRoom] = None
_control_room_lock = threading.Lock()


def get_control_room(settings: Optional[Settings] = None) -> ControlRoom:
    """
    Get the process-wide ControlRoom, creating and starting it on first use.

    Logging is configured from the settings the first time through.
    """
    global _control_room
    if _control_room is None:
        with _control_room_lock:
            if _control_room is None:
                settings = settings or load_settings()
                setup_logging(
                    level=logging.getLevelName(settings.log_level.upper()),
                    log_to_file=True,
                )
                room = ControlRoom(settings, notifier=StreamlitNotifier())
                room.start()
                _control_room = room
    return _control_room


def reset_control_room() -> None:
    """Stop and forget the global instance."""
    global _control_room
    with _control_room_lock:
        if _control_room is not None:
            _control_room.stop()
            _control_room = None
