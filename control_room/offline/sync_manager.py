# =============================================================================
# control_room/offline/sync_manager.py
# Queue Drain on Reconnect
# =============================================================================
"""
SyncManager - replays the mutation queue against the remote store.

Features:
- Triggered on every transition to online, or manually (``force_sync``);
  a reconnect also invalidates every memoized query
- Single-flight: a drain already in progress makes new triggers no-ops
- Works on one snapshot of the queue; entries queued meanwhile wait for
  the next trigger
- Sequential replay in insertion order, reordered only where an entry
  depends on a create that comes later
- Per-entry failures leave the entry queued and never abort the pass
- Provisional ids replaced by canonical ones are reconciled in the cache
  and in every later queue entry
"""

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from control_room.errors import ConnectivityError, ControlRoomError, QueueEntryError
from control_room.models import LocalId, RemoteId, needs_reconciliation
from .connection_manager import ConnectionManager, ConnectionState, ConnectionStatus
from .local_cache import LocalCache
from .query_cache import QueryCache
from .remote_gateway import RemoteGateway
from .sync_queue import QueuedMutation, SyncQueue

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Outcome of one drain pass."""
    success_count: int = 0
    failure_count: int = 0
    skipped_ids: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


@dataclass
class SyncState:
    """Current sync state."""
    is_syncing: bool = False
    last_sync: Optional[datetime] = None
    last_sync_success: Optional[datetime] = None
    pending_count: int = 0
    failed_count: int = 0
    total_synced: int = 0


def order_entries(entries: List[QueuedMutation]) -> List[QueuedMutation]:
    """
    Stable topological order of a queue snapshot.

    An entry waits for the create of every record id in its ``depends_on``
    and, for update/delete, for the create of its own record. Among ready
    entries the earliest queued goes first, so an already causal queue keeps
    its insertion order.
    """
    creators: Dict[str, str] = {}
    for entry in entries:
        if not entry.malformed and entry.action == "create" and entry.record_id:
            creators.setdefault(entry.record_id, entry.id)

    deps: Dict[str, Set[str]] = {}
    for entry in entries:
        needed: Set[str] = set()
        if not entry.malformed:
            for record_id in entry.depends_on:
                creator = creators.get(record_id)
                if creator and creator != entry.id:
                    needed.add(creator)
            if entry.action != "create" and entry.record_id in creators:
                needed.add(creators[entry.record_id])
        deps[entry.id] = needed

    ordered: List[QueuedMutation] = []
    emitted: Set[str] = set()
    remaining = list(entries)
    while remaining:
        for index, entry in enumerate(remaining):
            if deps[entry.id] <= emitted:
                break
        else:
            # Dependency cycle: fall back to insertion order
            index = 0
        entry = remaining.pop(index)
        ordered.append(entry)
        emitted.add(entry.id)
    return ordered


class SyncManager:
    """
    Drains the sync queue through the remote gateway.

    Usage:
        manager = SyncManager(queue, cache, gateway, monitor, notifier=notifier)
        manager.start()             # drain on every reconnect
        report = manager.force_sync()
    """

    def __init__(
        self,
        queue: SyncQueue,
        cache: LocalCache,
        gateway: RemoteGateway,
        monitor: ConnectionManager,
        notifier: Any = None,
        query_cache: Optional[QueryCache] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.queue = queue
        self.cache = cache
        self.gateway = gateway
        self.monitor = monitor
        self.notifier = notifier
        self.query_cache = query_cache
        self._clock = clock
        self._drain_lock = threading.Lock()
        self._state = SyncState(pending_count=queue.pending_count())
        self._callbacks: List[Callable[[SyncState], None]] = []
        self._started = False

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state.is_syncing

    @property
    def pending_count(self) -> int:
        return self._state.pending_count

    def start(self) -> None:
        """Subscribe to connectivity changes."""
        if self._started:
            return
        self.monitor.register_callback(self._on_connection_change)
        self._started = True
        logger.info("SyncManager started")

    def stop(self) -> None:
        self.monitor.unregister_callback(self._on_connection_change)
        self._started = False

    def _on_connection_change(self, state: ConnectionState) -> None:
        if state.status == ConnectionStatus.ONLINE:
            logger.info("Connection restored, triggering sync")
            self.sync_pending_changes()
            # Reads memoized while offline must go back to the remote store
            if self.query_cache is not None:
                self.query_cache.invalidate(())

    def force_sync(self) -> Optional[SyncReport]:
        """Manual "sync now" trigger."""
        return self.sync_pending_changes()

    def refresh_pending_count(self) -> int:
        self._state.pending_count = self.queue.pending_count()
        self._notify_callbacks()
        return self._state.pending_count

    # =========================================================================
    # DRAIN
    # =========================================================================

    def sync_pending_changes(self) -> Optional[SyncReport]:
        """
        Drain the queue once.

        Returns:
            SyncReport, or None when offline or a drain is already running
        """
        if not self.monitor.is_online:
            logger.debug("Cannot sync: offline")
            return None
        if not self._drain_lock.acquire(blocking=False):
            logger.debug("Sync already in progress, skipping trigger")
            return None

        try:
            self._state.is_syncing = True
            self._state.last_sync = self._clock()
            self._notify_callbacks()
            report = self._drain()
        finally:
            self._state.is_syncing = False
            self._drain_lock.release()

        self._state.total_synced += report.success_count
        self._state.failed_count = report.failure_count
        if report.failure_count == 0:
            self._state.last_sync_success = report.finished_at
        self.refresh_pending_count()
        self._announce(report)
        return report

    def _drain(self) -> SyncReport:
        report = SyncReport(started_at=self._clock())
        snapshot = self.queue.get_sync_queue()
        if not snapshot:
            report.finished_at = self._clock()
            return report

        logger.info(f"Syncing {len(snapshot)} queued changes")
        id_map: Dict[str, str] = {}
        failed_creates: Set[str] = set()
        applied: Set[Tuple[str, str]] = set()
        touched_tables: Set[str] = set()
        connectivity_lost: Optional[ConnectivityError] = None

        for entry in order_entries(snapshot):
            if entry.malformed:
                logger.error(f"Skipping malformed queue entry {entry.id}: {entry.error}")
                report.failure_count += 1
                report.skipped_ids.append(entry.id)
                continue

            self._remap(entry, id_map)
            blocked_by = [d for d in entry.depends_on if d in failed_creates]
            if entry.action != "create" and entry.record_id in failed_creates:
                blocked_by.append(entry.record_id)
            if blocked_by:
                logger.warning(f"Deferring {entry.id}: waits on failed create(s) {blocked_by}")
                self._count_failure(report, entry, failed_creates)
                continue

            try:
                record_id = self._apply(entry, id_map)
            except ConnectivityError as e:
                logger.warning(f"Sync of {entry.id} failed, remote unreachable: {e.message}")
                connectivity_lost = e
                self._count_failure(report, entry, failed_creates)
            except ControlRoomError as e:
                logger.warning(f"Sync of {entry.id} failed: {e}")
                self._count_failure(report, entry, failed_creates)
            except Exception as e:
                logger.error(f"Error syncing queue entry {entry.id}: {e}", exc_info=True)
                self._count_failure(report, entry, failed_creates)
            else:
                self.queue.remove_from_sync_queue(entry.id)
                report.success_count += 1
                touched_tables.add(entry.table)
                if entry.action != "delete":
                    applied.add((entry.table, record_id))

        self._mark_confirmed(applied)
        if self.query_cache is not None:
            for table in sorted(touched_tables):
                self.query_cache.invalidate((table,))
        if connectivity_lost is not None:
            self.monitor.report_connectivity_failure(connectivity_lost)

        report.finished_at = self._clock()
        logger.info(
            f"Sync complete: {report.success_count} success, {report.failure_count} failed"
        )
        return report

    @staticmethod
    def _count_failure(report: SyncReport, entry: QueuedMutation, failed_creates: Set[str]) -> None:
        report.failure_count += 1
        report.skipped_ids.append(entry.id)
        if entry.action == "create" and entry.record_id:
            failed_creates.add(entry.record_id)

    @staticmethod
    def _remap(entry: QueuedMutation, id_map: Dict[str, str]) -> None:
        """Apply reconciliations made earlier in this pass to a snapshot entry."""
        if not id_map:
            return
        entry.data = {k: id_map.get(v, v) if isinstance(v, str) else v for k, v in entry.data.items()}
        entry.depends_on = [id_map.get(d, d) for d in entry.depends_on]

    def _apply(self, entry: QueuedMutation, id_map: Dict[str, str]) -> str:
        """Send one entry to the gateway; returns the (canonical) record id."""
        record_id = entry.record_id
        if record_id is None:
            raise QueueEntryError("Queue entry has no record id", entry_id=entry.id)

        if entry.action == "create":
            canonical = self.gateway.insert(entry.table, entry.data)
            local = LocalId(record_id)
            remote = RemoteId(str(canonical.get("id") or record_id))
            if needs_reconciliation(local, remote):
                self._reconcile(entry.table, local, remote)
                id_map[local.value] = remote.value
            self._store_canonical(entry.table, remote.value, canonical)
            return remote.value

        if entry.action == "update":
            changes = {k: v for k, v in entry.data.items() if k != "id"}
            canonical = self.gateway.update(entry.table, record_id, changes)
            self._store_canonical(entry.table, record_id, canonical)
            return record_id

        if entry.action == "delete":
            self.gateway.delete(entry.table, record_id)
            self.cache.delete_from_local_cache(entry.table, record_id)
            return record_id

        raise QueueEntryError(f"Unknown action {entry.action!r}", entry_id=entry.id)

    def _reconcile(self, table: str, local: LocalId, remote: RemoteId) -> None:
        logger.info(f"Reconciling {table} id {local} -> {remote}")
        self.cache.rekey(table, local.value, remote.value)
        self.queue.rewrite_references(local.value, remote.value)

    def _store_canonical(self, table: str, record_id: str, canonical: Dict[str, Any]) -> None:
        """
        Fold server-filled fields into the cached record. Local values win so
        that edits queued after this entry stay visible; the record is marked
        synced once the pass confirms nothing else is pending for it.
        """
        current = self.cache.get_record(table, record_id)
        if current is None:
            return
        merged = {**canonical, **current.data, "id": record_id}
        self.cache.update_local_cache(table, record_id, merged, synced=False)

    def _mark_confirmed(self, applied: Set[Tuple[str, str]]) -> None:
        if not applied:
            return
        still_pending = {
            (e.table, e.record_id)
            for e in self.queue.get_sync_queue()
            if not e.malformed
        }
        for table, record_id in applied:
            if (table, record_id) not in still_pending:
                self.cache.mark_synced(table, record_id)

    # =========================================================================
    # NOTICES & CALLBACKS
    # =========================================================================

    def _announce(self, report: SyncReport) -> None:
        if self.notifier is None:
            return
        if report.success_count:
            self.notifier.success(f"تم مزامنة {report.success_count} تغيير")
        if report.failure_count:
            self.notifier.error(f"فشل مزامنة {report.failure_count} تغيير")

    def register_callback(self, callback: Callable[[SyncState], None]) -> None:
        """Register a callback for sync state changes."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[SyncState], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in sync callback: {e}")

    def get_status_display(self) -> Dict[str, Any]:
        """Plain dict for a sync badge."""
        return {
            "is_syncing": self._state.is_syncing,
            "last_sync": self._state.last_sync.isoformat() if self._state.last_sync else None,
            "last_success": self._state.last_sync_success.isoformat() if self._state.last_sync_success else None,
            "pending_count": self._state.pending_count,
            "failed_count": self._state.failed_count,
            "total_synced": self._state.total_synced,
        }
