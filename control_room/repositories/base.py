# =============================================================================
# control_room/repositories/base.py
# Online/Offline Data Access for One Entity Type
# =============================================================================
"""
EntityRepository - the read/write facade the UI uses for one entity type.

Every operation picks its path from the connectivity monitor:

- Online reads go to the remote store and write through into the local
  cache; a failed remote read falls back to the cache.
- Offline reads come from the cache only.
- Online writes go straight to the remote store and refresh the cache as
  synced. A transport failure drops to the offline path.
- Offline writes update the cache as unsynced and enqueue a mutation, with
  a neutral "saved on the device" notice.
- A remote rejection while online is shown to the user and re-raised; it is
  never queued.
- Deletes always remove the cached record immediately.

Records with pending queue entries are routed through the queue even when
online, so replay order per record is preserved.

List reads are memoized in the shared QueryCache. A cache fallback after a
failed remote read is not memoized, and the whole memo is invalidated on
every reconnect.
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Callable, ClassVar, Dict, Generic, List, Optional, Sequence, Set, Tuple, Type, TypeVar

from control_room.errors import (
    ConnectivityError,
    DataValidationError,
    RemoteRejectedError,
    handle_error,
)
from control_room.models import EntityModel, LocalId
from control_room.offline.connection_manager import ConnectionManager
from control_room.offline.local_cache import LocalCache
from control_room.offline.query_cache import QueryCache, Transient
from control_room.offline.remote_gateway import RemoteGateway
from control_room.offline.sync_queue import SyncQueue

logger = logging.getLogger(__name__)

OFFLINE_NOTICE = "اتحفظ على الجهاز، هيتزامن لما النت يرجع"

M = TypeVar("M", bound=EntityModel)


def sort_rows(rows: List[Dict[str, Any]], order_by: Sequence[Tuple[str, bool]]) -> List[Dict[str, Any]]:
    """Multi-key stable sort of stored rows; missing values go last."""
    for column, descending in reversed(list(order_by)):
        present = [r for r in rows if r.get(column) is not None]
        missing = [r for r in rows if r.get(column) is None]
        present.sort(key=lambda r: r[column], reverse=descending)
        rows = present + missing
    return rows


def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    return all(str(row.get(k)) == str(v) for k, v in (filters or {}).items())


class EntityRepository(Generic[M]):
    """
    Base repository. Subclasses set ``model``, ``ORDER_BY``, the foreign-key
    fields in ``REFERENCES`` and the user-facing ``MESSAGES``.
    """

    model: ClassVar[Type[EntityModel]]
    ORDER_BY: ClassVar[Sequence[Tuple[str, bool]]] = ()
    # field name -> referenced table
    REFERENCES: ClassVar[Dict[str, str]] = {}
    # Tables whose queries depend on this one (deal deletes cascade remotely)
    DEPENDENT_TABLES: ClassVar[Tuple[str, ...]] = ()
    MESSAGES: ClassVar[Dict[str, str]] = {
        "created": "تمت الإضافة",
        "updated": "تم التحديث",
        "deleted": "تم الحذف",
        "failed": "حصل مشكلة",
    }

    def __init__(
        self,
        cache: LocalCache,
        queue: SyncQueue,
        gateway: RemoteGateway,
        monitor: ConnectionManager,
        query_cache: Optional[QueryCache] = None,
        notifier: Any = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.cache = cache
        self.queue = queue
        self.gateway = gateway
        self.monitor = monitor
        self.query_cache = query_cache or QueryCache()
        self.notifier = notifier
        self._clock = clock

    @property
    def table(self) -> str:
        return self.model.TABLE

    # =========================================================================
    # READS
    # =========================================================================

    def list(self) -> List[M]:
        """All records, ordered like the remote query."""
        return self._query((self.table,))

    def get_by_id(self, record_id: str) -> Optional[M]:
        row = self._fetch_one(record_id)
        return self._to_model(row) if row else None

    def _query(self, key: Tuple[Any, ...], filters: Optional[Dict[str, Any]] = None) -> List[M]:
        return self.query_cache.get_or_load(key, lambda: self._load(filters))

    def _load(self, filters: Optional[Dict[str, Any]] = None) -> Any:
        rows, fell_back = self._fetch_rows(filters)
        models = []
        for row in self._order(rows):
            model = self._to_model(row)
            if model is not None:
                models.append(model)
        # A failed remote read is retried on the next call
        return Transient(models) if fell_back else models

    def _order(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return sort_rows(rows, self.ORDER_BY)

    def _to_model(self, row: Dict[str, Any]) -> Optional[M]:
        try:
            return self.model.from_dict(row)
        except DataValidationError as e:
            logger.error(f"Unreadable {self.table} record {row.get('id')}: {e}")
            return None

    def _fetch_rows(
        self,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Dict[str, Any]], bool]:
        """
        Rows for the query and whether they are a cache fallback after a
        failed remote read.
        """
        fell_back = False
        if self.monitor.is_online:
            try:
                rows = self.gateway.select(self.table, order_by=self.ORDER_BY, filters=filters)
            except ConnectivityError as e:
                logger.info(f"Reading {self.table} from local cache: {e.message}")
                self.monitor.report_connectivity_failure(e)
                fell_back = True
            except RemoteRejectedError as e:
                logger.warning(f"Remote read of {self.table} failed, using local cache: {e.message}")
                fell_back = True
            else:
                return self._write_through(rows, filters), False

        cached = [row for row in self.cache.get_cached_data(self.table) if _matches(row, filters)]
        return cached, fell_back

    def _write_through(
        self,
        rows: List[Dict[str, Any]],
        filters: Optional[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        """
        Cache remote rows as synced without clobbering local writes that are
        still queued; overlay those local writes on the result.
        """
        pending = {r.id: r for r in self.cache.unsynced_records(self.table)}
        pending_deletes = self.queue.pending_record_ids(self.table, action="delete")

        fresh = [
            row for row in rows
            if str(row.get("id")) not in pending and str(row.get("id")) not in pending_deletes
        ]
        self.cache.cache_data(self.table, fresh)
        local = [r.data for r in pending.values() if _matches(r.data, filters)]
        return fresh + local

    def _fetch_one(self, record_id: str) -> Optional[Dict[str, Any]]:
        cached = self.cache.get_record(self.table, record_id)
        if cached is not None and not cached.synced:
            return cached.data

        if self.monitor.is_online:
            try:
                row = self.gateway.get_by_id(self.table, record_id)
            except ConnectivityError as e:
                self.monitor.report_connectivity_failure(e)
            except RemoteRejectedError as e:
                logger.warning(f"Remote read of {self.table}/{record_id} failed: {e.message}")
            else:
                if row is not None and str(record_id) not in self.queue.pending_record_ids(self.table, "delete"):
                    self.cache.update_local_cache(self.table, record_id, row, synced=True)
                    return row
                return None

        return cached.data if cached else None

    # =========================================================================
    # WRITES
    # =========================================================================

    def _creation_defaults(self) -> Dict[str, Any]:
        return {}

    def _has_field(self, name: str) -> bool:
        return name in self.model.field_names()

    def create(self, data: Dict[str, Any]) -> M:
        """Create a record; returns the stored (or provisional) model."""
        model = self.model.from_dict({**self._creation_defaults(), **data})
        record = model.to_dict()
        now = self._clock().isoformat()
        record["id"] = record.get("id") or str(LocalId.new())
        if self._has_field("created_at"):
            record["created_at"] = record.get("created_at") or now
        if self._has_field("updated_at"):
            record["updated_at"] = now

        if self.monitor.is_online and not self._depends_on_pending(record):
            try:
                canonical = self.gateway.insert(self.table, record)
            except ConnectivityError as e:
                self.monitor.report_connectivity_failure(e)
            except RemoteRejectedError as e:
                self._reject(e)
                raise
            else:
                self.cache.update_local_cache(self.table, canonical["id"], canonical, synced=True)
                self._changed()
                self._notify("success", self.MESSAGES["created"])
                return self.model.from_dict(canonical)

        return self._create_offline(record)

    def _create_offline(self, record: Dict[str, Any]) -> M:
        self.cache.update_local_cache(self.table, record["id"], record, synced=False)
        self.queue.add_to_sync_queue(
            self.table, "create", record, depends_on=self._dependencies(record)
        )
        logger.info(f"Queued offline create of {self.table}/{record['id']}")
        self._changed()
        self._notify("info", OFFLINE_NOTICE)
        return self.model.from_dict(record)

    def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[M]:
        """
        Apply a partial update. Returns the updated model, or None when the
        record is not cached and the update could only be queued.
        """
        normalized = self.model.normalize_changes(changes)
        if self._has_field("updated_at"):
            normalized["updated_at"] = self._clock().isoformat()

        if self.monitor.is_online and not self._is_pending(record_id):
            try:
                canonical = self.gateway.update(self.table, record_id, normalized)
            except ConnectivityError as e:
                self.monitor.report_connectivity_failure(e)
            except RemoteRejectedError as e:
                self._reject(e)
                raise
            else:
                self.cache.update_local_cache(self.table, record_id, canonical, synced=True)
                self._changed()
                self._notify("success", self.MESSAGES["updated"])
                return self.model.from_dict(canonical)

        return self._update_offline(record_id, normalized)

    def _update_offline(self, record_id: str, normalized: Dict[str, Any]) -> Optional[M]:
        merged = None
        if self.cache.get_record(self.table, record_id) is not None:
            merged = self.cache.merge_local_record(self.table, record_id, normalized)
        else:
            logger.warning(f"Queued update for uncached {self.table}/{record_id}")
        self.queue.add_to_sync_queue(
            self.table,
            "update",
            {"id": record_id, **normalized},
            depends_on=self._dependencies(normalized),
        )
        self._changed()
        self._notify("info", OFFLINE_NOTICE)
        return self.model.from_dict(merged) if merged else None

    def delete(self, record_id: str) -> None:
        """Delete a record; the cached copy is removed immediately."""
        self.cache.delete_from_local_cache(self.table, record_id)

        if self.monitor.is_online and not self._is_pending(record_id):
            try:
                self.gateway.delete(self.table, record_id)
            except ConnectivityError as e:
                self.monitor.report_connectivity_failure(e)
            except RemoteRejectedError as e:
                self._changed()
                self._reject(e)
                raise
            else:
                self._changed()
                self._notify("success", self.MESSAGES["deleted"])
                return

        self.queue.add_to_sync_queue(self.table, "delete", {"id": record_id})
        self._changed()
        self._notify("info", OFFLINE_NOTICE)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _is_pending(self, record_id: str) -> bool:
        return str(record_id) in self.queue.pending_record_ids(self.table)

    def _dependencies(self, record: Dict[str, Any]) -> List[str]:
        """Provisional ids this record points at (offline-created parents)."""
        deps = []
        for field_name, table in self.REFERENCES.items():
            value = record.get(field_name)
            if value and self.queue.has_pending_create(table, str(value)):
                deps.append(str(value))
        return deps

    def _depends_on_pending(self, record: Dict[str, Any]) -> bool:
        return bool(self._dependencies(record))

    def _changed(self) -> None:
        self.query_cache.invalidate((self.table,))
        for table in self.DEPENDENT_TABLES:
            self.query_cache.invalidate((table,))

    def _notify(self, level: str, message: str) -> None:
        if self.notifier is not None:
            getattr(self.notifier, level)(message)

    def _reject(self, error: RemoteRejectedError) -> None:
        handle_error(
            error,
            show_user_message=self.notifier is not None,
            user_message=f"{self.MESSAGES['failed']}: {error.message}",
            notifier=self.notifier,
        )
