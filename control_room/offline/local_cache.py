# =============================================================================
# control_room/offline/local_cache.py
# Local Persistent Cache of Entity Records
# =============================================================================
"""
LocalCache - durable per-entity-type record store.

Every record is wrapped as ``{id, data, synced, updated_at}``:
``synced=False`` means the last local write has not been confirmed by the
remote store yet.

Features:
- Bulk write-through of remote reads (``cache_data``) with a per-table
  "last synced" watermark
- Single-record upsert with an explicit sync flag
- Field-level merge for offline partial updates (transactional)
- Idempotent deletes, re-keying for id reconciliation
- DataFrame view for display layers
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from .local_database import LocalDatabase

logger = logging.getLogger(__name__)


@dataclass
class CachedRecord:
    """One cached entity payload plus its sync state."""
    id: str
    data: Dict[str, Any]
    synced: bool
    updated_at: str


class LocalCache:
    """Key-value record store, one SQLite table per entity type."""

    def __init__(self, db: LocalDatabase, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self._clock = clock

    def _now(self) -> str:
        return self._clock().isoformat()

    @staticmethod
    def _row_to_record(row) -> CachedRecord:
        return CachedRecord(
            id=row["id"],
            data=json.loads(row["data_json"]),
            synced=bool(row["synced"]),
            updated_at=row["updated_at"],
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    def cache_data(self, table: str, items: List[Dict[str, Any]]) -> None:
        """
        Upsert every item as synced and stamp the table's watermark.

        Items without an ``id`` are skipped with a warning.
        """
        table = self.db.check_table(table)
        now = self._now()
        with self.db.transaction() as conn:
            for item in items:
                record_id = item.get("id")
                if record_id is None:
                    logger.warning(f"Skipping {table} item without id")
                    continue
                conn.execute(
                    f"INSERT OR REPLACE INTO {table} (id, data_json, synced, updated_at) "
                    "VALUES (?, ?, 1, ?)",
                    [str(record_id), json.dumps(item, ensure_ascii=False, default=str), now],
                )
            conn.execute(
                "INSERT OR REPLACE INTO cache_meta (table_name, last_synced) VALUES (?, ?)",
                [table, now],
            )
        logger.debug(f"Cached {len(items)} {table} records")

    def update_local_cache(
        self,
        table: str,
        record_id: str,
        data: Dict[str, Any],
        synced: bool = False,
    ) -> None:
        """Upsert one record with an explicit sync flag."""
        table = self.db.check_table(table)
        with self.db.transaction() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO {table} (id, data_json, synced, updated_at) "
                "VALUES (?, ?, ?, ?)",
                [
                    str(record_id),
                    json.dumps(data, ensure_ascii=False, default=str),
                    1 if synced else 0,
                    self._now(),
                ],
            )

    def merge_local_record(
        self,
        table: str,
        record_id: str,
        partial: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Merge ``partial`` onto the cached payload and store it unsynced.

        New fields override, omitted fields keep their cached values. A record
        that is not cached yet starts from ``{"id": record_id}``.
        """
        table = self.db.check_table(table)
        with self.db.transaction():
            current = self.get_record(table, record_id)
            merged = dict(current.data) if current else {"id": record_id}
            merged.update(partial)
            self.update_local_cache(table, record_id, merged, synced=False)
        return merged

    def mark_synced(self, table: str, record_id: str) -> bool:
        """Flip a record's flag to synced; returns False if it is not cached."""
        table = self.db.check_table(table)
        with self.db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET synced = 1, updated_at = ? WHERE id = ?",
                [self._now(), str(record_id)],
            )
            return cursor.rowcount > 0

    def delete_from_local_cache(self, table: str, record_id: str) -> None:
        """Remove a record; deleting an unknown id is a no-op."""
        table = self.db.check_table(table)
        with self.db.transaction() as conn:
            conn.execute(f"DELETE FROM {table} WHERE id = ?", [str(record_id)])

    def rekey(self, table: str, old_id: str, new_id: str) -> bool:
        """Move a record to a new id, updating the payload's ``id`` field."""
        table = self.db.check_table(table)
        with self.db.transaction() as conn:
            record = self.get_record(table, old_id)
            if record is None:
                return False
            data = dict(record.data)
            data["id"] = new_id
            conn.execute(f"DELETE FROM {table} WHERE id = ?", [str(old_id)])
            conn.execute(
                f"INSERT OR REPLACE INTO {table} (id, data_json, synced, updated_at) "
                "VALUES (?, ?, ?, ?)",
                [
                    str(new_id),
                    json.dumps(data, ensure_ascii=False, default=str),
                    1 if record.synced else 0,
                    self._now(),
                ],
            )
        logger.info(f"Re-keyed {table} record {old_id} -> {new_id}")
        return True

    def clear_all(self) -> None:
        """Administrative reset: every store, the queue and the metadata."""
        with self.db.transaction() as conn:
            for table in self.db.tables:
                conn.execute(f"DELETE FROM {table}")
            conn.execute("DELETE FROM sync_queue")
            conn.execute("DELETE FROM cache_meta")
        logger.warning("Local cache cleared")

    # =========================================================================
    # READS
    # =========================================================================

    def get_cached_data(self, table: str) -> List[Dict[str, Any]]:
        """All cached payloads of a table, synced or not."""
        table = self.db.check_table(table)
        rows = self.db.connection.execute(
            f"SELECT id, data_json, synced, updated_at FROM {table} ORDER BY rowid"
        ).fetchall()
        return [json.loads(row["data_json"]) for row in rows]

    def get_record(self, table: str, record_id: str) -> Optional[CachedRecord]:
        table = self.db.check_table(table)
        row = self.db.connection.execute(
            f"SELECT id, data_json, synced, updated_at FROM {table} WHERE id = ?",
            [str(record_id)],
        ).fetchone()
        return self._row_to_record(row) if row else None

    def unsynced_records(self, table: str) -> List[CachedRecord]:
        table = self.db.check_table(table)
        rows = self.db.connection.execute(
            f"SELECT id, data_json, synced, updated_at FROM {table} WHERE synced = 0 ORDER BY rowid"
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def get_cache_metadata(self, table: str) -> Optional[datetime]:
        """When ``table`` was last bulk-refreshed from the remote store."""
        table = self.db.check_table(table)
        row = self.db.connection.execute(
            "SELECT last_synced FROM cache_meta WHERE table_name = ?", [table]
        ).fetchone()
        if row is None or row["last_synced"] is None:
            return None
        return datetime.fromisoformat(row["last_synced"])

    def to_dataframe(self, table: str) -> pd.DataFrame:
        """Cached payloads of ``table`` as a DataFrame (empty frame if none)."""
        return pd.DataFrame(self.get_cached_data(table))
