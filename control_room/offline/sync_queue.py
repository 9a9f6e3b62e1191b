# =============================================================================
# control_room/offline/sync_queue.py
# Durable Mutation Queue
# =============================================================================
"""
SyncQueue - ordered log of writes waiting for remote confirmation.

Entries are kept in insertion order (an AUTOINCREMENT sequence column) and
are only removed once the sync manager confirms the remote store applied
them. An entry may name the provisional ids it depends on (``depends_on``),
e.g. a call created offline for a deal that was also created offline.
"""

from __future__ import annotations
import json
import logging
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from control_room.errors import DataValidationError
from .local_database import LocalDatabase

logger = logging.getLogger(__name__)

ACTIONS = ("create", "update", "delete")

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class QueuedMutation:
    """One pending write."""
    id: str
    table: str
    action: str
    data: Dict[str, Any]
    created_at: str
    depends_on: List[str] = field(default_factory=list)
    malformed: bool = False
    error: Optional[str] = None

    @property
    def record_id(self) -> Optional[str]:
        value = self.data.get("id") if isinstance(self.data, dict) else None
        return str(value) if value is not None else None


class SyncQueue:
    """FIFO mutation queue stored next to the local cache."""

    def __init__(self, db: LocalDatabase, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self._clock = clock

    @staticmethod
    def _generate_id(table: str, action: str) -> str:
        suffix = "".join(random.choices(_ID_ALPHABET, k=9))
        return f"{table}-{action}-{int(time.time() * 1000)}-{suffix}"

    def add_to_sync_queue(
        self,
        table: str,
        action: str,
        data: Dict[str, Any],
        depends_on: Optional[List[str]] = None,
    ) -> str:
        """
        Append a mutation and return its id.

        Args:
            table: Entity store the mutation targets
            action: create | update | delete
            data: Payload (full record for create, changes + id for update,
                ``{"id": ...}`` for delete)
            depends_on: Provisional record ids that must exist remotely first
        """
        table = self.db.check_table(table)
        if action not in ACTIONS:
            raise DataValidationError(
                f"Unknown queue action: {action!r}",
                field="action",
                expected=", ".join(ACTIONS),
                actual=str(action),
            )

        with self.db.transaction() as conn:
            while True:
                entry_id = self._generate_id(table, action)
                exists = conn.execute(
                    "SELECT 1 FROM sync_queue WHERE id = ?", [entry_id]
                ).fetchone()
                if not exists:
                    break
            conn.execute(
                """
                INSERT INTO sync_queue (id, table_name, action, data_json, depends_on_json, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    entry_id,
                    table,
                    action,
                    json.dumps(data, ensure_ascii=False, default=str),
                    json.dumps(list(depends_on or [])),
                    self._clock().isoformat(),
                ],
            )

        logger.debug(f"Queued {action} on {table} ({entry_id})")
        return entry_id

    def get_sync_queue(self) -> List[QueuedMutation]:
        """All pending entries in insertion order."""
        rows = self.db.connection.execute(
            "SELECT id, table_name, action, data_json, depends_on_json, created_at "
            "FROM sync_queue ORDER BY seq"
        ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row) -> QueuedMutation:
        entry = QueuedMutation(
            id=row["id"],
            table=row["table_name"],
            action=row["action"],
            data={},
            created_at=row["created_at"],
        )
        try:
            data = json.loads(row["data_json"]) if row["data_json"] else None
            depends_on = json.loads(row["depends_on_json"]) if row["depends_on_json"] else []
            if not isinstance(data, dict) or not isinstance(depends_on, list):
                raise ValueError("payload is not an object")
            if entry.action not in ACTIONS:
                raise ValueError(f"unknown action {entry.action!r}")
            entry.data = data
            entry.depends_on = [str(d) for d in depends_on]
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            entry.malformed = True
            entry.error = str(e)
        return entry

    def remove_from_sync_queue(self, entry_id: str) -> None:
        """Delete one entry; unknown ids are ignored."""
        with self.db.transaction() as conn:
            conn.execute("DELETE FROM sync_queue WHERE id = ?", [entry_id])

    def clear_sync_queue(self) -> None:
        """Administrative reset."""
        with self.db.transaction() as conn:
            conn.execute("DELETE FROM sync_queue")
        logger.warning("Sync queue cleared")

    def pending_count(self) -> int:
        row = self.db.connection.execute("SELECT COUNT(*) AS count FROM sync_queue").fetchone()
        return row["count"] if row else 0

    def pending_record_ids(self, table: str, action: Optional[str] = None) -> Set[str]:
        """Record ids of ``table`` with queued mutations (optionally of one action)."""
        return {
            entry.record_id
            for entry in self.get_sync_queue()
            if not entry.malformed
            and entry.table == table
            and entry.record_id is not None
            and (action is None or entry.action == action)
        }

    def has_pending_create(self, table: str, record_id: str) -> bool:
        """True if ``record_id`` was created offline and not replayed yet."""
        return str(record_id) in self.pending_record_ids(table, action="create")

    def rewrite_references(self, local_id: str, remote_id: str) -> int:
        """
        Replace a provisional id with its canonical one in every pending
        payload value and dependency list. Returns the number of entries
        changed.
        """
        changed = 0
        with self.db.transaction() as conn:
            for entry in self.get_sync_queue():
                if entry.malformed:
                    continue
                data = {
                    key: (remote_id if value == local_id else value)
                    for key, value in entry.data.items()
                }
                depends_on = [remote_id if d == local_id else d for d in entry.depends_on]
                if data == entry.data and depends_on == entry.depends_on:
                    continue
                conn.execute(
                    "UPDATE sync_queue SET data_json = ?, depends_on_json = ? WHERE id = ?",
                    [
                        json.dumps(data, ensure_ascii=False, default=str),
                        json.dumps(depends_on),
                        entry.id,
                    ],
                )
                changed += 1
        if changed:
            logger.info(f"Rewrote {changed} queued entries: {local_id} -> {remote_id}")
        return changed
