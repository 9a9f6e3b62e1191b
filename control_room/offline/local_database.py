# =============================================================================
# control_room/offline/local_database.py
# Local SQLite Database for Offline Operations
# =============================================================================
"""
LocalDatabase - SQLite file shared by the local cache and the sync queue.

Features:
- Automatic schema creation (one store per entity type + queue + metadata)
- Thread-local connections
- Re-entrant write transactions (BEGIN IMMEDIATE) for read-modify-write
- Table-name allowlist: SQL identifiers never come from callers unchecked
"""

from __future__ import annotations
import sqlite3
import threading
from pathlib import Path
from typing import Iterable, Optional
from contextlib import contextmanager
import logging

from control_room.errors import DataValidationError
from control_room.models import ENTITY_MODELS

logger = logging.getLogger(__name__)

ENTITY_TABLES = tuple(ENTITY_MODELS)

ENTITY_STORE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS {table} (
        id TEXT PRIMARY KEY,
        data_json TEXT NOT NULL,
        synced INTEGER NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL
    )
"""

SCHEMA = {
    "sync_queue": """
        CREATE TABLE IF NOT EXISTS sync_queue (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            table_name TEXT NOT NULL,
            action TEXT NOT NULL,
            data_json TEXT,
            depends_on_json TEXT,
            created_at TEXT NOT NULL
        )
    """,
    "cache_meta": """
        CREATE TABLE IF NOT EXISTS cache_meta (
            table_name TEXT PRIMARY KEY,
            last_synced TEXT
        )
    """,
}


class LocalDatabase:
    """
    SQLite database holding the offline stores.

    The file persists across process restarts; every entity type gets its
    own ``{id, data_json, synced, updated_at}`` store.
    """

    DEFAULT_DB_PATH = Path("data") / "control_room_offline.db"

    def __init__(self, db_path: Optional[Path] = None, tables: Iterable[str] = ENTITY_TABLES):
        self.db_path = Path(db_path or self.DEFAULT_DB_PATH)
        self.tables = tuple(tables)
        self._ensure_directory()
        self._local = threading.local()
        self._initialized = False

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            # Autocommit mode; transactions are opened explicitly below
            conn = sqlite3.connect(str(self.db_path), isolation_level=None, timeout=10)
            conn.row_factory = sqlite3.Row
            self._local.connection = conn
            self._local.depth = 0
        return self._local.connection

    @property
    def connection(self) -> sqlite3.Connection:
        self.initialize()
        return self._get_connection()

    @contextmanager
    def transaction(self):
        """
        Write transaction. Nested use joins the outer transaction.

        BEGIN IMMEDIATE takes the write lock up front so a read-modify-write
        inside the block cannot interleave with another writer.
        """
        conn = self.connection
        if self._local.depth > 0:
            self._local.depth += 1
            try:
                yield conn
            finally:
                self._local.depth -= 1
            return

        conn.execute("BEGIN IMMEDIATE")
        self._local.depth = 1
        try:
            yield conn
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise
        finally:
            self._local.depth = 0

    def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        conn = self._get_connection()
        for table in self.tables:
            conn.execute(ENTITY_STORE_SCHEMA.format(table=table))
            logger.debug(f"Created/verified store: {table}")
        for table_name, schema in SCHEMA.items():
            conn.execute(schema)
            logger.debug(f"Created/verified table: {table_name}")

        self._initialized = True
        logger.info(f"Local database initialized at: {self.db_path}")

    def check_table(self, table: str) -> str:
        """Return ``table`` if it is a known entity store, else raise."""
        if table not in self.tables:
            raise DataValidationError(
                f"Unknown table: {table!r}",
                field="table",
                expected=", ".join(self.tables),
                actual=str(table),
            )
        return table

    def close(self) -> None:
        """Close this thread's database connection."""
        conn = getattr(self._local, "connection", None)
        if conn is not None:
            conn.close()
            self._local.connection = None
