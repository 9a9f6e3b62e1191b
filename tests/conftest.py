# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import copy
from datetime import date, datetime, timedelta
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from control_room.errors import ConnectivityError, RemoteRejectedError
from control_room.offline.connection_manager import ConnectionManager
from control_room.offline.local_cache import LocalCache
from control_room.offline.local_database import LocalDatabase
from control_room.offline.query_cache import QueryCache
from control_room.offline.remote_gateway import RemoteGateway
from control_room.offline.sync_manager import SyncManager
from control_room.offline.sync_queue import SyncQueue


TODAY = date(2025, 3, 10)
NOW = datetime(2025, 3, 10, 9, 30, 0)


# =============================================================================
# FAKE REMOTE STORE
# =============================================================================

class FakeGateway(RemoteGateway):
    """
    In-memory remote store.

    Every call is recorded in ``calls`` as ``(method, table, payload)``.
    Failures are scripted per record id with ``fail_ids`` (id -> exception)
    or globally with ``fail_all``. ``id_factory`` lets the store assign its
    own canonical ids on insert.
    """

    def __init__(self):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.fail_ids: Dict[str, Exception] = {}
        self.fail_all: Optional[Exception] = None
        self.id_factory = None

    def _check(self, table: str, record_id: Optional[str] = None) -> None:
        if self.fail_all is not None:
            raise self.fail_all
        if record_id is not None and record_id in self.fail_ids:
            raise self.fail_ids[record_id]

    def calls_of(self, method: str, table: Optional[str] = None) -> List[tuple]:
        return [c for c in self.calls if c[0] == method and (table is None or c[1] == table)]

    def seed(self, table: str, rows: List[Dict[str, Any]]) -> None:
        store = self.tables.setdefault(table, {})
        for row in rows:
            store[str(row["id"])] = dict(row)

    def select(self, table, order_by=None, filters=None):
        self.calls.append(("select", table, dict(filters or {})))
        self._check(table)
        rows = [
            copy.deepcopy(r) for r in self.tables.get(table, {}).values()
            if all(str(r.get(k)) == str(v) for k, v in (filters or {}).items())
        ]
        return rows

    def get_by_id(self, table, record_id):
        self.calls.append(("get_by_id", table, record_id))
        self._check(table, record_id)
        row = self.tables.get(table, {}).get(str(record_id))
        return copy.deepcopy(row) if row else None

    def insert(self, table, record):
        self.calls.append(("insert", table, copy.deepcopy(record)))
        self._check(table, record.get("id"))
        row = dict(record)
        if self.id_factory is not None:
            row["id"] = self.id_factory(record)
        row.setdefault("created_at", NOW.isoformat())
        self.tables.setdefault(table, {})[str(row["id"])] = row
        return copy.deepcopy(row)

    def update(self, table, record_id, changes):
        self.calls.append(("update", table, {"id": record_id, **changes}))
        self._check(table, record_id)
        store = self.tables.setdefault(table, {})
        if str(record_id) not in store:
            raise RemoteRejectedError("No row updated", table=table, operation="update")
        store[str(record_id)].update(changes)
        return copy.deepcopy(store[str(record_id)])

    def delete(self, table, record_id):
        self.calls.append(("delete", table, record_id))
        self._check(table, record_id)
        self.tables.get(table, {}).pop(str(record_id), None)


def unreachable():
    return ConnectivityError("Remote store unreachable", operation="test")


def rejected():
    return RemoteRejectedError("violates check constraint", operation="test")


# =============================================================================
# CORE FIXTURES
# =============================================================================

@pytest.fixture
def today():
    """Fixed calendar day for ranking and reminders"""
    return TODAY


@pytest.fixture
def clock():
    """Deterministic clock: advances one second per call"""
    state = {"now": NOW}

    def tick():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return tick


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite file per test"""
    database = LocalDatabase(tmp_path / "control_room_test.db")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def cache(db, clock):
    return LocalCache(db, clock=clock)


@pytest.fixture
def queue(db, clock):
    return SyncQueue(db, clock=clock)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def monitor(clock):
    """Connectivity monitor without a probe (driven by set_online)"""
    return ConnectionManager(probe=None, clock=clock)


@pytest.fixture
def query_cache():
    return QueryCache()


@pytest.fixture
def mock_notifier():
    """Notifier double recording info/success/warning/error calls"""
    return MagicMock()


@pytest.fixture
def sync_manager(queue, cache, gateway, monitor, mock_notifier, query_cache, clock):
    return SyncManager(
        queue, cache, gateway, monitor,
        notifier=mock_notifier,
        query_cache=query_cache,
        clock=clock,
    )


@pytest.fixture
def repo_kwargs(cache, queue, gateway, monitor, query_cache, mock_notifier, clock):
    """Constructor arguments shared by every repository"""
    return dict(
        cache=cache,
        queue=queue,
        gateway=gateway,
        monitor=monitor,
        query_cache=query_cache,
        notifier=mock_notifier,
        clock=clock,
    )


@pytest.fixture
def mock_streamlit(monkeypatch):
    """Replace the Streamlit handle used by the error handlers"""
    mock_st = MagicMock()
    mock_st.secrets = {}
    monkeypatch.setattr("control_room.errors.handlers.st", mock_st)
    return mock_st


@pytest.fixture
def remote_errors():
    """Factories for the two gateway failure kinds"""
    return SimpleNamespace(unreachable=unreachable, rejected=rejected)
