# =============================================================================
# control_room/offline/remote_gateway.py
# Remote Data Gateway (Supabase)
# =============================================================================
"""
RemoteGateway - the only component that talks to the network.

``SupabaseGateway`` maps CRUD calls onto supabase-py table queries and
translates failures into two kinds:

- ``ConnectivityError``: the request never got an answer (transport error,
  timeout). Callers recover locally.
- ``RemoteRejectedError``: the store answered with an error. Callers surface
  it to the user and do not retry.

``insert`` is an upsert on the client-supplied ``id`` so a create replayed
after a crash does not produce a duplicate row.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import httpx
from postgrest.exceptions import APIError

from control_room.errors import ConnectivityError, RemoteRejectedError

logger = logging.getLogger(__name__)

OrderBy = Sequence[Tuple[str, bool]]  # (column, descending)


class RemoteGateway(ABC):
    """Per-entity CRUD against the remote structured store."""

    @abstractmethod
    def select(
        self,
        table: str,
        order_by: Optional[OrderBy] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_by_id(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Create (or re-create) a record; returns the canonical row."""

    @abstractmethod
    def update(self, table: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a partial update; returns the canonical row."""

    @abstractmethod
    def delete(self, table: str, record_id: str) -> None:
        ...


class SupabaseGateway(RemoteGateway):
    """
    Supabase implementation.

    Args:
        client_factory: Zero-argument callable returning a supabase ``Client``.
            Called lazily on first use so the app can start without a network.
    """

    def __init__(self, client_factory: Callable[[], Any]):
        self._client_factory = client_factory
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _execute(self, table: str, operation: str, build: Callable[[Any], Any]) -> List[Dict[str, Any]]:
        """Run a query builder and normalize failures."""
        try:
            response = build(self.client.table(table)).execute()
        except httpx.TransportError as e:
            logger.warning(f"{operation} on {table}: remote unreachable ({e})")
            raise ConnectivityError(
                f"Remote store unreachable: {e}",
                table=table,
                operation=operation,
            ) from e
        except APIError as e:
            logger.error(f"{operation} on {table} rejected: {e.message}")
            raise RemoteRejectedError(
                e.message or "Remote store rejected the request",
                table=table,
                operation=operation,
                remote_code=getattr(e, "code", None),
            ) from e
        return list(response.data or [])

    def select(self, table, order_by=None, filters=None):
        def build(query):
            query = query.select("*")
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            for column, descending in (order_by or []):
                query = query.order(column, desc=descending)
            return query

        return self._execute(table, "select", build)

    def get_by_id(self, table, record_id):
        rows = self._execute(
            table, "get_by_id",
            lambda q: q.select("*").eq("id", record_id).limit(1),
        )
        return rows[0] if rows else None

    def insert(self, table, record):
        rows = self._execute(
            table, "insert",
            lambda q: q.upsert(record, on_conflict="id"),
        )
        if not rows:
            raise RemoteRejectedError(
                "Insert returned no row",
                table=table,
                operation="insert",
            )
        return rows[0]

    def update(self, table, record_id, changes):
        rows = self._execute(
            table, "update",
            lambda q: q.update(changes).eq("id", record_id),
        )
        if not rows:
            raise RemoteRejectedError(
                f"No {table} record with id {record_id}",
                table=table,
                operation="update",
            )
        return rows[0]

    def delete(self, table, record_id):
        self._execute(table, "delete", lambda q: q.delete().eq("id", record_id))
