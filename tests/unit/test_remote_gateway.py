# =============================================================================
# tests/unit/test_remote_gateway.py
# Unit Tests for the Supabase Gateway
# =============================================================================

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from control_room.errors import ConnectivityError, RemoteRejectedError
from control_room.offline.remote_gateway import SupabaseGateway


def make_client(data=None, error=None):
    """Supabase client double whose query builder chains onto itself"""
    query = MagicMock()
    for method in ("select", "eq", "order", "limit", "upsert", "update", "delete"):
        getattr(query, method).return_value = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = SimpleNamespace(data=data)
    client = MagicMock()
    client.table.return_value = query
    return client, query


class TestQueries:
    """CRUD calls onto supabase-py builders"""

    def test_client_created_lazily(self):
        factory = MagicMock(return_value=make_client([])[0])
        gateway = SupabaseGateway(factory)

        factory.assert_not_called()
        gateway.select("deals")
        gateway.select("deals")

        factory.assert_called_once()

    def test_select_with_filters_and_order(self):
        client, query = make_client([{"id": "d1"}])

        rows = SupabaseGateway(lambda: client).select(
            "deals", order_by=[("updated_at", True)], filters={"deal_id": "x"},
        )

        assert rows == [{"id": "d1"}]
        client.table.assert_called_with("deals")
        query.select.assert_called_with("*")
        query.eq.assert_called_with("deal_id", "x")
        query.order.assert_called_with("updated_at", desc=True)

    def test_get_by_id_missing(self):
        client, _ = make_client([])

        assert SupabaseGateway(lambda: client).get_by_id("deals", "d1") is None

    def test_insert_upserts_on_id(self):
        client, query = make_client([{"id": "d1", "created_at": "2025-03-10"}])

        row = SupabaseGateway(lambda: client).insert("deals", {"id": "d1"})

        query.upsert.assert_called_once_with({"id": "d1"}, on_conflict="id")
        assert row["created_at"] == "2025-03-10"

    def test_empty_insert_result_is_rejected(self):
        client, _ = make_client([])

        with pytest.raises(RemoteRejectedError):
            SupabaseGateway(lambda: client).insert("deals", {"id": "d1"})

    def test_update_of_missing_row_is_rejected(self):
        client, _ = make_client([])

        with pytest.raises(RemoteRejectedError):
            SupabaseGateway(lambda: client).update("deals", "d1", {"name": "x"})

    def test_delete(self):
        client, query = make_client([])

        SupabaseGateway(lambda: client).delete("deals", "d1")

        query.delete.assert_called_once()
        query.eq.assert_called_with("id", "d1")


class TestErrorMapping:
    """Transport failures vs. store rejections"""

    def test_transport_error_is_connectivity(self):
        client, _ = make_client(error=httpx.ConnectError("connection refused"))

        with pytest.raises(ConnectivityError) as exc_info:
            SupabaseGateway(lambda: client).select("deals")

        assert exc_info.value.details["table"] == "deals"

    def test_timeout_is_connectivity(self):
        client, _ = make_client(error=httpx.ReadTimeout("timed out"))

        with pytest.raises(ConnectivityError):
            SupabaseGateway(lambda: client).insert("debts", {"id": "b1"})

    def test_api_error_is_rejection(self):
        error = APIError({"message": "violates check constraint", "code": "23514", "hint": None, "details": None})
        client, _ = make_client(error=error)

        with pytest.raises(RemoteRejectedError) as exc_info:
            SupabaseGateway(lambda: client).update("debts", "b1", {"amount": -1})

        assert exc_info.value.message == "violates check constraint"
