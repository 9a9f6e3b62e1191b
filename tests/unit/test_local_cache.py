# =============================================================================
# tests/unit/test_local_cache.py
# Unit Tests for LocalDatabase and LocalCache
# =============================================================================

import pytest

from control_room.errors import DataValidationError
from control_room.offline.local_cache import LocalCache
from control_room.offline.local_database import LocalDatabase


class TestLocalDatabase:
    """Schema and table allowlist"""

    def test_creates_entity_stores(self, db):
        names = {
            row["name"]
            for row in db.connection.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }

        assert {"deals", "debts", "jobs", "calls", "deal_tasks", "deal_events",
                "deal_files", "daily_moves", "sync_queue", "cache_meta"} <= names

    def test_unknown_table_rejected(self, db):
        with pytest.raises(DataValidationError):
            db.check_table("deals; DROP TABLE deals")

    def test_transaction_rolls_back(self, db, cache):
        with pytest.raises(RuntimeError):
            with db.transaction():
                cache.update_local_cache("deals", "d1", {"id": "d1", "name": "x"})
                raise RuntimeError("abort")

        assert cache.get_record("deals", "d1") is None

    def test_data_survives_reopen(self, tmp_path, clock):
        path = tmp_path / "persist.db"
        first = LocalDatabase(path)
        LocalCache(first, clock=clock).update_local_cache("debts", "b1", {"id": "b1", "amount": 5})
        first.close()

        second = LocalDatabase(path)
        record = LocalCache(second, clock=clock).get_record("debts", "b1")
        second.close()

        assert record.data == {"id": "b1", "amount": 5}
        assert record.synced is False


class TestLocalCacheWrites:
    """Upserts, merges, deletes"""

    def test_upsert_is_idempotent(self, cache):
        """Same id twice leaves one record with the latest data"""
        cache.update_local_cache("deals", "d1", {"id": "d1", "name": "old"})
        cache.update_local_cache("deals", "d1", {"id": "d1", "name": "new"})

        rows = cache.get_cached_data("deals")

        assert rows == [{"id": "d1", "name": "new"}]

    def test_cache_data_marks_synced_and_stamps_watermark(self, cache):
        assert cache.get_cache_metadata("deals") is None

        cache.cache_data("deals", [{"id": "d1", "name": "a"}, {"name": "no id"}])

        assert cache.get_record("deals", "d1").synced is True
        assert len(cache.get_cached_data("deals")) == 1
        assert cache.get_cache_metadata("deals") is not None

    def test_merge_keeps_omitted_fields(self, cache):
        cache.cache_data("deals", [{"id": "d1", "name": "a", "stage": "جديد"}])

        merged = cache.merge_local_record("deals", "d1", {"stage": "مفاوضات"})

        assert merged == {"id": "d1", "name": "a", "stage": "مفاوضات"}
        assert cache.get_record("deals", "d1").synced is False

    def test_merge_on_missing_record_starts_from_id(self, cache):
        assert cache.merge_local_record("deals", "d9", {"name": "x"}) == {"id": "d9", "name": "x"}

    def test_delete_unknown_is_noop(self, cache):
        cache.delete_from_local_cache("deals", "missing")

        assert cache.get_cached_data("deals") == []

    def test_mark_synced(self, cache):
        cache.update_local_cache("calls", "c1", {"id": "c1"}, synced=False)

        assert cache.mark_synced("calls", "c1") is True
        assert cache.get_record("calls", "c1").synced is True
        assert cache.mark_synced("calls", "nope") is False

    def test_rekey_moves_record(self, cache):
        cache.update_local_cache("deals", "local-1", {"id": "local-1", "name": "x"})

        assert cache.rekey("deals", "local-1", "remote-1") is True

        assert cache.get_record("deals", "local-1") is None
        assert cache.get_record("deals", "remote-1").data == {"id": "remote-1", "name": "x"}

    def test_clear_all(self, cache, queue):
        cache.cache_data("deals", [{"id": "d1"}])
        queue.add_to_sync_queue("deals", "delete", {"id": "d1"})

        cache.clear_all()

        assert cache.get_cached_data("deals") == []
        assert queue.pending_count() == 0
        assert cache.get_cache_metadata("deals") is None


class TestLocalCacheReads:
    """Reads and views"""

    def test_unsynced_records(self, cache):
        cache.cache_data("deals", [{"id": "d1"}])
        cache.update_local_cache("deals", "d2", {"id": "d2"}, synced=False)

        assert [r.id for r in cache.unsynced_records("deals")] == ["d2"]

    def test_to_dataframe(self, cache):
        cache.cache_data("jobs", [{"id": "j1", "name": "A"}, {"id": "j2", "name": "B"}])

        df = cache.to_dataframe("jobs")

        assert list(df["name"]) == ["A", "B"]

    def test_to_dataframe_empty(self, cache):
        assert cache.to_dataframe("jobs").empty
