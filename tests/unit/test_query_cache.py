# =============================================================================
# tests/unit/test_query_cache.py
# Unit Tests for the In-Memory Query Cache
# =============================================================================

from unittest.mock import MagicMock

from control_room.offline.query_cache import QueryCache, Transient


class TestMemoization:
    """get_or_load and prefix invalidation"""

    def test_loader_runs_once(self, query_cache):
        loader = MagicMock(return_value=["a"])

        assert query_cache.get_or_load(("deals",), loader) == ["a"]
        assert query_cache.get_or_load(("deals",), loader) == ["a"]
        assert loader.call_count == 1

    def test_prefix_invalidation(self, query_cache):
        query_cache.get_or_load(("calls",), lambda: 1)
        query_cache.get_or_load(("calls", "deal", "d1"), lambda: 2)
        query_cache.get_or_load(("deals",), lambda: 3)

        assert query_cache.invalidate(("calls",)) == 2
        assert ("deals",) in query_cache
        assert ("calls", "deal", "d1") not in query_cache

    def test_empty_prefix_drops_everything(self, query_cache):
        listener = MagicMock()
        query_cache.subscribe(listener)
        query_cache.get_or_load(("calls",), lambda: 1)
        query_cache.get_or_load(("deals",), lambda: 2)

        assert query_cache.invalidate(()) == 2
        listener.assert_called_once_with(())

    def test_transient_result_not_stored(self, query_cache):
        loader = MagicMock(side_effect=[Transient(["fallback"]), ["fresh"]])

        assert query_cache.get_or_load(("deals",), loader) == ["fallback"]
        assert ("deals",) not in query_cache
        assert query_cache.get_or_load(("deals",), loader) == ["fresh"]
        assert ("deals",) in query_cache


class TestConcurrentInvalidation:
    """A load overlapping an invalidation of its key"""

    def test_invalidated_load_is_not_stored(self):
        cache = QueryCache()
        loads = {"count": 0}

        def loader():
            loads["count"] += 1
            if loads["count"] == 1:
                # Another thread invalidates while this load is in flight
                cache.invalidate(("deals",))
            return loads["count"]

        first = cache.get_or_load(("deals",), loader)
        second = cache.get_or_load(("deals",), loader)

        assert first == 1
        assert second == 2
        assert cache.get(("deals",)) == 2

    def test_unrelated_invalidation_keeps_load(self):
        cache = QueryCache()

        def loader():
            cache.invalidate(("jobs",))
            return "deals"

        cache.get_or_load(("deals",), loader)

        assert ("deals",) in cache

    def test_clear_during_load(self):
        cache = QueryCache()

        def loader():
            cache.clear()
            return "stale"

        cache.get_or_load(("deals",), loader)

        assert ("deals",) not in cache
