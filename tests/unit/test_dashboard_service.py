# =============================================================================
# tests/unit/test_dashboard_service.py
# Unit Tests for DashboardService
# =============================================================================

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from control_room.repositories import (
    CallRepository,
    DealRepository,
    DealTaskRepository,
    DebtRepository,
    JobRepository,
)
from control_room.services import DashboardService, ServiceResult


@pytest.fixture
def day(today):
    """Mutable calendar day the service reads"""
    return {"today": today}


@pytest.fixture
def service(repo_kwargs, query_cache, mock_notifier, day):
    svc = DashboardService(
        deals=DealRepository(**repo_kwargs),
        debts=DebtRepository(**repo_kwargs),
        jobs=JobRepository(**repo_kwargs),
        calls=CallRepository(**repo_kwargs),
        tasks=DealTaskRepository(**repo_kwargs),
        query_cache=query_cache,
        today=lambda: day["today"],
        notifier=mock_notifier,
    )
    yield svc
    svc.close()


class TestPriorityReport:
    """Caching and recompute on change"""

    def test_report_is_cached(self, service, gateway):
        gateway.seed("deals", [{"id": "d1", "name": "A"}])

        first = service.get_priority_report()

        assert service.get_priority_report() is first
        assert [d.id for d in first.prioritized_deals] == ["d1"]

    def test_deal_mutation_recomputes(self, service):
        before = service.get_priority_report()

        service.deals.create({"name": "جديدة"})
        after = service.get_priority_report()

        assert after is not before
        assert [d.name for d in after.prioritized_deals] == ["جديدة"]

    def test_debt_mutation_recomputes(self, service):
        before = service.get_priority_report()

        service.debts.create({"creditor_name": "Bank", "amount": 1000})

        assert service.get_priority_report() is not before

    def test_unrelated_invalidation_keeps_report(self, service, query_cache):
        before = service.get_priority_report()

        query_cache.invalidate(("jobs",))

        assert service.get_priority_report() is before

    def test_new_day_recomputes(self, service, day):
        before = service.get_priority_report()

        day["today"] += timedelta(days=1)

        assert service.get_priority_report() is not before

    def test_callbacks_receive_recomputed_report(self, service):
        callback = MagicMock()
        service.register_callback(callback)

        deal = service.deals.create({"name": "x"})

        report = callback.call_args[0][0]
        assert [d.id for d in report.prioritized_deals] == [deal.id]

    def test_unregistered_callback_not_called(self, service):
        callback = MagicMock()
        service.register_callback(callback)
        service.unregister_callback(callback)

        service.deals.create({"name": "x"})

        callback.assert_not_called()

    def test_close_stops_listening(self, service, query_cache):
        before = service.get_priority_report()
        service.close()

        query_cache.invalidate(("deals",))

        assert service.get_priority_report() is before


class TestOverview:
    """Home screen bundle"""

    def test_load_overview(self, service, gateway, today):
        gateway.seed("debts", [{"id": "b1", "creditor_name": "Bank", "amount": 1000, "monthly_payment": 200}])
        gateway.seed("jobs", [{"id": "j1", "name": "job", "salary_amount": 3000}])
        gateway.seed("deal_tasks", [
            {"id": "t1", "deal_id": "d1", "title": "ورق", "due_date": today.isoformat()},
        ])

        result = service.load_overview()

        assert isinstance(result, ServiceResult)
        assert result.success
        assert set(result.data) == {"priority", "debts", "income", "reminders"}
        assert result.data["debts"].total_remaining == 1000.0
        assert result.data["income"].total_monthly_income == 3000.0
        assert [r.id for r in result.data["reminders"]] == ["task-t1"]

    def test_failure_becomes_result(self, service):
        service.deals.list = MagicMock(side_effect=RuntimeError("boom"))

        result = service.load_overview()

        assert not result
        assert result.error_code == "EXCEPTION"
        assert result.error == "boom"
