# =============================================================================
# control_room/services/dashboard_service.py
# Dashboard Data Service
# =============================================================================
"""
DashboardService - derived views for the home screen.

Reads entities through the repositories (so it works online and offline)
and keeps the last PriorityReport until the query cache reports a change
to deals or debts. Listeners registered here receive the recomputed report.
"""

from __future__ import annotations
import threading
from datetime import date
from typing import Any, Callable, List, Optional

from control_room.models import CurrencyTable
from control_room.offline.query_cache import QueryCache, QueryKey
from control_room.priority import PriorityEngine, PriorityReport
from control_room.repositories import (
    CallRepository,
    DealRepository,
    DealTaskRepository,
    DebtRepository,
    JobRepository,
)
from .base_service import BaseService, ServiceResult
from .money import DebtPressureSummary, IncomeSummary, debt_pressure_summary, income_summary
from .reminders import Reminder, build_reminders

# Tables the priority report is derived from
REPORT_SOURCES = ("deals", "debts")


class DashboardService(BaseService):
    """
    Usage:
        service = DashboardService(room.deals, room.debts, room.jobs,
                                   room.calls, room.deal_tasks, room.query_cache)
        report = service.get_priority_report()
        report.focus_now
    """

    def __init__(
        self,
        deals: DealRepository,
        debts: DebtRepository,
        jobs: JobRepository,
        calls: CallRepository,
        tasks: DealTaskRepository,
        query_cache: QueryCache,
        currency_table: Optional[CurrencyTable] = None,
        today: Callable[[], date] = date.today,
        notifier: Any = None,
    ):
        super().__init__(notifier)
        self.deals = deals
        self.debts = debts
        self.jobs = jobs
        self.calls = calls
        self.tasks = tasks
        self.query_cache = query_cache
        self.currency_table = currency_table or CurrencyTable()
        self.engine = PriorityEngine(self.currency_table)
        self._today = today
        self._lock = threading.Lock()
        self._report: Optional[PriorityReport] = None
        self._report_day: Optional[date] = None
        self._callbacks: List[Callable[[PriorityReport], None]] = []
        query_cache.subscribe(self._on_invalidate)

    # =========================================================================
    # PRIORITY REPORT
    # =========================================================================

    def get_priority_report(self) -> PriorityReport:
        """Cached report; recomputed after a relevant change or a new day."""
        today = self._today()
        with self._lock:
            if self._report is not None and self._report_day == today:
                return self._report
        report = self.engine.prioritize(self.deals.list(), self.debts.list(), today)
        with self._lock:
            self._report = report
            self._report_day = today
        return report

    def _on_invalidate(self, prefix: QueryKey) -> None:
        if prefix and prefix[0] not in REPORT_SOURCES:
            return
        with self._lock:
            self._report = None
        if self._callbacks:
            report = self.get_priority_report()
            for callback in list(self._callbacks):
                try:
                    callback(report)
                except Exception as e:
                    self.logger.error(f"Report callback error: {e}")

    def register_callback(self, callback: Callable[[PriorityReport], None]) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[PriorityReport], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def close(self) -> None:
        self.query_cache.unsubscribe(self._on_invalidate)

    # =========================================================================
    # OTHER PANELS
    # =========================================================================

    def get_debt_pressure(self) -> DebtPressureSummary:
        return debt_pressure_summary(self.debts.list(), self.currency_table)

    def get_income(self) -> IncomeSummary:
        return income_summary(self.jobs.list(), self._today(), self.currency_table)

    def get_reminders(self) -> List[Reminder]:
        return build_reminders(
            calls=self.calls.list(),
            deals=self.deals.list(),
            debts=self.debts.list(),
            tasks=self.tasks.list(),
            today=self._today(),
        )

    def load_overview(self) -> ServiceResult:
        """Everything the home screen shows, as one ServiceResult."""
        return self.safe_execute("Loading dashboard", self._overview)

    def _overview(self) -> dict:
        return {
            "priority": self.get_priority_report(),
            "debts": self.get_debt_pressure(),
            "income": self.get_income(),
            "reminders": self.get_reminders(),
        }
