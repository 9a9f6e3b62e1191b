# =============================================================================
# control_room/services/__init__.py
# Service Layer for Control Room
# Derived views and user notices on top of the repositories
# =============================================================================

from .base_service import BaseService, ServiceResult
from .notifier import Notifier, StreamlitNotifier, RecordingNotifier
from .money import (
    DebtPressureSummary,
    IncomeSummary,
    debt_pressure_summary,
    income_summary,
)
from .reminders import (
    Reminder,
    build_reminders,
    today_reminders,
    tomorrow_reminders,
    upcoming_reminders,
    format_reminder_date,
)
from .dashboard_service import DashboardService

__all__ = [
    "BaseService",
    "ServiceResult",
    "Notifier",
    "StreamlitNotifier",
    "RecordingNotifier",
    "DebtPressureSummary",
    "IncomeSummary",
    "debt_pressure_summary",
    "income_summary",
    "Reminder",
    "build_reminders",
    "today_reminders",
    "tomorrow_reminders",
    "upcoming_reminders",
    "format_reminder_date",
    "DashboardService",
]
