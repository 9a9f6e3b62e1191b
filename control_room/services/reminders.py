# =============================================================================
# control_room/services/reminders.py
# Upcoming Reminders
# =============================================================================
"""
Collects everything due in the next week into one sorted list:

- call follow-ups
- next actions of open deals
- due dates of unpaid debts
- due dates of open deal tasks

Window is ``[today, today + 7 days]``; past-due items are left to their own
screens. Sorted by date, then high before medium before low.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from control_room.models import Call, Deal, DealPriority, DealStage, DealTask, Debt, PressureLevel

REMINDER_WINDOW_DAYS = 7

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

# Closed and cancelled deals have nothing left to do; deferred ones still remind
_SILENT_STAGES = (DealStage.CLOSED, DealStage.CANCELLED)

_DEAL_LEVELS = {
    DealPriority.HIGH: "high",
    DealPriority.MEDIUM: "medium",
    DealPriority.LOW: "low",
}

_PRESSURE_LEVELS = {
    PressureLevel.HIGH: "high",
    PressureLevel.MEDIUM: "medium",
    PressureLevel.LIGHT: "low",
}


@dataclass
class Reminder:
    id: str
    type: str  # call_followup | deal_action | debt_due | task_due
    title: str
    subtitle: str
    date: date
    priority: str
    entity_id: Optional[str] = None


def _task_level(priority: Optional[int]) -> str:
    if priority == 1:
        return "high"
    if priority == 2:
        return "medium"
    return "low"


def _format_amount(amount: float) -> str:
    return f"{amount:,.0f} ج.م"


def build_reminders(
    calls: Sequence[Call] = (),
    deals: Sequence[Deal] = (),
    debts: Sequence[Debt] = (),
    tasks: Sequence[DealTask] = (),
    today: Optional[date] = None,
) -> List[Reminder]:
    today = today or date.today()
    horizon = today + timedelta(days=REMINDER_WINDOW_DAYS)
    deal_names: Dict[str, str] = {d.id: d.name for d in deals if d.id}

    def in_window(day: Optional[date]) -> bool:
        return day is not None and today <= day <= horizon

    reminders: List[Reminder] = []

    for call in calls:
        if not in_window(call.follow_up_date):
            continue
        deal_name = deal_names.get(call.deal_id) if call.deal_id else None
        reminders.append(Reminder(
            id=f"call-{call.id}",
            type="call_followup",
            title=f"متابعة: {call.contact_name}",
            subtitle=f"مصلحة: {deal_name}" if deal_name else (call.phone_number or "اتصال"),
            date=call.follow_up_date,
            priority="high" if call.follow_up_date == today else "medium",
            entity_id=call.id,
        ))

    for deal in deals:
        if deal.stage in _SILENT_STAGES or not in_window(deal.next_action_date):
            continue
        reminders.append(Reminder(
            id=f"deal-{deal.id}",
            type="deal_action",
            title=deal.next_action or "إجراء مطلوب",
            subtitle=deal.name,
            date=deal.next_action_date,
            priority=_DEAL_LEVELS[deal.priority],
            entity_id=deal.id,
        ))

    for debt in debts:
        if debt.is_paid or not in_window(debt.due_date):
            continue
        reminders.append(Reminder(
            id=f"debt-{debt.id}",
            type="debt_due",
            title=f"قسط: {debt.creditor_name}",
            subtitle=_format_amount(debt.monthly_payment or 0),
            date=debt.due_date,
            priority=_PRESSURE_LEVELS[debt.pressure_level],
            entity_id=debt.id,
        ))

    for task in tasks:
        if task.is_completed or not in_window(task.due_date):
            continue
        deal_name = deal_names.get(task.deal_id)
        reminders.append(Reminder(
            id=f"task-{task.id}",
            type="task_due",
            title=task.title,
            subtitle=f"مصلحة: {deal_name}" if deal_name else "مهمة",
            date=task.due_date,
            priority=_task_level(task.priority),
            entity_id=task.id,
        ))

    reminders.sort(key=lambda r: (r.date, PRIORITY_ORDER[r.priority]))
    return reminders


def today_reminders(reminders: Sequence[Reminder], today: Optional[date] = None) -> List[Reminder]:
    today = today or date.today()
    return [r for r in reminders if r.date == today]


def tomorrow_reminders(reminders: Sequence[Reminder], today: Optional[date] = None) -> List[Reminder]:
    tomorrow = (today or date.today()) + timedelta(days=1)
    return [r for r in reminders if r.date == tomorrow]


def upcoming_reminders(reminders: Sequence[Reminder], today: Optional[date] = None) -> List[Reminder]:
    """Everything after tomorrow."""
    tomorrow = (today or date.today()) + timedelta(days=1)
    return [r for r in reminders if r.date > tomorrow]


def format_reminder_date(day: date, today: Optional[date] = None) -> str:
    today = today or date.today()
    if day == today:
        return "اليوم"
    if day == today + timedelta(days=1):
        return "بكره"
    return day.isoformat()
