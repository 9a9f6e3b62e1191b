# =============================================================================
# control_room/services/money.py
# Debt Pressure and Income Summaries
# =============================================================================
"""
Headline money figures for the dashboard. All totals are in EGP.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from control_room.models import CurrencyTable, Debt, Job, PressureLevel, to_monthly_amount


@dataclass
class DebtPressureSummary:
    unpaid_count: int = 0
    total_remaining: float = 0.0
    monthly_payments: float = 0.0
    high_pressure_count: int = 0

    @property
    def has_high_pressure(self) -> bool:
        return self.high_pressure_count > 0


@dataclass
class IncomeSummary:
    active_jobs: int = 0
    total_monthly_income: float = 0.0
    next_payday: Optional[date] = None
    next_payday_job: Optional[str] = None

    def days_until_payday(self, today: date) -> Optional[int]:
        if self.next_payday is None:
            return None
        return (self.next_payday - today).days


def debt_pressure_summary(
    debts: Sequence[Debt],
    currency_table: Optional[CurrencyTable] = None,
) -> DebtPressureSummary:
    """Unpaid debts only."""
    table = currency_table or CurrencyTable()
    unpaid = [d for d in debts if not d.is_paid]
    return DebtPressureSummary(
        unpaid_count=len(unpaid),
        total_remaining=sum(table.to_reference(d.remaining_amount, d.currency) for d in unpaid),
        monthly_payments=sum(table.to_reference(d.monthly_payment, d.currency) for d in unpaid),
        high_pressure_count=sum(1 for d in unpaid if d.pressure_level == PressureLevel.HIGH),
    )


def income_summary(
    jobs: Sequence[Job],
    today: Optional[date] = None,
    currency_table: Optional[CurrencyTable] = None,
) -> IncomeSummary:
    """
    Monthly income across active jobs, and the nearest pay date that is not
    in the past.
    """
    table = currency_table or CurrencyTable()
    today = today or date.today()
    active = [j for j in jobs if j.is_active]

    total = sum(
        table.to_reference(to_monthly_amount(j.salary_amount, j.pay_frequency.value), j.currency)
        for j in active
    )
    upcoming = sorted(
        (j for j in active if j.next_pay_date is not None and j.next_pay_date >= today),
        key=lambda j: j.next_pay_date,
    )
    next_job = upcoming[0] if upcoming else None
    return IncomeSummary(
        active_jobs=len(active),
        total_monthly_income=total,
        next_payday=next_job.next_pay_date if next_job else None,
        next_payday_job=next_job.name if next_job else None,
    )
