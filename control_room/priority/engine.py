# =============================================================================
# control_room/priority/engine.py
# Priority Engine - "what should I work on now?"
# =============================================================================
"""
Pure ranking of active deals against the current debt picture.

Features:
- Readiness, blockers and execution difficulty per deal
- Rule-table priority score (0-100) with explainable reasons
- Fixed focus bands and a suggested next move
- Ranking views (top priorities, critical, blocked, easy wins) and a
  currency-normalized summary

No I/O and no state between calls: the same deals, debts and day always
produce the same report.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from control_room.models import Deal, DealStage, Debt, CurrencyTable, PressureLevel
from .readiness import READY_THRESHOLD, Difficulty, analyze_execution_difficulty, analyze_readiness
from .rules import POLICY_VERSION, RULES, ScoringContext, apply_rules, focus_level, suggest_action

TOP_PRIORITIES_COUNT = 3
EASY_WIN_MIN_READINESS = 60


@dataclass
class PrioritizedDeal:
    """A deal annotated with its ranking. Never persisted."""
    deal: Deal
    priority_score: int
    priority_reasons: List[str]
    focus_level: str
    blockers: List[str]
    execution_difficulty: str
    readiness_score: int
    suggested_action: Optional[str] = None
    value_egp: float = 0.0

    @property
    def id(self) -> Optional[str]:
        return self.deal.id

    @property
    def name(self) -> str:
        return self.deal.name

    @property
    def stage(self):
        return self.deal.stage

    @property
    def is_blocked(self) -> bool:
        return bool(self.blockers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.deal.to_dict(),
            "priority_score": self.priority_score,
            "priority_reasons": list(self.priority_reasons),
            "focus_level": self.focus_level,
            "suggested_action": self.suggested_action,
            "blockers": list(self.blockers),
            "execution_difficulty": self.execution_difficulty,
            "readiness_score": self.readiness_score,
            "value_egp": self.value_egp,
        }


@dataclass
class PrioritySummary:
    total_deals: int = 0
    total_value: float = 0.0
    critical_count: int = 0
    critical_value: float = 0.0
    avg_priority_score: int = 0
    avg_readiness_score: int = 0
    needs_attention_count: int = 0
    easy_wins_count: int = 0
    blocked_count: int = 0


@dataclass
class PriorityReport:
    """Ranked view of the active deals."""
    prioritized_deals: List[PrioritizedDeal] = field(default_factory=list)
    policy_version: str = POLICY_VERSION

    @property
    def top_priorities(self) -> List[PrioritizedDeal]:
        return self.prioritized_deals[:TOP_PRIORITIES_COUNT]

    @property
    def focus_now(self) -> Optional[PrioritizedDeal]:
        return self.prioritized_deals[0] if self.prioritized_deals else None

    @property
    def critical_deals(self) -> List[PrioritizedDeal]:
        return [d for d in self.prioritized_deals if d.focus_level == "critical"]

    @property
    def blocked_deals(self) -> List[PrioritizedDeal]:
        return [d for d in self.prioritized_deals if d.blockers]

    @property
    def needs_attention(self) -> List[PrioritizedDeal]:
        return [
            d for d in self.prioritized_deals
            if d.blockers or d.readiness_score < READY_THRESHOLD
        ]

    @property
    def easy_wins(self) -> List[PrioritizedDeal]:
        return [
            d for d in self.prioritized_deals
            if d.execution_difficulty == Difficulty.EASY.value
            and d.readiness_score >= EASY_WIN_MIN_READINESS
            and d.stage != DealStage.NEW
        ]

    @property
    def summary(self) -> PrioritySummary:
        deals = self.prioritized_deals
        if not deals:
            return PrioritySummary()
        critical = self.critical_deals
        return PrioritySummary(
            total_deals=len(deals),
            total_value=sum(d.value_egp for d in deals),
            critical_count=len(critical),
            critical_value=sum(d.value_egp for d in critical),
            avg_priority_score=int(sum(d.priority_score for d in deals) / len(deals) + 0.5),
            avg_readiness_score=int(sum(d.readiness_score for d in deals) / len(deals) + 0.5),
            needs_attention_count=len(self.needs_attention),
            easy_wins_count=len(self.easy_wins),
            blocked_count=len(self.blocked_deals),
        )

    def to_dataframe(self) -> pd.DataFrame:
        """One row per ranked deal, in rank order."""
        columns = [
            "id", "name", "stage", "priority_score", "focus_level", "readiness_score",
            "execution_difficulty", "value_egp", "suggested_action", "priority_reasons", "blockers",
        ]
        rows = [
            {
                "id": d.id,
                "name": d.name,
                "stage": d.stage.value,
                "priority_score": d.priority_score,
                "focus_level": d.focus_level,
                "readiness_score": d.readiness_score,
                "execution_difficulty": d.execution_difficulty,
                "value_egp": d.value_egp,
                "suggested_action": d.suggested_action,
                "priority_reasons": "، ".join(d.priority_reasons),
                "blockers": "، ".join(d.blockers),
            }
            for d in self.prioritized_deals
        ]
        return pd.DataFrame(rows, columns=columns)


class PriorityEngine:
    """
    Scores and ranks deals.

    Usage:
        engine = PriorityEngine(CurrencyTable(settings.currency_rates))
        report = engine.prioritize(deals, debts, today=date.today())
        report.focus_now.suggested_action
    """

    def __init__(self, currency_table: Optional[CurrencyTable] = None, rules=RULES):
        self.currency_table = currency_table or CurrencyTable()
        self.rules = rules

    def debt_totals(self, debts: Sequence[Debt]) -> tuple:
        """(all unpaid remaining, high-pressure unpaid remaining) in EGP."""
        total = 0.0
        high = 0.0
        for debt in debts:
            if debt.is_paid:
                continue
            remaining = self.currency_table.to_reference(
                debt.remaining_amount, debt.currency
            )
            total += remaining
            if debt.pressure_level == PressureLevel.HIGH:
                high += remaining
        return total, high

    def score_deal(
        self,
        deal: Deal,
        today: date,
        total_debt_egp: float = 0.0,
        high_pressure_debt_egp: float = 0.0,
    ) -> PrioritizedDeal:
        readiness, blockers = analyze_readiness(deal)
        difficulty = analyze_execution_difficulty(deal, blockers)
        ctx = ScoringContext(
            today=today,
            readiness=readiness,
            blockers=blockers,
            difficulty=difficulty,
            value_egp=self.currency_table.to_reference(deal.expected_value, deal.currency),
            days_until=(deal.next_action_date - today).days if deal.next_action_date else None,
            total_debt_egp=total_debt_egp,
            high_pressure_debt_egp=high_pressure_debt_egp,
        )
        score, reasons = apply_rules(deal, ctx, self.rules)
        return PrioritizedDeal(
            deal=deal,
            priority_score=score,
            priority_reasons=reasons,
            focus_level=focus_level(score),
            blockers=blockers,
            execution_difficulty=difficulty.value,
            readiness_score=readiness,
            suggested_action=suggest_action(deal, ctx),
            value_egp=ctx.value_egp,
        )

    def prioritize(
        self,
        deals: Sequence[Deal],
        debts: Sequence[Debt],
        today: Optional[date] = None,
    ) -> PriorityReport:
        """Rank every active deal (closed, cancelled and deferred are excluded)."""
        today = today or date.today()
        total_debt, high_debt = self.debt_totals(debts)
        scored = [
            self.score_deal(deal, today, total_debt, high_debt)
            for deal in deals
            if deal.is_active
        ]
        scored.sort(key=lambda d: (-d.priority_score, -d.value_egp, d.name))
        return PriorityReport(prioritized_deals=scored)


def prioritize(
    deals: Sequence[Deal],
    debts: Sequence[Debt],
    today: Optional[date] = None,
    currency_table: Optional[CurrencyTable] = None,
) -> PriorityReport:
    """Convenience wrapper around PriorityEngine.prioritize."""
    return PriorityEngine(currency_table).prioritize(deals, debts, today)
