# =============================================================================
# control_room/priority/rules.py
# Priority Scoring Policy
# =============================================================================
"""
Declarative scoring policy.

Each rule is a pure function ``(deal, context) -> RuleResult``. The engine
sums the points of every rule in table order, clamps the total to 0-100 and
keeps the first three reasons. Bump POLICY_VERSION whenever a rule, weight
or threshold changes.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Tuple

from control_room.models import Deal, DealPriority, DealStage
from .readiness import (
    BLOCKER_JUST_STARTED,
    BLOCKER_NO_DATE,
    BLOCKER_NO_NEXT_ACTION,
    Difficulty,
)

POLICY_VERSION = "2"

MAX_REASONS = 3
HIGH_VALUE_THRESHOLD_EGP = 100_000

# Focus bands: lower bound of each tier
FOCUS_CRITICAL = 65
FOCUS_HIGH = 45
FOCUS_MEDIUM = 25


@dataclass(frozen=True)
class RuleResult:
    points: int = 0
    reason: Optional[str] = None


NO_POINTS = RuleResult()


@dataclass
class ScoringContext:
    """Per-deal analysis plus the portfolio figures rules need."""
    today: date
    readiness: int
    blockers: List[str]
    difficulty: Difficulty
    value_egp: float
    # Days from today to the next action date (negative = overdue)
    days_until: Optional[int] = None
    total_debt_egp: float = 0.0
    high_pressure_debt_egp: float = 0.0


def round_half_up(value: float) -> int:
    return int(value + 0.5)


# =============================================================================
# RULES
# =============================================================================

def readiness_rule(deal: Deal, ctx: ScoringContext) -> RuleResult:
    """Up to 30 points; a deal that is not ready will not get done."""
    points = round_half_up(ctx.readiness * 0.3)
    return RuleResult(points, "جاهز للتنفيذ دلوقتي" if ctx.readiness >= 80 else None)


def urgency_rule(deal: Deal, ctx: ScoringContext) -> RuleResult:
    days = ctx.days_until
    if days is None:
        return NO_POINTS
    if days < 0:
        return RuleResult(25, "الموعد فات!")
    if days == 0:
        return RuleResult(22, "الموعد النهاردة")
    if days == 1:
        return RuleResult(18, "الموعد بكرة")
    if days <= 3:
        return RuleResult(14, f"{days} أيام للموعد")
    if days <= 7:
        return RuleResult(8)
    return NO_POINTS


EASE_POINTS = {
    Difficulty.EASY: RuleResult(20, "سهل يتقفل"),
    Difficulty.MEDIUM: RuleResult(10),
    Difficulty.HARD: RuleResult(3),
}


def execution_ease_rule(deal: Deal, ctx: ScoringContext) -> RuleResult:
    return EASE_POINTS[ctx.difficulty]


STAGE_MOMENTUM = {
    DealStage.AWAITING_SIGNATURE: RuleResult(15, "قريبة جداً من الإغلاق!"),
    DealStage.NEGOTIATING: RuleResult(12, "في المفاوضات"),
    DealStage.AWAITING_REPLY: RuleResult(6),
    DealStage.TALKING: RuleResult(4),
    DealStage.NEW: RuleResult(2),
}


def stage_momentum_rule(deal: Deal, ctx: ScoringContext) -> RuleResult:
    return STAGE_MOMENTUM.get(deal.stage, NO_POINTS)


def debt_relief_rule(deal: Deal, ctx: ScoringContext) -> RuleResult:
    """Bonus when closing the deal would clear debt (all amounts in EGP)."""
    value = ctx.value_egp
    total = ctx.total_debt_egp
    high = ctx.high_pressure_debt_egp
    feasible = ctx.difficulty != Difficulty.HARD
    if total > 0 and value >= total and feasible:
        return RuleResult(10, "تسد كل الديون")
    if high > 0 and value >= high and feasible:
        return RuleResult(7, "تحل ديون الضغط")
    if total > 0 and value >= total * 0.5 and ctx.difficulty == Difficulty.EASY:
        return RuleResult(5, "تغطي نص الديون")
    return NO_POINTS


def high_value_rule(deal: Deal, ctx: ScoringContext) -> RuleResult:
    if ctx.value_egp >= HIGH_VALUE_THRESHOLD_EGP:
        return RuleResult(5, "قيمة عالية")
    return NO_POINTS


USER_PRIORITY_POINTS = {
    DealPriority.HIGH: RuleResult(15, "أولوية عالية"),
    DealPriority.MEDIUM: RuleResult(5),
    DealPriority.LOW: NO_POINTS,
}


def user_priority_rule(deal: Deal, ctx: ScoringContext) -> RuleResult:
    return USER_PRIORITY_POINTS[deal.priority]


def blocked_but_important_rule(deal: Deal, ctx: ScoringContext) -> RuleResult:
    """A high-priority deal stuck on blockers needs attention now."""
    if deal.priority == DealPriority.HIGH and ctx.blockers:
        return RuleResult(20, "مهمة بس واقفة")
    return NO_POINTS


Rule = Callable[[Deal, ScoringContext], RuleResult]

RULES: Tuple[Tuple[str, Rule], ...] = (
    ("readiness", readiness_rule),
    ("urgency", urgency_rule),
    ("execution_ease", execution_ease_rule),
    ("stage_momentum", stage_momentum_rule),
    ("debt_relief", debt_relief_rule),
    ("high_value", high_value_rule),
    ("user_priority", user_priority_rule),
    ("blocked_but_important", blocked_but_important_rule),
)


def apply_rules(deal: Deal, ctx: ScoringContext, rules=RULES) -> Tuple[int, List[str]]:
    """Sum every rule, clamp to 0-100, keep the first MAX_REASONS reasons."""
    total = 0
    reasons: List[str] = []
    for _name, rule in rules:
        result = rule(deal, ctx)
        total += result.points
        if result.reason:
            reasons.append(result.reason)
    return max(0, min(100, total)), reasons[:MAX_REASONS]


# =============================================================================
# FOCUS & SUGGESTED ACTION
# =============================================================================

def focus_level(score: int) -> str:
    if score >= FOCUS_CRITICAL:
        return "critical"
    if score >= FOCUS_HIGH:
        return "high"
    if score >= FOCUS_MEDIUM:
        return "medium"
    return "low"


BLOCKER_REMEDIATION = {
    BLOCKER_NO_NEXT_ACTION: "حدد الخطوة الجاية",
    BLOCKER_NO_DATE: "حدد موعد للخطوة",
    BLOCKER_JUST_STARTED: "ابدأ التواصل",
}

STAGE_ACTIONS = {
    DealStage.AWAITING_SIGNATURE: "تابع علشان تقفل",
    DealStage.NEGOTIATING: "خلص المفاوضة",
    DealStage.AWAITING_REPLY: "فولو أب",
    DealStage.TALKING: "اتفق على الخطوة الجاية",
}
DEFAULT_ACTION = "ابدأ التواصل"


def remediation(blocker: str) -> str:
    return BLOCKER_REMEDIATION.get(blocker, f"عالج: {blocker}")


def suggest_action(deal: Deal, ctx: ScoringContext) -> str:
    if ctx.readiness < 50 and ctx.blockers:
        return remediation(ctx.blockers[0])
    if ctx.days_until is not None and ctx.days_until < 0:
        return "لازم تتحرك النهارده"
    if ctx.days_until == 0:
        return "نفذ الخطوة دلوقتي"
    if ctx.blockers:
        return remediation(ctx.blockers[0])
    return STAGE_ACTIONS.get(deal.stage, DEFAULT_ACTION)
