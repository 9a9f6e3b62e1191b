# =============================================================================
# control_room/priority/readiness.py
# Deal Readiness and Execution Difficulty
# =============================================================================
"""
How execution-ready is a deal right now?

Readiness starts at 100. Late stages earn a bonus (capped at 100), then
every missing prerequisite costs points and is reported as a blocker.
A deal with no next action can therefore never reach READY_THRESHOLD.
"""

from __future__ import annotations
from enum import Enum
from typing import List, Tuple

from control_room.models import Deal, DealStage

READY_THRESHOLD = 70

BLOCKER_NO_NEXT_ACTION = "مفيش خطوة قادمة محددة"
BLOCKER_NO_DATE = "مفيش موعد للخطوة"
BLOCKER_JUST_STARTED = "لسه في البداية"

# Points lost per blocker
BLOCKER_PENALTIES = {
    BLOCKER_NO_NEXT_ACTION: 40,
    BLOCKER_NO_DATE: 20,
    BLOCKER_JUST_STARTED: 15,
}

STAGE_READINESS_BONUS = {
    DealStage.AWAITING_SIGNATURE: 20,
    DealStage.NEGOTIATING: 10,
}


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def find_blockers(deal: Deal) -> List[str]:
    blockers = []
    if not deal.has_next_action:
        blockers.append(BLOCKER_NO_NEXT_ACTION)
    if deal.next_action_date is None:
        blockers.append(BLOCKER_NO_DATE)
    if deal.stage == DealStage.NEW:
        blockers.append(BLOCKER_JUST_STARTED)
    return blockers


def analyze_readiness(deal: Deal) -> Tuple[int, List[str]]:
    """Return (readiness score 0-100, blockers)."""
    blockers = find_blockers(deal)
    score = min(100, 100 + STAGE_READINESS_BONUS.get(deal.stage, 0))
    score -= sum(BLOCKER_PENALTIES[b] for b in blockers)
    return max(0, min(100, score)), blockers


def analyze_execution_difficulty(deal: Deal, blockers: List[str]) -> Difficulty:
    """
    easy: clear next step with a date, in a closing stage.
    hard: two or more blockers, or an early/stalled stage with no next step.
    """
    if (
        deal.has_next_action
        and deal.next_action_date is not None
        and deal.stage in (DealStage.AWAITING_SIGNATURE, DealStage.NEGOTIATING)
    ):
        return Difficulty.EASY
    if len(blockers) >= 2:
        return Difficulty.HARD
    if deal.stage in (DealStage.NEW, DealStage.AWAITING_REPLY) and not deal.has_next_action:
        return Difficulty.HARD
    return Difficulty.MEDIUM
