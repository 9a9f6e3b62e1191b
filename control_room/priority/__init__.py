# =============================================================================
# control_room/priority/__init__.py
# Priority Engine
# =============================================================================

from .readiness import (
    READY_THRESHOLD,
    Difficulty,
    analyze_readiness,
    analyze_execution_difficulty,
)
from .rules import (
    POLICY_VERSION,
    RULES,
    RuleResult,
    ScoringContext,
    focus_level,
    suggest_action,
)
from .engine import (
    PriorityEngine,
    PriorityReport,
    PrioritySummary,
    PrioritizedDeal,
    prioritize,
)

__all__ = [
    "READY_THRESHOLD",
    "Difficulty",
    "analyze_readiness",
    "analyze_execution_difficulty",
    "POLICY_VERSION",
    "RULES",
    "RuleResult",
    "ScoringContext",
    "focus_level",
    "suggest_action",
    "PriorityEngine",
    "PriorityReport",
    "PrioritySummary",
    "PrioritizedDeal",
    "prioritize",
]
