# =============================================================================
# control_room/repositories/daily_moves.py
# Daily Moves Repository
# =============================================================================

from __future__ import annotations
from datetime import date
from typing import Any, Dict, List, Optional

from control_room.models import DailyMove
from .base import EntityRepository

COMPLETED_MESSAGE = "برافو عليك! 💪"


class DailyMoveRepository(EntityRepository[DailyMove]):
    """Single-day moves, ordered by priority rank."""

    model = DailyMove
    ORDER_BY = (("priority", False),)
    REFERENCES = {"deal_id": "deals"}
    MESSAGES = {
        "created": "تم إضافة الحركة",
        "updated": "تم التحديث",
        "deleted": "تم الحذف",
        "failed": "حصل مشكلة",
    }

    def _creation_defaults(self) -> Dict[str, Any]:
        return {"move_date": self._clock().date(), "priority": 1, "is_completed": False}

    def list_today(self, today: Optional[date] = None) -> List[DailyMove]:
        day = (today or self._clock().date()).isoformat()
        return self._query(
            (self.table, "day", day),
            {"move_date": day},
        )

    def toggle(self, move_id: str, is_completed: bool) -> Optional[DailyMove]:
        move = self.update(move_id, {"is_completed": is_completed})
        if is_completed:
            self._notify("success", COMPLETED_MESSAGE)
        return move
