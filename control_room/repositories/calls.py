# =============================================================================
# control_room/repositories/calls.py
# Calls Repository
# =============================================================================

from __future__ import annotations
from datetime import date
from typing import List, Optional

from control_room.models import Call
from .base import EntityRepository


class CallRepository(EntityRepository[Call]):
    """Call log, most recent call first."""

    model = Call
    ORDER_BY = (("call_date", True),)
    REFERENCES = {"deal_id": "deals"}
    MESSAGES = {
        "created": "تم تسجيل المكالمة بنجاح",
        "updated": "تم تحديث المكالمة",
        "deleted": "تم حذف المكالمة",
        "failed": "حصل مشكلة في تسجيل المكالمة",
    }

    def list_for_deal(self, deal_id: str) -> List[Call]:
        return self._query(
            (self.table, "deal", deal_id),
            {"deal_id": deal_id},
        )

    def today_follow_ups(self, today: Optional[date] = None) -> List[Call]:
        """Calls whose follow-up falls on ``today``."""
        day = (today or self._clock().date()).isoformat()
        return self._query(
            (self.table, "follow_up", day),
            {"follow_up_date": day},
        )
