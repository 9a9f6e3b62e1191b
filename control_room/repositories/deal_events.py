# =============================================================================
# control_room/repositories/deal_events.py
# Deal Timeline Events Repository
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List

from control_room.models import DealEvent
from control_room.models.entities import DEFAULT_EVENT_TYPE
from .base import EntityRepository


class DealEventRepository(EntityRepository[DealEvent]):
    """Deal timeline, latest event first."""

    model = DealEvent
    ORDER_BY = (("event_date", True),)
    REFERENCES = {"deal_id": "deals"}
    MESSAGES = {
        "created": "تم إضافة الحدث",
        "updated": "تم تحديث الحدث",
        "deleted": "تم حذف الحدث",
        "failed": "حصل مشكلة",
    }

    def _creation_defaults(self) -> Dict[str, Any]:
        return {
            "event_type": DEFAULT_EVENT_TYPE,
            "event_date": self._clock().isoformat(),
        }

    def list_for_deal(self, deal_id: str) -> List[DealEvent]:
        return self._query(
            (self.table, "deal", deal_id),
            {"deal_id": deal_id},
        )
