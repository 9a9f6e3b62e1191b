# =============================================================================
# control_room/repositories/deal_tasks.py
# Deal Tasks Repository
# =============================================================================

from __future__ import annotations
from typing import List

from control_room.models import DealTask
from .base import EntityRepository


class DealTaskRepository(EntityRepository[DealTask]):
    model = DealTask
    ORDER_BY = (("priority", False), ("created_at", False))
    REFERENCES = {"deal_id": "deals"}
    MESSAGES = {
        "created": "تم إضافة المهمة",
        "updated": "تم تحديث المهمة",
        "deleted": "تم حذف المهمة",
        "failed": "حصل مشكلة",
    }

    def list_for_deal(self, deal_id: str) -> List[DealTask]:
        return self._query(
            (self.table, "deal", deal_id),
            {"deal_id": deal_id},
        )

    def toggle(self, task_id: str, is_completed: bool):
        return self.update(task_id, {"is_completed": is_completed})
