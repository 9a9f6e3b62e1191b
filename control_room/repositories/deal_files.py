# =============================================================================
# control_room/repositories/deal_files.py
# Deal Files Repository
# =============================================================================

from __future__ import annotations
from typing import List

from control_room.models import DealFile
from .base import EntityRepository


class DealFileRepository(EntityRepository[DealFile]):
    model = DealFile
    ORDER_BY = (("created_at", True),)
    REFERENCES = {"deal_id": "deals"}
    MESSAGES = {
        "created": "تم إضافة الملف",
        "updated": "تم تحديث الملف",
        "deleted": "تم حذف الملف",
        "failed": "حصل مشكلة",
    }

    def list_for_deal(self, deal_id: str) -> List[DealFile]:
        return self._query(
            (self.table, "deal", deal_id),
            {"deal_id": deal_id},
        )
