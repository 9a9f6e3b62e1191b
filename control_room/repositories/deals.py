# =============================================================================
# control_room/repositories/deals.py
# Deals Repository
# =============================================================================

from __future__ import annotations

from control_room.models import Deal
from .base import EntityRepository


class DealRepository(EntityRepository[Deal]):
    """Deals, newest activity first."""

    model = Deal
    ORDER_BY = (("updated_at", True),)
    # Deleting a deal cascades to its sub-entities in the remote store
    DEPENDENT_TABLES = ("deal_tasks", "deal_events", "deal_files", "calls", "daily_moves")
    MESSAGES = {
        "created": "تم إضافة المصلحة بنجاح",
        "updated": "تم تحديث المصلحة",
        "deleted": "تم حذف المصلحة",
        "failed": "حصل مشكلة في حفظ المصلحة",
    }
