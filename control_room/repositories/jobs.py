# =============================================================================
# control_room/repositories/jobs.py
# Jobs Repository
# =============================================================================

from __future__ import annotations

from control_room.models import Job
from .base import EntityRepository


class JobRepository(EntityRepository[Job]):
    """Income sources: active jobs first, then newest."""

    model = Job
    ORDER_BY = (("is_active", True), ("created_at", True))
    MESSAGES = {
        "created": "تم إضافة الشغلانة بنجاح",
        "updated": "تم تحديث الشغلانة",
        "deleted": "تم حذف الشغلانة",
        "failed": "حصل مشكلة في حفظ الشغلانة",
    }
