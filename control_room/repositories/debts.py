# =============================================================================
# control_room/repositories/debts.py
# Debts Repository
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List

from control_room.models import Debt, PRESSURE_RANK, PressureLevel
from .base import EntityRepository, sort_rows


class DebtRepository(EntityRepository[Debt]):
    """Debts, highest pressure first, then earliest due date."""

    model = Debt
    ORDER_BY = (("pressure_level", False),)
    MESSAGES = {
        "created": "تم إضافة الدين",
        "updated": "تم التحديث",
        "deleted": "تم الحذف",
        "failed": "حصل مشكلة في حفظ الدين",
    }

    def _order(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        # Pressure labels do not sort lexically in severity order
        rows = sort_rows(rows, (("due_date", False),))
        rows.sort(key=_pressure_rank)
        return rows

    def mark_paid(self, debt_id: str):
        """Mark a debt as fully paid (remaining amount drops to 0)."""
        return self.update(debt_id, {"is_paid": True})


def _pressure_rank(row: Dict[str, Any]) -> int:
    try:
        return PRESSURE_RANK[PressureLevel(row.get("pressure_level"))]
    except ValueError:
        return len(PRESSURE_RANK)
