# =============================================================================
# control_room/repositories/__init__.py
# Data Access Facades (one per entity type)
# =============================================================================

from .base import EntityRepository, OFFLINE_NOTICE
from .deals import DealRepository
from .debts import DebtRepository
from .jobs import JobRepository
from .calls import CallRepository
from .deal_tasks import DealTaskRepository
from .deal_events import DealEventRepository
from .deal_files import DealFileRepository
from .daily_moves import DailyMoveRepository

__all__ = [
    "EntityRepository",
    "OFFLINE_NOTICE",
    "DealRepository",
    "DebtRepository",
    "JobRepository",
    "CallRepository",
    "DealTaskRepository",
    "DealEventRepository",
    "DealFileRepository",
    "DailyMoveRepository",
]
