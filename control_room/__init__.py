# =============================================================================
# control_room/__init__.py
# Control Room - personal deals, debts and income dashboard core
# =============================================================================
"""
Offline-capable data layer and priority engine behind the Control Room
dashboard.

    from control_room import get_control_room

    room = get_control_room()
    room.deals.create({"name": "توريد خامات", "expected_value": 80000})
    room.dashboard.get_priority_report().focus_now
"""

__version__ = "1.0.0"

from .app import ControlRoom, get_control_room, reset_control_room

__all__ = ["ControlRoom", "get_control_room", "reset_control_room", "__version__"]
