# =============================================================================
# control_room/offline/__init__.py
# Offline-First Data Layer for Control Room
# =============================================================================
"""
Offline-first data layer.

The app behaves the same with or without internet: reads fall back to the
local SQLite cache, writes made offline are queued and replayed on reconnect.

    ┌───────────────────────────────────────────────┐
    │        Repositories (one per entity)          │
    └───────────────────────────────────────────────┘
          │               │                │
          ▼               ▼                ▼
   ConnectionManager   LocalCache      RemoteGateway ──► Supabase
     (online/offline)  + SyncQueue          ▲
                          │                 │
                          └── SyncManager ──┘
                            (drain on reconnect)

Usage:
    from control_room import get_control_room

    room = get_control_room()
    deals = room.deals.list()
    room.sync_manager.force_sync()
"""

from .connection_manager import (
    ConnectionManager,
    ConnectionState,
    ConnectionStatus,
    socket_probe,
)
from .local_database import LocalDatabase, ENTITY_TABLES
from .local_cache import LocalCache, CachedRecord
from .sync_queue import SyncQueue, QueuedMutation
from .remote_gateway import RemoteGateway, SupabaseGateway
from .query_cache import QueryCache, Transient
from .sync_manager import SyncManager, SyncReport, SyncState, order_entries

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "ConnectionStatus",
    "socket_probe",
    "LocalDatabase",
    "ENTITY_TABLES",
    "LocalCache",
    "CachedRecord",
    "SyncQueue",
    "QueuedMutation",
    "RemoteGateway",
    "SupabaseGateway",
    "QueryCache",
    "Transient",
    "SyncManager",
    "SyncReport",
    "SyncState",
    "order_entries",
]
