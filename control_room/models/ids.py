# =============================================================================
# control_room/models/ids.py
# Provisional vs. Canonical Record Identifiers
# =============================================================================
"""
Record ids come in two flavours:

- ``LocalId``: generated on this device for an offline create. The remote
  store is expected to accept it verbatim (inserts are upserts on ``id``).
- ``RemoteId``: the id the remote store reports back as canonical.

When a replayed create comes back with a canonical id different from the
provisional one, the sync manager reconciles the two (cache re-key plus
rewrite of queued references).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class LocalId:
    value: str

    @classmethod
    def new(cls) -> "LocalId":
        return cls(str(uuid.uuid4()))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RemoteId:
    value: str

    def __str__(self) -> str:
        return self.value


RecordId = Union[LocalId, RemoteId]


def needs_reconciliation(local: LocalId, remote: RemoteId) -> bool:
    """True when the remote store did not keep the provisional id."""
    return local.value != remote.value
