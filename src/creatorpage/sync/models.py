"""
Sync data models -- coordinator state and snapshot provenance.
"""

from __future__ import annotations

import time
from enum import Enum


class SyncStatus(str, Enum):
    """Where the coordinator stands with the remote store."""

    CONNECTING = "connecting"
    SYNCED = "synced"
    OFFLINE = "offline"
    CLOSED = "closed"


class SnapshotSource(str, Enum):
    """Where the most recently delivered snapshot came from."""

    REMOTE = "remote"
    CACHE = "cache"
    LOCAL_EDIT = "local_edit"
    RESET = "reset"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)
