"""
Page sync -- remote store, local cache and the coordinator between them.

The remote store is the truth once it answers. The cache paints first
when it does not. Edits land on screen before they land anywhere else.
"""

from .cache import LocalCache
from .coordinator import Subscription, SyncCoordinator
from .models import SnapshotSource, SyncStatus
from .remote import FirebaseRemoteStore, MemoryRemoteStore, RemoteStore, create_remote_store

__all__ = [
    "FirebaseRemoteStore",
    "LocalCache",
    "MemoryRemoteStore",
    "RemoteStore",
    "SnapshotSource",
    "Subscription",
    "SyncCoordinator",
    "SyncStatus",
    "create_remote_store",
]
