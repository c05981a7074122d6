"""
Sync coordinator -- one consistent AppData out of three sources.

The remote store is authoritative once it speaks. Until it does, a
fallback timer races it: if the timer wins, the local cache (or the
compiled defaults) paints first and the remote value follows whenever
it arrives. Edits are applied to visible state before any I/O and then
written through to the cache and the remote store.

    CONNECTING --remote value--> SYNCED --remote value--> SYNCED
    CONNECTING --timer / error--> OFFLINE --remote value--> SYNCED
    any --unsubscribe--> CLOSED
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, Callable, Optional

from ..defaults import default_app_data
from ..errors import WriteError
from ..models import LAST_UPDATED_KEY, AppData
from ..schema import merge_with_defaults
from .cache import LocalCache
from .models import SnapshotSource, SyncStatus, now_ms
from .remote import RemoteStore, RemoteSubscription

logger = logging.getLogger("creatorpage.sync.coordinator")

OnData = Callable[[AppData], None]


class Subscription:
    """A live feed of snapshots from a SyncCoordinator.

    ``first_snapshot`` resolves with the first value delivered, whichever
    side of the fallback race produced it. Iterating the subscription
    yields the latest snapshot and then every later one until
    ``unsubscribe()``.
    """

    def __init__(self, coordinator: "SyncCoordinator", on_data: Optional[OnData]) -> None:
        self._coordinator = coordinator
        self._on_data = on_data
        self._queues: list[asyncio.Queue] = []
        self._latest: Optional[AppData] = None
        self.first_snapshot: asyncio.Future = asyncio.get_running_loop().create_future()
        self.active = True

    def unsubscribe(self) -> None:
        """Stop deliveries and cancel the pending fallback timer."""
        self._coordinator._unsubscribe(self)

    def _deliver(self, snapshot: AppData) -> None:
        if not self.active:
            return
        self._latest = snapshot
        if not self.first_snapshot.done():
            self.first_snapshot.set_result(snapshot)
        for queue in self._queues:
            queue.put_nowait(snapshot)
        if self._on_data is not None:
            self._on_data(snapshot)

    def _close(self) -> None:
        self.active = False
        if not self.first_snapshot.done():
            self.first_snapshot.cancel()
        for queue in self._queues:
            queue.put_nowait(None)

    def __aiter__(self) -> AsyncIterator[AppData]:
        return self._stream()

    async def _stream(self) -> AsyncIterator[AppData]:
        if not self.active:
            return
        queue: asyncio.Queue = asyncio.Queue()
        if self._latest is not None:
            queue.put_nowait(self._latest)
        self._queues.append(queue)
        try:
            while True:
                snapshot = await queue.get()
                if snapshot is None:
                    return
                yield snapshot
        finally:
            self._queues.remove(queue)


class SyncCoordinator:
    """Reconciles the remote store, the local cache and the defaults.

    Args:
        cache: Local snapshot cache.
        remote: Remote store adapter, or None for local-only mode.
        fallback_seconds: How long the remote gets before the cache paints.
    """

    def __init__(
        self,
        cache: LocalCache,
        remote: Optional[RemoteStore] = None,
        fallback_seconds: float = 3.0,
    ) -> None:
        self.cache = cache
        self.remote = remote
        self.fallback_seconds = fallback_seconds
        self.status = SyncStatus.CLOSED
        self.source: Optional[SnapshotSource] = None
        self.current: Optional[AppData] = None
        self._subscription: Optional[Subscription] = None
        self._remote_sub: Optional[RemoteSubscription] = None
        self._fallback: Optional[asyncio.Handle] = None
        self._last_stamp = 0
        self._pending: set[asyncio.Task] = set()
        self._synced = asyncio.Event()

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    def subscribe(self, on_data: Optional[OnData] = None) -> Subscription:
        """Start delivering snapshots to ``on_data``.

        Must be called from inside a running event loop. Only one
        subscription may be active at a time.

        Raises:
            RuntimeError: If a subscription is already active.
        """
        if self._subscription is not None and self._subscription.active:
            raise RuntimeError("Already subscribed; unsubscribe() first")

        loop = asyncio.get_running_loop()
        sub = Subscription(self, on_data)
        self._subscription = sub
        self._set_status(SyncStatus.CONNECTING)

        if self.remote is None:
            self._fallback = loop.call_soon(self._fallback_to_cache, "no remote store configured")
            return sub

        self._fallback = loop.call_later(
            self.fallback_seconds,
            self._fallback_to_cache,
            f"remote silent for {self.fallback_seconds:.1f}s",
        )
        remote_sub = self.remote.subscribe(self._on_remote_value, self._on_remote_error)
        if self.status is SyncStatus.OFFLINE and self._fallback is None:
            # The adapter failed synchronously inside subscribe().
            remote_sub.cancel()
        else:
            self._remote_sub = remote_sub
        return sub

    async def wait_synced(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for the remote store to answer.

        Returns:
            bool: True once the status is SYNCED, False on timeout.
        """
        try:
            await asyncio.wait_for(self._synced.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def reload(self, on_data: Optional[OnData] = None) -> Subscription:
        """Drop the current subscription and run the subscribe protocol again."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
        return self.subscribe(on_data)

    def _unsubscribe(self, sub: Subscription) -> None:
        if sub is self._subscription and sub.active:
            self._cancel_fallback()
            self._stop_remote()
            self._set_status(SyncStatus.CLOSED)
        sub._close()

    def _active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def _set_status(self, status: SyncStatus) -> None:
        if status is not self.status:
            logger.info("Sync status: %s -> %s", self.status.value, status.value)
            self.status = status
        if status is SyncStatus.SYNCED:
            self._synced.set()
        else:
            self._synced.clear()

    def _cancel_fallback(self) -> None:
        if self._fallback is not None:
            self._fallback.cancel()
            self._fallback = None

    def _stop_remote(self) -> None:
        if self._remote_sub is not None:
            self._remote_sub.cancel()
            self._remote_sub = None

    def _deliver(self, snapshot: AppData, source: SnapshotSource) -> None:
        self.current = snapshot
        self.source = source
        if self._active():
            self._subscription._deliver(snapshot)

    # ------------------------------------------------------------------
    # Race participants
    # ------------------------------------------------------------------

    def _fallback_to_cache(self, reason: str) -> None:
        self._fallback = None
        if not self._active():
            return
        self._set_status(SyncStatus.OFFLINE)
        if self._subscription.first_snapshot.done():
            return
        logger.warning("Using local cache: %s", reason)
        self._deliver(self.cache.load(), SnapshotSource.CACHE)

    def _on_remote_value(self, raw: Optional[dict[str, Any]]) -> None:
        if not self._active():
            return
        self._cancel_fallback()
        snapshot = default_app_data() if raw is None else merge_with_defaults(raw)
        self._set_status(SyncStatus.SYNCED)
        self._deliver(snapshot, SnapshotSource.REMOTE)

    def _on_remote_error(self, exc: Exception) -> None:
        if not self._active():
            return
        logger.warning("Remote store unavailable, staying local: %s", exc)
        self._cancel_fallback()
        self._stop_remote()
        self._set_status(SyncStatus.OFFLINE)
        self._deliver(self.cache.load(), SnapshotSource.CACHE)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _next_stamp(self) -> int:
        floor = self._last_stamp
        if self.current is not None:
            floor = max(floor, self.current.last_updated)
        self._last_stamp = max(now_ms(), floor + 1)
        return self._last_stamp

    async def save(self, new_data: AppData) -> AppData:
        """Apply ``new_data`` now, then persist it locally and remotely.

        Visible state changes before any I/O starts. A failed remote
        write is not rolled back.

        Returns:
            AppData: The snapshot as stored, with its new ``last_updated``.

        Raises:
            WriteError: If the remote store rejected the write.
        """
        stamp = self._next_stamp()
        data = new_data.model_copy(update={"last_updated": stamp}, deep=True)
        self._deliver(data, SnapshotSource.LOCAL_EDIT)

        try:
            self.cache.save(data)
        except OSError as exc:
            logger.error("Local cache write failed: %s", exc)

        if self.remote is None:
            return data

        try:
            await self.remote.write_partial({**data.editable_fields(), LAST_UPDATED_KEY: stamp})
        except WriteError as exc:
            logger.error("Remote write failed, change is local only: %s", exc)
            raise
        logger.debug("Saved snapshot %d", stamp)
        return data

    def reset(self) -> AppData:
        """Revert to the compiled defaults everywhere and return them.

        The snapshot that is delivered and written remotely is the
        defaults stamped with a fresh ``last_updated``, so stamps never
        go backwards. The remote overwrite is fire-and-forget; its
        failure is logged. Call from inside the event loop when a remote
        store is set.
        """
        defaults = default_app_data()
        stamped = defaults.model_copy(update={"last_updated": self._next_stamp()}, deep=True)
        if self.remote is not None:
            task = asyncio.get_running_loop().create_task(self._write_full(stamped.to_wire()))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        self.cache.clear()
        self._deliver(stamped, SnapshotSource.RESET)
        logger.info("Page data reset to defaults")
        return defaults

    async def _write_full(self, value: dict[str, Any]) -> None:
        try:
            await self.remote.write_full(value)
        except WriteError as exc:
            logger.error("Remote reset failed: %s", exc)

    async def wait_pending(self) -> None:
        """Wait for fire-and-forget writes started by reset()."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def close(self) -> None:
        """Unsubscribe, let in-flight writes finish, close the remote store."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
        await self.wait_pending()
        if self.remote is not None:
            await self.remote.close()
