"""Shared test fixtures for creatorpage."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import pytest

from creatorpage.errors import ConnectivityError, WriteError
from creatorpage.sync.cache import LocalCache
from creatorpage.sync.remote import MemoryRemoteStore, RemoteStore, RemoteSubscription


class SilentRemoteStore(RemoteStore):
    """A remote that accepts listeners and writes but never answers."""

    def __init__(self) -> None:
        self.listeners: list[Any] = []
        self.partial_writes: list[dict[str, Any]] = []
        self.full_writes: list[dict[str, Any]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "silent"

    def subscribe(self, on_change, on_error) -> RemoteSubscription:
        entry = (on_change, on_error)
        self.listeners.append(entry)
        return RemoteSubscription(lambda: self.listeners.remove(entry))

    def push(self, value: Optional[dict[str, Any]]) -> None:
        """Deliver ``value`` to every live listener, as the server would."""
        for on_change, _ in list(self.listeners):
            on_change(value)

    def fail(self, exc: Optional[Exception] = None) -> None:
        """Break the transport for every live listener."""
        for _, on_error in list(self.listeners):
            on_error(exc or ConnectivityError("connection reset"))

    async def write_partial(self, fields: dict[str, Any]) -> None:
        self.partial_writes.append(fields)

    async def write_full(self, value: dict[str, Any]) -> None:
        self.full_writes.append(value)

    async def close(self) -> None:
        self.closed = True


class RejectingRemoteStore(MemoryRemoteStore):
    """In-memory remote whose writes are refused."""

    def __init__(self, *args: Any, on_write=None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.on_write = on_write
        self.attempts = 0

    async def write_partial(self, fields: dict[str, Any]) -> None:
        self.attempts += 1
        if self.on_write is not None:
            self.on_write()
        await asyncio.sleep(0)
        raise WriteError("PERMISSION_DENIED", operation="write_partial")

    async def write_full(self, value: dict[str, Any]) -> None:
        self.attempts += 1
        raise WriteError("PERMISSION_DENIED", operation="write_full")


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Provide an empty page home directory."""
    page_home = tmp_path / ".creatorpage"
    page_home.mkdir()
    return page_home


@pytest.fixture
def cache(tmp_path: Path) -> LocalCache:
    """Provide a local cache in a temporary directory."""
    return LocalCache(tmp_path / "cache")


@pytest.fixture
def silent_remote() -> SilentRemoteStore:
    return SilentRemoteStore()


@pytest.fixture
def legacy_payload() -> dict[str, Any]:
    """A remote value saved by an old client: no moderators, sparse records."""
    return {
        "_lastUpdated": 1700000000000,
        "profile": {"name": "LegacyCrafter", "tagline": "Old tagline"},
        "stats": {"subscribers": 777},
        "schedule": [
            {"id": "s1", "day": "Monday", "activity": "Speedrun", "time": "18:00", "badge": "Live"},
        ],
        "rank": [
            {"id": "r1", "rank": 1, "name": "OnlyMember", "points": 10, "avatar": "a.png"},
        ],
        "gallery": [{"id": "g9", "src": "https://img.example/9.png"}],
    }


@pytest.fixture
def rejecting_remote() -> RejectingRemoteStore:
    return RejectingRemoteStore()
