"""
Page controller -- what a renderer talks to.

Wraps the sync coordinator with the admin session: anyone may
subscribe, only a logged-in admin may save, edit or reset.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from . import editing
from .auth import AdminSession, CredentialVerifier
from .config import PageConfig, load_config, resolve_home
from .models import AppData, CollectionKind, RecordKind
from .sync.cache import LocalCache
from .sync.coordinator import OnData, Subscription, SyncCoordinator
from .sync.remote import RemoteStore, create_remote_store

logger = logging.getLogger("creatorpage.page")


class PageController:
    """Consumer-facing facade over sync and admin privileges."""

    def __init__(self, coordinator: SyncCoordinator, session: Optional[AdminSession] = None) -> None:
        self.coordinator = coordinator
        self.session = session or AdminSession()

    @classmethod
    def from_config(
        cls,
        home: Optional[Path] = None,
        config: Optional[PageConfig] = None,
        remote: Optional[RemoteStore] = None,
    ) -> "PageController":
        """Build a controller from ``<home>/config.yaml``.

        Args:
            home: Home directory. Defaults to CREATORPAGE_HOME.
            config: Already-loaded configuration.
            remote: Adapter override; by default built from the config.
        """
        home_path = resolve_home(home)
        config = config or load_config(home_path)
        if remote is None:
            remote = create_remote_store(config.remote)
        coordinator = SyncCoordinator(
            cache=LocalCache(config.cache_path(home_path)),
            remote=remote,
            fallback_seconds=config.fallback_seconds,
        )
        verifier = CredentialVerifier(config.admin.salt, config.admin.digest)
        return cls(coordinator, AdminSession(verifier))

    async def __aenter__(self) -> "PageController":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def data(self) -> AppData:
        """The snapshot currently on screen.

        Raises:
            RuntimeError: Before the first snapshot arrives.
        """
        if self.coordinator.current is None:
            raise RuntimeError("No snapshot yet; subscribe() and await first_snapshot")
        return self.coordinator.current

    @property
    def is_admin(self) -> bool:
        return self.session.is_admin

    def subscribe(self, on_data: Optional[OnData] = None) -> Subscription:
        return self.coordinator.subscribe(on_data)

    def login(self, password: str) -> bool:
        return self.session.login(password)

    def logout(self) -> None:
        self.session.logout()

    async def save(self, data: AppData) -> AppData:
        """Save ``data`` optimistically.

        Raises:
            CredentialError: Without admin privileges.
            WriteError: If the remote store rejected the write.
        """
        self.session.require_admin()
        return await self.coordinator.save(data)

    def reset(self) -> AppData:
        """Restore the compiled defaults everywhere.

        Raises:
            CredentialError: Without admin privileges.
        """
        self.session.require_admin()
        return self.coordinator.reset()

    async def add_item(self, kind: CollectionKind, **fields: Any) -> AppData:
        self.session.require_admin()
        return await self.coordinator.save(editing.add_item(self.data, kind, **fields))

    async def delete_item(self, kind: CollectionKind, index: int) -> AppData:
        self.session.require_admin()
        return await self.coordinator.save(editing.delete_item(self.data, kind, index))

    async def update_item(self, kind: CollectionKind, index: int, **fields: Any) -> AppData:
        self.session.require_admin()
        return await self.coordinator.save(editing.update_item(self.data, kind, index, **fields))

    async def update_record(self, kind: RecordKind, **fields: Any) -> AppData:
        self.session.require_admin()
        return await self.coordinator.save(editing.update_record(self.data, kind, **fields))

    async def close(self) -> None:
        await self.coordinator.close()
