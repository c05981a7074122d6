"""
Remote store adapters -- the realtime value the page is published to.

Each adapter exposes one fixed path: a push subscription, a top-level
partial write and a full overwrite. No ordering or conflict detection
is applied between writers; the last write wins on shared fields.

Memory: in-process value with listener fan-out. For single-process
    setups and for substituting the network in tests.
Firebase: Realtime Database REST API. Subscriptions stream
    server-sent events; writes are PATCH (partial) and PUT (full).
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any, Callable, Optional

import httpx

from ..config import RemoteConfig
from ..errors import ConnectivityError, WriteError
from ..models import LAST_UPDATED_KEY
from .models import now_ms

logger = logging.getLogger("creatorpage.sync.remote")

OnChange = Callable[[Optional[dict[str, Any]]], None]
OnError = Callable[[Exception], None]

STREAM_READ_TIMEOUT = 90.0


class RemoteSubscription:
    """Handle for a live push listener. ``cancel()`` is idempotent."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._cancel()


def _stamped(fields: dict[str, Any]) -> dict[str, Any]:
    body = dict(fields)
    body.setdefault(LAST_UPDATED_KEY, now_ms())
    return body


class RemoteStore(ABC):
    """Abstract push-capable key-value path."""

    async def open(self) -> None:
        """Acquire connections. Safe to call more than once."""

    async def close(self) -> None:
        """Release connections and stop every subscription."""

    async def __aenter__(self) -> "RemoteStore":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name."""

    @abstractmethod
    def subscribe(self, on_change: OnChange, on_error: OnError) -> RemoteSubscription:
        """Listen on the path.

        ``on_change`` receives the current value (or None) once connected
        and again after every mutation. On transport failure ``on_error``
        is called once and the listener stops; there is no reconnection.
        Must be called from inside a running event loop.
        """

    @abstractmethod
    async def write_partial(self, fields: dict[str, Any]) -> None:
        """Merge top-level ``fields`` into the value and stamp ``_lastUpdated``.

        Raises:
            WriteError: If the store rejects the write.
        """

    @abstractmethod
    async def write_full(self, value: dict[str, Any]) -> None:
        """Replace the whole value.

        Raises:
            WriteError: If the store rejects the write.
        """


class MemoryRemoteStore(RemoteStore):
    """In-process remote value.

    Listeners are notified on the event loop, never inline, so writers
    observe the same asynchrony as with a networked store.

    Args:
        value: Initial value at the path (None for empty).
        connect_delay: Seconds before a new listener gets its first value.
    """

    def __init__(
        self,
        value: Optional[dict[str, Any]] = None,
        connect_delay: float = 0.0,
    ) -> None:
        self._value = copy.deepcopy(value)
        self._connect_delay = connect_delay
        self._listeners: dict[int, OnChange] = {}
        self._next_token = 0

    @property
    def name(self) -> str:
        return "memory"

    @property
    def value(self) -> Optional[dict[str, Any]]:
        return copy.deepcopy(self._value)

    def subscribe(self, on_change: OnChange, on_error: OnError) -> RemoteSubscription:
        loop = asyncio.get_running_loop()
        token = self._next_token
        self._next_token += 1

        def connect() -> None:
            self._listeners[token] = on_change
            on_change(copy.deepcopy(self._value))

        if self._connect_delay > 0:
            handle = loop.call_later(self._connect_delay, connect)
        else:
            handle = loop.call_soon(connect)

        def cancel() -> None:
            handle.cancel()
            self._listeners.pop(token, None)

        return RemoteSubscription(cancel)

    def _notify(self) -> None:
        loop = asyncio.get_running_loop()
        for token in list(self._listeners):
            loop.call_soon(self._deliver, token)

    def _deliver(self, token: int) -> None:
        listener = self._listeners.get(token)
        if listener is not None:
            listener(copy.deepcopy(self._value))

    async def write_partial(self, fields: dict[str, Any]) -> None:
        self._value = {**(self._value or {}), **copy.deepcopy(_stamped(fields))}
        self._notify()

    async def write_full(self, value: dict[str, Any]) -> None:
        self._value = copy.deepcopy(value)
        self._notify()

    async def close(self) -> None:
        self._listeners.clear()


async def _iter_events(lines: AsyncIterator[str]) -> AsyncIterator[tuple[str, str]]:
    """Parse a server-sent-events line stream into (event, data) pairs."""
    event: Optional[str] = None
    data: list[str] = []
    async for line in lines:
        if not line:
            if event is not None or data:
                yield event or "message", "\n".join(data)
            event, data = None, []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event = value
        elif field == "data":
            data.append(value)
    if event is not None or data:
        yield event or "message", "\n".join(data)


def _as_node(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {str(i): v for i, v in enumerate(value) if v is not None}
    return {}


def apply_event(mirror: Any, path: str, data: Any, patch: bool = False) -> Any:
    """Apply one Firebase ``put``/``patch`` event to a local mirror.

    Args:
        mirror: Current mirrored value (any JSON value or None).
        path: Slash-separated location the event applies to.
        data: New value (put) or children to merge (patch).
        patch: Whether this is a ``patch`` event.

    Returns:
        The updated mirror. Lists touched below the root become
        index-keyed dicts, the same shape the REST API uses for them.
    """
    parts = [part for part in path.split("/") if part]
    if not parts:
        if not patch:
            return data
        root = _as_node(mirror)
        for key, value in (data or {}).items():
            if value is None:
                root.pop(key, None)
            else:
                root[key] = value
        return root or None

    root = _as_node(mirror)
    node = root
    for key in parts[:-1]:
        child = _as_node(node.get(key))
        node[key] = child
        node = child

    leaf = parts[-1]
    if patch:
        merged = _as_node(node.get(leaf))
        for key, value in (data or {}).items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        data = merged or None

    if data is None:
        node.pop(leaf, None)
    else:
        node[leaf] = data
    return root or None


def _apply_payload(mirror: Any, event: str, data: str) -> Any:
    """Decode one put/patch payload onto ``mirror``.

    Raises:
        ConnectivityError: If the payload is not a well-formed event.
    """
    try:
        body = json.loads(data)
        return apply_event(mirror, body["path"], body["data"], patch=event == "patch")
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as exc:
        raise ConnectivityError(f"Malformed {event} event: {exc}") from exc


class FirebaseRemoteStore(RemoteStore):
    """Firebase Realtime Database over its REST API.

    Args:
        config: Database URL, path and optional auth token.
        client: Pre-built httpx client. When omitted one is created on
            first use and closed by ``close()``.
    """

    def __init__(
        self,
        config: RemoteConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self._client = client
        self._owns_client = client is None
        self._tasks: set[asyncio.Task] = set()

    @property
    def name(self) -> str:
        return "firebase"

    @property
    def url(self) -> str:
        base = self.config.database_url.rstrip("/")
        return f"{base}/{self.config.path.strip('/')}.json"

    def _params(self) -> dict[str, str]:
        if self.config.auth_token:
            return {"auth": self.config.auth_token}
        return {}

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
            self._owns_client = True
        return self._client

    async def open(self) -> None:
        self._ensure_client()

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def subscribe(self, on_change: OnChange, on_error: OnError) -> RemoteSubscription:
        task = asyncio.get_running_loop().create_task(self._stream(on_change, on_error))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return RemoteSubscription(task.cancel)

    async def _stream(self, on_change: OnChange, on_error: OnError) -> None:
        client = self._ensure_client()
        timeout = httpx.Timeout(self.config.timeout_seconds, read=STREAM_READ_TIMEOUT)
        mirror: Any = None
        try:
            async with client.stream(
                "GET",
                self.url,
                params=self._params(),
                headers={"Accept": "text/event-stream"},
                timeout=timeout,
            ) as response:
                response.raise_for_status()
                logger.info("Realtime stream open: %s", self.config.path)
                async for event, data in _iter_events(response.aiter_lines()):
                    if event in ("put", "patch"):
                        mirror = _apply_payload(mirror, event, data)
                        try:
                            on_change(copy.deepcopy(mirror))
                        except Exception as exc:
                            logger.error("Listener error on %s: %s", self.config.path, exc)
                    elif event in ("cancel", "auth_revoked"):
                        raise ConnectivityError(f"Stream closed by server: {event} {data}")
            raise ConnectivityError("Stream ended by server")
        except ConnectivityError as exc:
            logger.warning("Realtime stream stopped: %s", exc)
            on_error(exc)
        except httpx.HTTPError as exc:
            logger.warning("Realtime stream failed: %s", exc)
            on_error(ConnectivityError(f"Realtime stream failed: {exc}"))

    async def _send(self, method: str, body: dict[str, Any], operation: str) -> None:
        client = self._ensure_client()
        try:
            response = await client.request(method, self.url, params=self._params(), json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise WriteError(
                f"{operation} rejected: HTTP {exc.response.status_code} "
                f"{exc.response.text[:200]}",
                operation=operation,
            ) from exc
        except httpx.HTTPError as exc:
            raise WriteError(f"{operation} failed: {exc}", operation=operation) from exc

    async def write_partial(self, fields: dict[str, Any]) -> None:
        await self._send("PATCH", _stamped(fields), "write_partial")

    async def write_full(self, value: dict[str, Any]) -> None:
        await self._send("PUT", value, "write_full")


def create_remote_store(config: RemoteConfig) -> Optional[RemoteStore]:
    """Build the adapter for ``config``, or None when no backend is configured."""
    if not config.is_configured:
        logger.info("No remote store configured, running from local cache only")
        return None
    return FirebaseRemoteStore(config)
