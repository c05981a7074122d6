"""
Error taxonomy for the page data engine.

Only WriteError and CredentialError ever reach the operator.
ConnectivityError is absorbed by the fallback path and
MalformedDataError by merge-with-defaults healing.
"""

from __future__ import annotations

from typing import Optional


class CreatorPageError(Exception):
    """Base class for all creatorpage errors."""


class ConnectivityError(CreatorPageError):
    """The remote store is unreachable or stayed silent past the fallback window."""


class WriteError(CreatorPageError):
    """A remote write was rejected or timed out.

    The optimistic local state is left in place; callers should warn the
    operator that other viewers may not see the change yet.
    """

    def __init__(self, message: str, operation: str = "write_partial") -> None:
        super().__init__(message)
        self.operation = operation


class CredentialError(CreatorPageError):
    """Login denied, or an edit attempted without privileged mode.

    Carries only the digest computed from the failed attempt, never
    the stored digest.
    """

    def __init__(self, message: str, computed_digest: Optional[str] = None) -> None:
        super().__init__(message)
        self.computed_digest = computed_digest


class MalformedDataError(CreatorPageError):
    """An upstream value had the wrong shape. Healed, never surfaced."""
