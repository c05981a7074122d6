"""
Shared-secret gate for edit privileges.

A candidate password is salted, hashed with SHA-256 and compared in
constant time against a stored digest. Success flips an in-memory
flag on the session; nothing is persisted, so a restart drops it.

Trust model: the salt and the stored digest ship with every client.
Anyone holding them can brute-force the secret offline or simply flip
the flag in their own process. This bounds casual tampering only; the
remote store's own access rules are what protect the data.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Optional

from .defaults import ADMIN_DIGEST, ADMIN_SALT
from .errors import CredentialError

logger = logging.getLogger("creatorpage.auth")

DENIED_MESSAGE = "Wrong password!"


def compute_digest(secret: str, salt: str) -> str:
    """Lowercase hex SHA-256 of ``secret + salt``."""
    return hashlib.sha256((secret + salt).encode("utf-8")).hexdigest()


def verify(candidate_digest: str, stored_digest: str) -> bool:
    """Constant-time digest comparison."""
    return hmac.compare_digest(
        candidate_digest.lower().encode("ascii", "replace"),
        stored_digest.lower().encode("ascii", "replace"),
    )


class CredentialVerifier:
    """Checks passwords against one stored salted digest.

    Args:
        salt: Salt appended to every candidate.
        stored_digest: Hex digest of the real secret plus salt.
    """

    def __init__(self, salt: str = ADMIN_SALT, stored_digest: str = ADMIN_DIGEST) -> None:
        self.salt = salt
        self._stored_digest = stored_digest

    def check(self, password: str) -> str:
        """Verify ``password``.

        Returns:
            str: The computed digest on success.

        Raises:
            CredentialError: On mismatch, carrying the computed digest.
        """
        digest = compute_digest(password, self.salt)
        if not verify(digest, self._stored_digest):
            raise CredentialError(DENIED_MESSAGE, computed_digest=digest)
        return digest


class AdminSession:
    """In-memory privileged-mode flag for one running client."""

    def __init__(self, verifier: Optional[CredentialVerifier] = None) -> None:
        self.verifier = verifier or CredentialVerifier()
        self.is_admin = False
        self.last_error: Optional[CredentialError] = None
        self._diagnostic_digest: Optional[str] = None

    def login(self, password: str) -> bool:
        """Try to enter privileged mode. The password is not retained."""
        self._diagnostic_digest = None
        try:
            self.verifier.check(password)
        except CredentialError as exc:
            self.is_admin = False
            self.last_error = exc
            self._diagnostic_digest = exc.computed_digest
            logger.info("Admin login denied")
            return False

        self.is_admin = True
        self.last_error = None
        logger.info("Admin login granted")
        return True

    def logout(self) -> None:
        self.is_admin = False

    def reveal_diagnostic(self) -> Optional[str]:
        """Digest computed by the last failed login, for local display only.

        An operator who controls the stored digest but mistyped the
        secret can compare this against the configured value.
        """
        return self._diagnostic_digest

    def require_admin(self) -> None:
        """Raise CredentialError unless privileged mode is active."""
        if not self.is_admin:
            raise CredentialError("Admin login required to edit the page")
