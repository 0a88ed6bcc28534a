"""
In-memory store for signing secrets with explicit inactivity expiry.

Secrets are kept apart from the config objects, keyed by config id. Each
entry carries its own ``expire_at`` deadline which is pushed forward every
time the secret is read. Expired entries are never handed out, and the
``sweep`` routine drops them; nothing relies on garbage collection.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import structlog


logger = structlog.get_logger(__name__)


@dataclass
class _SecretEntry:
    value: bytearray
    expire_at: float

    def wipe(self) -> None:
        for i in range(len(self.value)):
            self.value[i] = 0

    def __repr__(self) -> str:
        return f"_SecretEntry(value=***, expire_at={self.expire_at})"


class SecretStore:
    """Secrets held only in process memory, purged on remove or after inactivity."""

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _SecretEntry] = {}
        self.logger = logger.bind(service="secret_store")

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SecretStore(entries={len(self._entries)}, ttl_seconds={self.ttl_seconds})"

    def put(self, key: str, secret: str) -> None:
        """Store (or replace) the secret for ``key`` with a fresh deadline."""
        self.purge(key)
        self._entries[key] = _SecretEntry(
            value=bytearray(secret.encode()),
            expire_at=self._clock() + self.ttl_seconds,
        )

    def get(self, key: str) -> Optional[str]:
        """
        Return the secret and renew its deadline.

        An entry past its deadline is purged on the spot and ``None`` is
        returned, even if ``sweep`` has not run yet.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        if now >= entry.expire_at:
            self._drop(key, reason="expired")
            return None
        entry.expire_at = now + self.ttl_seconds
        return entry.value.decode()

    def contains(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry.expire_at

    def expire_at(self, key: str) -> Optional[float]:
        entry = self._entries.get(key)
        return entry.expire_at if entry else None

    def purge(self, key: str) -> bool:
        """Wipe and forget the secret for ``key``."""
        if key not in self._entries:
            return False
        self._drop(key, reason="purged")
        return True

    def purge_all(self) -> int:
        count = len(self._entries)
        for key in list(self._entries):
            self._drop(key, reason="purged")
        return count

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expire_at]
        for key in expired:
            self._drop(key, reason="expired")
        if expired:
            self.logger.info("Expired signing secrets cleared", count=len(expired))
        return len(expired)

    def _drop(self, key: str, reason: str) -> None:
        entry = self._entries.pop(key)
        entry.wipe()
        self.logger.debug("Signing secret removed", config_id=key, reason=reason)
