"""
Verification cache shared by all credential strategies.

Entries expire after a fixed TTL (lazily, on lookup) and the cache holds at
most ``max_entries`` items, evicting the oldest inserted entry first (FIFO).
Entries are immutable: re-inserting a key replaces the whole entry.
"""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, NamedTuple, Optional

from .interfaces import Identity

logger = logging.getLogger(__name__)


class CacheEntry(NamedTuple):
    identity: Identity
    inserted_at: float
    expires_at: float


def credential_key(scheme: str, material: str) -> str:
    """Derive a cache key from raw credential material without retaining it."""
    digest = hashlib.sha256(f"{scheme}:{material}".encode("utf-8")).hexdigest()
    return f"{scheme}:{digest}"


class VerificationCache:
    """Time- and size-bounded memo of verified credentials."""

    def __init__(
        self,
        ttl_seconds: float = 600,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def lookup(self, key: str) -> Optional[Identity]:
        """Return the cached identity, or None if absent or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.identity

    def insert(self, key: str, identity: Identity, max_age: Optional[float] = None) -> None:
        """
        Insert a verified identity.

        Args:
            key: Key from credential_key()
            identity: Identity to memoize
            max_age: Optional lifetime in seconds, for credentials that expire
                sooner than the cache TTL
        """
        now = self._clock()
        lifetime = self.ttl_seconds if max_age is None else min(self.ttl_seconds, max_age)
        deadline = now + lifetime
        if deadline <= now:
            return

        with self._lock:
            # Replacing a key moves it to the back of the FIFO
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(identity, now, deadline)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted oldest verification cache entry {evicted[:16]}")

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
