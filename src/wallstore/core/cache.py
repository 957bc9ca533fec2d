# src/wallstore/core/cache.py
"""In-process cache tier for the Content Store.

The cache is purely derived from the durable tier: it may be cleared at
any time without affecting correctness, only latency. It has no eviction
policy of its own - entries leave when the Retention Sweeper (or an
explicit delete) invalidates them.

Thread Safety:
    All operations take an internal lock. Read-fills carry the invalidation
    epoch observed before the durable read; if any invalidation happened in
    between, the fill is dropped so a removed entry is never resurrected.
"""

from collections.abc import Iterator
from datetime import datetime
from threading import Lock

from wallstore.contracts.content import ContentEntry

__all__ = ["ContentCache"]


class ContentCache:
    """Address -> ContentEntry mapping owned by one ContentStore."""

    def __init__(self) -> None:
        self._entries: dict[str, ContentEntry] = {}
        self._lock = Lock()
        self._epoch = 0
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, address: object) -> bool:
        with self._lock:
            return address in self._entries

    @property
    def epoch(self) -> int:
        """Invalidation counter. Read it before a durable read, pass it to fill()."""
        with self._lock:
            return self._epoch

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def get(self, address: str) -> ContentEntry | None:
        with self._lock:
            entry = self._entries.get(address)
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
            return entry

    def peek(self, address: str) -> ContentEntry | None:
        """Lookup that leaves the hit/miss counters alone."""
        with self._lock:
            return self._entries.get(address)

    def put(self, entry: ContentEntry) -> None:
        """Write-through insert. Keeps an existing entry for the same address."""
        with self._lock:
            self._entries.setdefault(entry.address, entry)

    def fill(self, entry: ContentEntry, epoch: int) -> bool:
        """Read-fill after a durable hit.

        Args:
            entry: Entry just read from the durable tier
            epoch: Value of `epoch` observed before the durable read

        Returns:
            True if the entry was cached, False if an invalidation raced with the read
        """
        with self._lock:
            if epoch != self._epoch:
                return False
            self._entries.setdefault(entry.address, entry)
            return True

    def invalidate(self, address: str) -> bool:
        """Drop one entry. Returns True if it was cached."""
        with self._lock:
            self._epoch += 1
            return self._entries.pop(address, None) is not None

    def expired(self, cutoff: datetime) -> list[str]:
        """Addresses of cached entries stored at or before cutoff."""
        with self._lock:
            return [address for address, entry in self._entries.items() if entry.stored_at <= cutoff]

    def entries(self) -> Iterator[ContentEntry]:
        """Snapshot of cached entries."""
        with self._lock:
            snapshot = list(self._entries.values())
        return iter(snapshot)

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._entries.clear()
