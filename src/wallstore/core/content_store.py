# src/wallstore/core/content_store.py
"""
Content Store: durable keyed persistence with a cache tier in front.

Uses content-addressable storage (digest-based) for:
- Automatic deduplication of identical bodies
- Idempotent, retry-safe writes (same body, same address, no update path)
- Integrity verification on retrieval (done by the durable tiers)

The durable tier is the single source of truth. The cache is derived from
it: write-through on store, read-fill on durable hits, invalidated per key
on delete. When the durable write fails the entry stays cache-resident and
is tracked as degraded until retry_durable() succeeds.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from threading import Lock
from typing import TYPE_CHECKING, Self

import structlog
from sqlalchemy.exc import SQLAlchemyError

from wallstore.contracts.content import ContentEntry, Found, Missing, Resolution, StoreReceipt
from wallstore.contracts.enums import MissingReason
from wallstore.contracts.errors import DurabilityDegradedError, IntegrityError
from wallstore.contracts.storage import DurableTier
from wallstore.core.cache import ContentCache
from wallstore.core.digest import digest, validate_address

if TYPE_CHECKING:
    from wallstore.core.config import WallstoreSettings

__all__ = ["ContentStore", "StoreStats"]

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

# Failures a durable backend raises when it is unavailable
_BACKEND_ERRORS: tuple[type[Exception], ...] = (OSError, SQLAlchemyError)

# Durable insert + cache write rounds before giving up on caching
_WRITE_THROUGH_ATTEMPTS = 3


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class StoreStats:
    """Point-in-time counters for a ContentStore."""

    cached_entries: int
    degraded_entries: int
    cache_hits: int
    cache_misses: int


class ContentStore:
    """Content-addressed store with a write-through cache tier.

    Usage:
        store = ContentStore(DatabaseDurableTier.in_memory())
        address = store.put("hello wall")
        assert store.get(address) == Found("hello wall")
    """

    def __init__(self, durable: DurableTier, *, clock: Clock = utc_now) -> None:
        """Initialize the store.

        Args:
            durable: Durable tier backend (source of truth)
            clock: Returns the current time; stamps new entries
        """
        self._durable = durable
        self._clock = clock
        self._cache = ContentCache()
        # Addresses whose body is cache-only (durable write failed)
        self._degraded: set[str] = set()
        self._degraded_lock = Lock()

    @classmethod
    def from_settings(cls, settings: "WallstoreSettings") -> Self:
        """Build a store with the configured durable backend."""
        from wallstore.core.storage import DatabaseDurableTier, FilesystemDurableTier

        config = settings.content_store
        durable: DurableTier
        if config.backend == "filesystem":
            durable = FilesystemDurableTier(config.base_path.expanduser())
        else:
            durable = DatabaseDurableTier.from_url(config.url, echo=config.echo)
        return cls(durable)

    @property
    def cache(self) -> ContentCache:
        return self._cache

    @property
    def durable(self) -> DurableTier:
        return self._durable

    @property
    def clock(self) -> Clock:
        return self._clock

    # === Writes ===

    def store(self, body: str) -> StoreReceipt:
        """Store a body and report whether it is durable.

        Idempotent: storing an existing body is a silent success that leaves
        the original entry (and its stored_at) untouched.

        A durable-tier failure does not raise. The entry is kept in the
        cache, tracked as degraded, and the receipt says durable=False.
        """
        address = digest(body)
        entry = ContentEntry(address=address, body=body, stored_at=self._clock())

        try:
            created = self._write_through(entry)
        except _BACKEND_ERRORS as e:
            self._cache.put(entry)
            with self._degraded_lock:
                self._degraded.add(address)
            logger.warning(
                "Durable write failed, content is cache-only",
                address=address,
                error=str(e),
                error_type=type(e).__name__,
            )
            return StoreReceipt(address=address, durable=False, created=True)

        with self._degraded_lock:
            self._degraded.discard(address)
        if created:
            logger.debug("Stored content", address=address, size=len(body))
        return StoreReceipt(address=address, durable=True, created=created)

    def _write_through(self, entry: ContentEntry) -> bool:
        """Insert into the durable tier, then cache, unless a removal raced in between.

        An invalidation between the insert and the cache write may have
        removed the row this call found already present. The insert is
        repeated so the cached copy always has a durable row behind it.
        After _WRITE_THROUGH_ATTEMPTS the entry is left uncached; get()
        read-fills it from the durable tier.

        Returns:
            True if any attempt created the durable row
        """
        created = False
        for _ in range(_WRITE_THROUGH_ATTEMPTS):
            epoch = self._cache.epoch
            created = self._durable.insert_if_absent(entry) or created
            if self._cache.fill(entry, epoch):
                return created
        logger.debug("Write-through skipped after repeated invalidations", address=entry.address)
        return created

    def put(self, body: str) -> str:
        """Store a body and return its address (see store())."""
        return self.store(body).address

    def require_durable(self, address: str) -> None:
        """Raise if address is currently cache-only.

        Raises:
            DurabilityDegradedError: If the durable write has not succeeded
        """
        if self.is_degraded(address):
            raise DurabilityDegradedError(address)

    def is_degraded(self, address: str) -> bool:
        with self._degraded_lock:
            return address.lower() in self._degraded

    def degraded_addresses(self) -> list[str]:
        with self._degraded_lock:
            return sorted(self._degraded)

    def retry_durable(self, address: str | None = None) -> int:
        """Re-attempt durable writes for cache-only entries.

        Args:
            address: Retry a single address, or every degraded address if None

        Returns:
            Number of entries that are now durable
        """
        if address is not None:
            candidates = [validate_address(address)] if self.is_degraded(address) else []
        else:
            candidates = self.degraded_addresses()

        recovered = 0
        for candidate in candidates:
            entry = self._cache.get(candidate)
            if entry is None:
                # Swept or dropped while degraded; nothing left to persist
                with self._degraded_lock:
                    self._degraded.discard(candidate)
                continue
            try:
                self._durable.insert_if_absent(entry)
            except _BACKEND_ERRORS as e:
                logger.warning("Durable write retry failed", address=candidate, error=str(e))
                continue
            with self._degraded_lock:
                self._degraded.discard(candidate)
            recovered += 1
            logger.info("Degraded content is now durable", address=candidate)
        return recovered

    # === Reads ===

    def get(self, address: str) -> Resolution:
        """Resolve an address to its body.

        Checks the cache first; on miss reads the durable tier and fills the
        cache on a hit. Backend errors and integrity failures resolve to
        Missing (with a reason) and are logged.

        Raises:
            MalformedAddressError: If address is not well-formed
        """
        address = validate_address(address)

        cached = self._cache.get(address)
        if cached is not None:
            return Found(cached.body)

        epoch = self._cache.epoch
        try:
            entry = self._durable.read(address)
        except IntegrityError as e:
            logger.error("Stored content failed integrity check", address=address, error=str(e))
            return Missing(MissingReason.CORRUPT)
        except _BACKEND_ERRORS as e:
            logger.warning(
                "Durable read failed",
                address=address,
                error=str(e),
                error_type=type(e).__name__,
            )
            return Missing(MissingReason.UNAVAILABLE)

        if entry is None:
            return Missing(MissingReason.NOT_FOUND)

        self._cache.fill(entry, epoch)
        return Found(entry.body)

    def get_cached(self, address: str) -> Found | None:
        """Cache-only lookup; never touches the durable tier.

        Raises:
            MalformedAddressError: If address is not well-formed
        """
        entry = self._cache.peek(validate_address(address))
        return None if entry is None else Found(entry.body)

    def exists(self, address: str) -> bool:
        return self.get(address).found

    def entries(self) -> Iterator[ContentEntry]:
        """Full scan of the durable tier."""
        return self._durable.scan()

    # === Removal ===

    def delete(self, address: str) -> bool:
        """Remove one entry from both tiers.

        The durable delete happens first, then the cache entry is
        invalidated. Readers see the entry fully present or fully absent.

        Returns:
            True if the entry existed in either tier
        """
        address = validate_address(address)
        deleted = self._durable.delete(address)
        evicted = self._cache.invalidate(address)
        with self._degraded_lock:
            was_degraded = address in self._degraded
            self._degraded.discard(address)
        return deleted or (evicted and was_degraded)

    def evict_cached(self, address: str) -> bool:
        """Drop a cache-only (degraded) entry. Used by the sweeper."""
        with self._degraded_lock:
            self._degraded.discard(address)
        return self._cache.invalidate(address)

    # === Lifecycle ===

    def stats(self) -> StoreStats:
        with self._degraded_lock:
            degraded = len(self._degraded)
        return StoreStats(
            cached_entries=len(self._cache),
            degraded_entries=degraded,
            cache_hits=self._cache.hits,
            cache_misses=self._cache.misses,
        )

    def close(self) -> None:
        self._cache.clear()
        self._durable.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
