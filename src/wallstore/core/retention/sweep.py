# src/wallstore/core/retention/sweep.py
"""Retention sweeper for Content Store entries.

Identifies entries older than the retention period and removes them from
the durable tier and the cache. Sweeping is advisory cleanup: ledger records
already tolerate missing content, so an aggressive or late sweep only
changes how much content is recoverable, never correctness.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import Event, Thread
from time import perf_counter
from typing import TYPE_CHECKING, Self

import structlog
from sqlalchemy.exc import SQLAlchemyError

if TYPE_CHECKING:
    from wallstore.core.content_store import ContentStore

__all__ = ["PeriodicSweeper", "RetentionSweeper", "SweepResult"]

logger = structlog.get_logger(__name__)


@dataclass
class SweepResult:
    """Result of a sweep.

    deleted_count counts every address removed, durable entries and expired
    cache-only (degraded) entries alike; cache_only_count is the subset that
    never reached the durable tier.
    """

    deleted_count: int
    cache_only_count: int
    failed_addresses: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0


class RetentionSweeper:
    """Removes entries whose stored_at is at or before now - max_age."""

    def __init__(self, store: ContentStore) -> None:
        """Initialize RetentionSweeper.

        Args:
            store: Content store to sweep; its clock defines "now"
        """
        self._store = store

    def cutoff(self, max_age: timedelta, as_of: datetime | None = None) -> datetime:
        if max_age < timedelta(0):
            raise ValueError(f"max_age must not be negative, got {max_age}")
        if as_of is None:
            as_of = self._store.clock()
        return as_of - max_age

    def find_expired(self, max_age: timedelta, as_of: datetime | None = None) -> list[str]:
        """Find durable entries eligible for removal (dry run).

        Args:
            max_age: Retention period
            as_of: Reference datetime for cutoff calculation (defaults to now)

        Returns:
            Addresses of durable entries stored at or before the cutoff
        """
        cutoff = self.cutoff(max_age, as_of)
        return [entry.address for entry in self._store.entries() if entry.stored_at <= cutoff]

    def sweep(self, max_age: timedelta, as_of: datetime | None = None) -> SweepResult:
        """Remove expired entries from both tiers.

        Each removal is atomic on its own (durable delete, then cache
        invalidation). A failure on one entry is recorded and the scan
        continues; the count is best-effort.

        Args:
            max_age: Retention period; timedelta(0) removes everything
            as_of: Reference datetime for cutoff calculation (defaults to now)
        """
        start_time = perf_counter()
        cutoff = self.cutoff(max_age, as_of)

        deleted_count = 0
        cache_only_count = 0
        failed_addresses: list[str] = []
        removed: set[str] = set()

        try:
            # Materialize before deleting so backends never iterate a shrinking set
            expired = [entry.address for entry in self._store.entries() if entry.stored_at <= cutoff]
        except (OSError, SQLAlchemyError) as e:
            logger.error("Retention scan failed", error=str(e), error_type=type(e).__name__)
            expired = []

        for address in expired:
            try:
                self._store.delete(address)
            except (OSError, SQLAlchemyError) as e:
                logger.warning("Failed to remove expired content", address=address, error=str(e))
                failed_addresses.append(address)
                continue
            removed.add(address)
            deleted_count += 1

        # Cache-only entries never reached the durable scan above
        for address in self._store.cache.expired(cutoff):
            if address in removed:
                continue
            if self._store.is_degraded(address):
                self._store.evict_cached(address)
                cache_only_count += 1
                deleted_count += 1
            else:
                # Durable entry removed elsewhere; drop the stale cache copy
                self._store.cache.invalidate(address)

        duration_seconds = perf_counter() - start_time
        logger.info(
            "Retention sweep completed",
            cutoff=cutoff.isoformat(),
            deleted=deleted_count,
            cache_only=cache_only_count,
            failed=len(failed_addresses),
            duration_seconds=round(duration_seconds, 3),
        )
        return SweepResult(
            deleted_count=deleted_count,
            cache_only_count=cache_only_count,
            failed_addresses=failed_addresses,
            duration_seconds=duration_seconds,
        )


class PeriodicSweeper:
    """Runs RetentionSweeper.sweep() on a background daemon thread.

    Usage:
        with PeriodicSweeper(RetentionSweeper(store), max_age=timedelta(days=30), interval_seconds=3600):
            serve()
    """

    def __init__(self, sweeper: RetentionSweeper, *, max_age: timedelta, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        self._sweeper = sweeper
        self._max_age = max_age
        self._interval = interval_seconds
        self._stop = Event()
        self._thread: Thread | None = None
        self.last_result: SweepResult | None = None
        self.runs = 0

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("PeriodicSweeper already started")
        self._thread = Thread(target=self._run, name="wallstore-sweeper", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        # First sweep fires after one interval, not at startup
        while not self._stop.wait(self._interval):
            try:
                self.last_result = self._sweeper.sweep(self._max_age)
            except Exception as e:
                # Keep the thread alive; the next interval tries again
                logger.error("Background sweep failed", error=str(e), error_type=type(e).__name__)
            self.runs += 1

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.error("Sweeper thread did not exit cleanly within timeout")
            self._thread = None

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.stop()
