# src/wallstore/core/resolver.py
"""Batch resolution of content addresses.

Readers typically need 20-100 bodies at once (one per post or reply on
screen). Lookups run concurrently and the batch always completes: a
missing, malformed, failing or slow key resolves to Missing for that key
only, never failing the batch or dropping the other results.

Timeouts are per key and start when that key's lookup begins running, so
time spent queued behind other lookups is not charged to it. A lookup that
times out cannot be interrupted and keeps its worker thread; once every
worker of the pool is held that way, the pool is replaced and queued
lookups move to the new one.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from threading import RLock
from time import monotonic
from typing import TYPE_CHECKING, Self

import structlog

from wallstore.contracts.content import Missing, Resolution
from wallstore.contracts.enums import MissingReason
from wallstore.contracts.errors import MalformedAddressError
from wallstore.contracts.ledger import HydratedRecord, LedgerRecord
from wallstore.core.digest import validate_address

if TYPE_CHECKING:
    from wallstore.core.config import ResolverSettings
    from wallstore.core.content_store import ContentStore

__all__ = ["BatchResolver"]

logger = structlog.get_logger(__name__)

# Lower bound on a single wait() slice while polling pending lookups
_MIN_WAIT_SECONDS = 0.001

_Submitted = tuple[Future[Resolution], ThreadPoolExecutor]


class BatchResolver:
    """Resolves many addresses concurrently against a ContentStore.

    The resolver owns a thread pool for its lifetime; close it (or use it as
    a context manager) when done.

    Usage:
        with BatchResolver(store) as resolver:
            results = resolver.resolve_many([a1, a2, None, a1])
            # {a1: Found(...), a2: Missing(...)} - None dropped, a1 resolved once
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        max_workers: int = 16,
        lookup_timeout_seconds: float = 5.0,
    ) -> None:
        """Initialize resolver.

        Args:
            store: Content store to read from
            max_workers: Maximum concurrent lookups
            lookup_timeout_seconds: A key whose lookup runs longer than this
                resolves to Missing(TIMED_OUT)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        if lookup_timeout_seconds <= 0:
            raise ValueError(f"lookup_timeout_seconds must be > 0, got {lookup_timeout_seconds}")
        self._store = store
        self._max_workers = max_workers
        self._lookup_timeout = lookup_timeout_seconds
        self._pool_lock = RLock()
        self._executor = self._new_executor()
        # Timed-out lookups still running on the current pool
        self._stuck: set[Future[Resolution]] = set()
        self._pools_replaced = 0
        self._closed = False

    @classmethod
    def from_settings(cls, store: ContentStore, settings: ResolverSettings) -> Self:
        return cls(
            store,
            max_workers=settings.max_workers,
            lookup_timeout_seconds=settings.lookup_timeout_seconds,
        )

    @property
    def pools_replaced(self) -> int:
        """How many times a pool full of stuck lookups was swapped out."""
        return self._pools_replaced

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="wallstore-resolve")

    def _lookup(self, address: str, started: dict[str, float]) -> Resolution:
        started[address] = monotonic()
        try:
            return self._store.get(address)
        except Exception as e:
            # One failing key never fails the batch
            logger.warning("Lookup failed", address=address, error=str(e), error_type=type(e).__name__)
            return Missing(MissingReason.UNAVAILABLE)

    def _submit(self, address: str, started: dict[str, float]) -> _Submitted:
        with self._pool_lock:
            if self._closed:
                raise RuntimeError("BatchResolver is closed")
            executor = self._executor
            return executor.submit(self._lookup, address, started), executor

    def _release(self, future: Future[Resolution]) -> None:
        with self._pool_lock:
            self._stuck.discard(future)

    def _abandon(self, future: Future[Resolution], executor: ThreadPoolExecutor) -> None:
        """Record a timed-out lookup; replace the pool once all its workers are stuck."""
        with self._pool_lock:
            if executor is not self._executor or future.done():
                return
            self._stuck.add(future)
            future.add_done_callback(self._release)
            if len(self._stuck) < self._max_workers:
                return
            stale = self._executor
            self._executor = self._new_executor()
            self._stuck = set()
            self._pools_replaced += 1
        logger.warning(
            "All resolver workers are held by timed-out lookups; replacing pool",
            max_workers=self._max_workers,
            timeout_seconds=self._lookup_timeout,
        )
        # Queued lookups are cancelled here and resubmitted by their batch
        stale.shutdown(wait=False, cancel_futures=True)

    def resolve(self, address: str) -> Resolution:
        """Resolve a single address (same semantics as one key of resolve_many)."""
        return self.resolve_many([address]).get(address.lower(), Missing(MissingReason.MALFORMED))

    def resolve_many(self, addresses: Iterable[str | None]) -> dict[str, Resolution]:
        """Resolve a set of addresses concurrently.

        None and empty placeholders are dropped. Duplicates (including case
        variants of the same hex) are looked up once and appear once in the
        result. Well-formed keys are normalised to lowercase; malformed
        addresses map to Missing(MALFORMED) under their original spelling.
        Cache-resident keys are answered on the calling thread.

        Returns:
            Mapping of address -> Found | Missing (no ordering guarantee)
        """
        if self._closed:
            raise RuntimeError("BatchResolver is closed")

        results: dict[str, Resolution] = {}
        unique: list[str] = []
        seen: set[str] = set()
        for raw in addresses:
            if not raw:
                continue
            try:
                address = validate_address(raw)
            except MalformedAddressError:
                results[raw] = Missing(MissingReason.MALFORMED)
                continue
            if address in seen:
                continue
            seen.add(address)
            cached = self._store.get_cached(address)
            if cached is not None:
                results[address] = cached
            else:
                unique.append(address)

        started: dict[str, float] = {}
        pending: dict[str, _Submitted] = {address: self._submit(address, started) for address in unique}
        timed_out = 0

        while pending:
            now = monotonic()
            for address, (future, executor) in list(pending.items()):
                if future.done():
                    if future.cancelled():
                        # Pool was replaced before this lookup began
                        pending[address] = self._submit(address, started)
                        continue
                    results[address] = future.result()
                    del pending[address]
                    continue
                begun = started.get(address)
                if begun is not None and now - begun >= self._lookup_timeout:
                    results[address] = Missing(MissingReason.TIMED_OUT)
                    del pending[address]
                    timed_out += 1
                    self._abandon(future, executor)

            if not pending:
                break
            deadlines = [started[address] + self._lookup_timeout for address in pending if address in started]
            remaining = min(deadlines) - monotonic() if deadlines else self._lookup_timeout
            wait(
                [future for future, _ in pending.values()],
                timeout=max(remaining, _MIN_WAIT_SECONDS),
                return_when=FIRST_COMPLETED,
            )

        if timed_out:
            logger.warning(
                "Batch resolution timed out for some keys",
                requested=len(seen),
                timed_out=timed_out,
                timeout_seconds=self._lookup_timeout,
            )
        return results

    def hydrate(self, records: Sequence[LedgerRecord]) -> list[HydratedRecord]:
        """Pair ledger records with their bodies in one batch.

        Records keep their input order. A record whose content is gone
        (orphaned reference) gets a Missing resolution.
        """
        resolved = self.resolve_many(record.address for record in records)
        hydrated = []
        for record in records:
            key = record.address.lower() if record.address.lower() in resolved else record.address
            hydrated.append(HydratedRecord(record=record, content=resolved.get(key, Missing(MissingReason.MALFORMED))))
        return hydrated

    def close(self) -> None:
        """Shut down the thread pool without waiting for timed-out lookups."""
        with self._pool_lock:
            if self._closed:
                return
            self._closed = True
            executor = self._executor
        executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
