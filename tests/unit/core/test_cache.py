# tests/unit/core/test_cache.py
"""Tests for the in-process cache tier."""

from datetime import UTC, datetime, timedelta

from wallstore.contracts.content import ContentEntry
from wallstore.core.cache import ContentCache
from wallstore.core.digest import digest

T0 = datetime(2026, 1, 1, tzinfo=UTC)


def _entry(body: str, stored_at: datetime = T0) -> ContentEntry:
    return ContentEntry(address=digest(body), body=body, stored_at=stored_at)


class TestContentCache:
    def test_put_then_get(self) -> None:
        cache = ContentCache()
        entry = _entry("a")

        cache.put(entry)

        assert cache.get(entry.address) == entry
        assert entry.address in cache
        assert len(cache) == 1

    def test_put_keeps_existing_entry(self) -> None:
        cache = ContentCache()
        first = _entry("a", T0)
        cache.put(first)

        cache.put(_entry("a", T0 + timedelta(days=1)))

        assert cache.get(first.address) == first

    def test_hit_and_miss_counters(self) -> None:
        cache = ContentCache()
        entry = _entry("a")
        cache.put(entry)

        cache.get(entry.address)
        cache.get(digest("absent"))

        assert cache.hits == 1
        assert cache.misses == 1

    def test_peek_does_not_count(self) -> None:
        cache = ContentCache()
        entry = _entry("a")
        cache.put(entry)

        assert cache.peek(entry.address) == entry
        assert cache.peek(digest("absent")) is None
        assert cache.hits == cache.misses == 0

    def test_invalidate(self) -> None:
        cache = ContentCache()
        entry = _entry("a")
        cache.put(entry)

        assert cache.invalidate(entry.address) is True
        assert cache.invalidate(entry.address) is False
        assert cache.get(entry.address) is None

    def test_fill_with_current_epoch(self) -> None:
        cache = ContentCache()
        entry = _entry("a")

        assert cache.fill(entry, cache.epoch) is True
        assert cache.get(entry.address) == entry

    def test_fill_dropped_after_racing_invalidation(self) -> None:
        """A durable read that raced with a removal must not resurrect the entry."""
        cache = ContentCache()
        entry = _entry("a")
        epoch = cache.epoch

        cache.invalidate(entry.address)  # sweeper ran between read and fill

        assert cache.fill(entry, epoch) is False
        assert cache.get(entry.address) is None

    def test_expired_selects_at_or_before_cutoff(self) -> None:
        cache = ContentCache()
        old = _entry("old", T0)
        edge = _entry("edge", T0 + timedelta(days=1))
        new = _entry("new", T0 + timedelta(days=2))
        for entry in (old, edge, new):
            cache.put(entry)

        expired = cache.expired(T0 + timedelta(days=1))

        assert sorted(expired) == sorted([old.address, edge.address])

    def test_clear(self) -> None:
        cache = ContentCache()
        cache.put(_entry("a"))
        epoch = cache.epoch

        cache.clear()

        assert len(cache) == 0
        assert cache.epoch == epoch + 1
        assert list(cache.entries()) == []
