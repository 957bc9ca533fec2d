# tests/unit/core/retention/test_sweep.py
"""Tests for RetentionSweeper and PeriodicSweeper."""

from __future__ import annotations

import time
from datetime import timedelta

import pytest

from tests.fixtures.stores import FlakyDurableTier, MutableClock
from wallstore.contracts.content import Found, Missing
from wallstore.contracts.enums import MissingReason
from wallstore.core.content_store import ContentStore
from wallstore.core.retention import PeriodicSweeper, RetentionSweeper, SweepResult
from wallstore.core.storage.database import DatabaseDurableTier

THIRTY_DAYS = timedelta(days=30)


@pytest.fixture
def sweeper(store: ContentStore) -> RetentionSweeper:
    return RetentionSweeper(store)


class TestCutoff:
    def test_cutoff_defaults_to_store_clock(self, sweeper: RetentionSweeper, clock: MutableClock) -> None:
        assert sweeper.cutoff(THIRTY_DAYS) == clock() - THIRTY_DAYS

    def test_negative_max_age_rejected(self, sweeper: RetentionSweeper) -> None:
        with pytest.raises(ValueError, match="negative"):
            sweeper.cutoff(timedelta(days=-1))


class TestFindExpired:
    def test_only_old_entries(self, store: ContentStore, sweeper: RetentionSweeper, clock: MutableClock) -> None:
        old = store.put("old")
        clock.advance(days=31)
        store.put("new")

        assert sweeper.find_expired(THIRTY_DAYS) == [old]

    def test_does_not_delete(self, store: ContentStore, sweeper: RetentionSweeper, clock: MutableClock) -> None:
        old = store.put("old")
        clock.advance(days=31)

        sweeper.find_expired(THIRTY_DAYS)

        assert store.get(old) == Found("old")

    def test_explicit_as_of(self, store: ContentStore, sweeper: RetentionSweeper, clock: MutableClock) -> None:
        address = store.put("entry")

        assert sweeper.find_expired(THIRTY_DAYS, as_of=clock() + timedelta(days=29)) == []
        assert sweeper.find_expired(THIRTY_DAYS, as_of=clock() + timedelta(days=30)) == [address]


class TestSweep:
    def test_removes_old_keeps_new(self, store: ContentStore, sweeper: RetentionSweeper, clock: MutableClock) -> None:
        old = store.put("old")
        clock.advance(days=31)
        new = store.put("new")

        result = sweeper.sweep(THIRTY_DAYS)

        assert result.deleted_count == 1
        assert result.failed_addresses == []
        assert store.get(old) == Missing(MissingReason.NOT_FOUND)
        assert store.get(new) == Found("new")

    def test_boundary_is_inclusive(self, store: ContentStore, sweeper: RetentionSweeper, clock: MutableClock) -> None:
        address = store.put("exactly thirty days")
        clock.advance(days=30)

        assert sweeper.sweep(THIRTY_DAYS).deleted_count == 1
        assert store.get(address).found is False

    def test_zero_age_removes_everything(self, store: ContentStore, sweeper: RetentionSweeper) -> None:
        addresses = [store.put(f"entry {i}") for i in range(3)]

        result = sweeper.sweep(timedelta(0))

        assert result.deleted_count == 3
        assert all(store.get(a) == Missing(MissingReason.NOT_FOUND) for a in addresses)
        assert len(store.cache) == 0

    def test_empty_store(self, sweeper: RetentionSweeper) -> None:
        result = sweeper.sweep(THIRTY_DAYS)

        assert isinstance(result, SweepResult)
        assert result.deleted_count == 0
        assert result.duration_seconds >= 0

    def test_content_can_be_stored_again_after_sweep(self, store: ContentStore, sweeper: RetentionSweeper) -> None:
        address = store.put("phoenix")
        sweeper.sweep(timedelta(0))

        receipt = store.store("phoenix")

        assert receipt.address == address
        assert receipt.created is True
        assert store.get(address) == Found("phoenix")


class TestSweepFailures:
    @pytest.fixture
    def flaky(self, durable: DatabaseDurableTier) -> FlakyDurableTier:
        return FlakyDurableTier(durable)

    @pytest.fixture
    def flaky_store(self, flaky: FlakyDurableTier, clock: MutableClock) -> ContentStore:
        return ContentStore(flaky, clock=clock)

    def test_failed_delete_does_not_stop_sweep(self, flaky: FlakyDurableTier, flaky_store: ContentStore) -> None:
        stuck = flaky_store.put("stuck")
        gone = flaky_store.put("gone")
        flaky.fail_deletes = {stuck}

        result = RetentionSweeper(flaky_store).sweep(timedelta(0))

        assert result.failed_addresses == [stuck]
        assert result.deleted_count == 1
        assert flaky_store.get(gone).found is False
        assert flaky_store.get(stuck) == Found("stuck")

    def test_scan_failure_is_logged_not_raised(self, flaky: FlakyDurableTier, flaky_store: ContentStore) -> None:
        flaky_store.put("kept")
        flaky.fail_scan = True

        result = RetentionSweeper(flaky_store).sweep(timedelta(0))

        assert result.deleted_count == 0

    def test_degraded_entries_expire_from_cache(self, flaky: FlakyDurableTier, flaky_store: ContentStore, clock: MutableClock) -> None:
        flaky.fail_writes = True
        address = flaky_store.put("cache only")
        clock.advance(days=31)

        result = RetentionSweeper(flaky_store).sweep(THIRTY_DAYS)

        assert result.deleted_count == 1
        assert result.cache_only_count == 1
        assert not flaky_store.is_degraded(address)
        assert address not in flaky_store.cache

    def test_degraded_entry_not_retried_after_sweep(self, flaky: FlakyDurableTier, flaky_store: ContentStore) -> None:
        flaky.fail_writes = True
        flaky_store.put("cache only")
        RetentionSweeper(flaky_store).sweep(timedelta(0))
        flaky.fail_writes = False

        assert flaky_store.retry_durable() == 0
        assert list(flaky_store.entries()) == []


class TestPeriodicSweeper:
    def test_invalid_interval(self, sweeper: RetentionSweeper) -> None:
        with pytest.raises(ValueError, match="interval_seconds"):
            PeriodicSweeper(sweeper, max_age=THIRTY_DAYS, interval_seconds=0)

    @pytest.mark.slow
    def test_runs_in_background(self, store: ContentStore, sweeper: RetentionSweeper) -> None:
        address = store.put("background")

        with PeriodicSweeper(sweeper, max_age=timedelta(0), interval_seconds=0.05) as periodic:
            deadline = time.monotonic() + 5
            while periodic.runs == 0 and time.monotonic() < deadline:
                time.sleep(0.01)

        assert periodic.runs >= 1
        assert periodic.last_result is not None
        assert store.get(address).found is False

    def test_start_twice_raises(self, sweeper: RetentionSweeper) -> None:
        periodic = PeriodicSweeper(sweeper, max_age=THIRTY_DAYS, interval_seconds=60)
        periodic.start()
        try:
            with pytest.raises(RuntimeError, match="already started"):
                periodic.start()
        finally:
            periodic.stop()

    def test_stop_without_start(self, sweeper: RetentionSweeper) -> None:
        PeriodicSweeper(sweeper, max_age=THIRTY_DAYS, interval_seconds=60).stop()
