# tests/conftest.py
"""Shared test fixtures and Hypothesis configuration.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/

All fixtures are function-scoped for full test isolation: every test gets a
fresh in-memory durable tier and a fresh cache.
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from tests.fixtures.stores import MutableClock
from wallstore.core.content_store import ContentStore
from wallstore.core.resolver import BatchResolver
from wallstore.core.storage.database import DatabaseDurableTier

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def durable() -> Iterator[DatabaseDurableTier]:
    """Fresh in-memory durable tier per test."""
    tier = DatabaseDurableTier.in_memory()
    yield tier
    tier.close()


@pytest.fixture
def store(durable: DatabaseDurableTier, clock: MutableClock) -> ContentStore:
    return ContentStore(durable, clock=clock)


@pytest.fixture
def resolver(store: ContentStore) -> Iterator[BatchResolver]:
    with BatchResolver(store, max_workers=4, lookup_timeout_seconds=5.0) as batch_resolver:
        yield batch_resolver
