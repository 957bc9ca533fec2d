"""Shared test doubles for wallstore tests.

Available helpers:
- MutableClock: injectable clock for ContentStore
- FlakyDurableTier / BlockingDurableTier: durable tier wrappers that fail or stall
- InMemoryLedger: ledger submission double
"""

from tests.fixtures.ledger import InMemoryLedger
from tests.fixtures.stores import BlockingDurableTier, FlakyDurableTier, MutableClock

__all__ = [
    "BlockingDurableTier",
    "FlakyDurableTier",
    "InMemoryLedger",
    "MutableClock",
]
