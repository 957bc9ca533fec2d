# src/wallstore/contracts/content.py
"""Content entries and per-address lookup results."""

from dataclasses import dataclass
from datetime import datetime

from wallstore.contracts.enums import MissingReason


@dataclass(frozen=True, slots=True)
class ContentEntry:
    """An immutable (address, body) pair held in the Content Store.

    Attributes:
        address: Content address (digest of body)
        body: Message body text
        stored_at: When the entry was first written (timezone-aware UTC)
    """

    address: str
    body: str
    stored_at: datetime


@dataclass(frozen=True, slots=True)
class Found:
    """Lookup succeeded; carries the stored body."""

    body: str

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Missing:
    """Lookup produced no content. A value, never an exception."""

    reason: MissingReason = MissingReason.NOT_FOUND

    @property
    def found(self) -> bool:
        return False


Resolution = Found | Missing


@dataclass(frozen=True, slots=True)
class StoreReceipt:
    """Result of a store() call.

    Attributes:
        address: Content address the body is stored under
        durable: False when only the cache tier holds the body
            (the DurabilityDegraded state)
        created: True if this call wrote a new entry, False if it already existed
    """

    address: str
    durable: bool
    created: bool
