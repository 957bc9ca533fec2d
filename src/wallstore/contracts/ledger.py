# src/wallstore/contracts/ledger.py
"""Ledger-side types consumed by wallstore.

The ledger is an external collaborator. wallstore never mutates it; it only
reads records handed to it and invokes a caller-supplied submission callable.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from wallstore.contracts.content import Found, Resolution
from wallstore.contracts.enums import Category, LedgerStatus, PostStatus, PublishStatus


@dataclass(frozen=True, slots=True)
class LedgerOutcome:
    """What the ledger client reported for one submission.

    Attributes:
        status: Acceptance, rejection, transport failure or timeout
        transaction_id: Ledger-side identifier, when one was issued
        detail: Human-readable reason (revert reason, transport error)
        settled: False when accepted but not yet queryable
    """

    status: LedgerStatus
    transaction_id: str | None = None
    detail: str | None = None
    settled: bool = True

    @classmethod
    def accepted(cls, transaction_id: str | None = None, *, settled: bool = True) -> "LedgerOutcome":
        return cls(status=LedgerStatus.ACCEPTED, transaction_id=transaction_id, settled=settled)

    @classmethod
    def rejected(cls, detail: str | None = None, transaction_id: str | None = None) -> "LedgerOutcome":
        return cls(status=LedgerStatus.REJECTED, transaction_id=transaction_id, detail=detail, settled=False)

    @classmethod
    def transport_failed(cls, detail: str | None = None) -> "LedgerOutcome":
        return cls(status=LedgerStatus.TRANSPORT_FAILED, detail=detail, settled=False)

    @classmethod
    def timed_out(cls, transaction_id: str | None = None, detail: str | None = None) -> "LedgerOutcome":
        return cls(status=LedgerStatus.TIMED_OUT, transaction_id=transaction_id, detail=detail, settled=False)


LedgerSubmit = Callable[[str], LedgerOutcome]


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    """Combined result of a publish() call.

    Attributes:
        status: Classification of the two-phase sequence
        address: Content address of the published body
        durable: Whether the body reached the durable tier
        ledger: Ledger outcome, None when the ledger was never called
    """

    status: PublishStatus
    address: str
    durable: bool
    ledger: LedgerOutcome | None = None

    @property
    def ok(self) -> bool:
        return self.status == PublishStatus.PUBLISHED


@dataclass(frozen=True, slots=True)
class LedgerRecord:
    """A post or reply as read from the ledger. Read-only.

    `address` may reference content that no longer (or never) existed in the
    Content Store; that is tolerated, not prevented.
    """

    record_id: str
    author: str
    address: str
    timestamp: datetime
    category: Category = Category.GENERAL
    upvotes: int = 0
    downvotes: int = 0
    reply_count: int = 0
    status: PostStatus = PostStatus.ACTIVE
    parent_id: str | None = None
    is_anonymous: bool = False


@dataclass(frozen=True, slots=True)
class HydratedRecord:
    """A ledger record paired with its resolved body."""

    record: LedgerRecord
    content: Resolution

    @property
    def body(self) -> str | None:
        if isinstance(self.content, Found):
            return self.content.body
        return None
