# src/wallstore/core/publish.py
"""Write Coordinator: persist content, then submit its address to the ledger.

The two writes are not atomic and cannot be made so (the ledger is external
and uncontrolled). The sequence is modelled as a saga:

    1. address = digest(body)
    2. store body under address (must be durable before step 3)
    3. ledger_submit(address)
    4. classify:
       durable + accepted              -> PUBLISHED
       durable + rejected / failed     -> ORPHANED_CONTENT (compensating state:
                                          content stays, sweeper may reclaim it)
       durable + timed out             -> PENDING_CONFIRMATION (may still land)
       not durable                     -> DURABILITY_DEGRADED (ledger never called)

The coordinator never retries the ledger. Re-publishing the same body is
always safe: the store is idempotent and yields the same address.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

import structlog

from wallstore.contracts.enums import LedgerStatus, PublishStatus
from wallstore.contracts.errors import LedgerSubmitError
from wallstore.contracts.ledger import LedgerOutcome, LedgerSubmit, PublishOutcome

if TYPE_CHECKING:
    from wallstore.core.config import PublishSettings
    from wallstore.core.content_store import ContentStore

__all__ = ["WriteCoordinator"]

logger = structlog.get_logger(__name__)

_LEDGER_TO_PUBLISH: dict[LedgerStatus, PublishStatus] = {
    LedgerStatus.ACCEPTED: PublishStatus.PUBLISHED,
    LedgerStatus.REJECTED: PublishStatus.ORPHANED_CONTENT,
    LedgerStatus.TRANSPORT_FAILED: PublishStatus.ORPHANED_CONTENT,
    LedgerStatus.TIMED_OUT: PublishStatus.PENDING_CONFIRMATION,
}


class WriteCoordinator:
    """Orchestrates the content-then-ledger publish sequence."""

    def __init__(self, store: ContentStore, *, durability_retries: int = 1) -> None:
        """Initialize coordinator.

        Args:
            store: Content store that receives bodies
            durability_retries: How many times to re-attempt a failed durable
                write before giving up with DURABILITY_DEGRADED
        """
        if durability_retries < 0:
            raise ValueError(f"durability_retries must be >= 0, got {durability_retries}")
        self._store = store
        self._durability_retries = durability_retries

    @classmethod
    def from_settings(cls, store: ContentStore, settings: PublishSettings) -> Self:
        return cls(store, durability_retries=settings.durability_retries)

    def _ensure_durable(self, address: str) -> bool:
        for attempt in range(1, self._durability_retries + 1):
            if self._store.retry_durable(address) or not self._store.is_degraded(address):
                logger.info("Durable write recovered", address=address, attempt=attempt)
                return True
        return False

    def publish(self, body: str, ledger_submit: LedgerSubmit) -> PublishOutcome:
        """Store body, then hand its address to the ledger.

        Args:
            body: Message body
            ledger_submit: Callable that submits the address (with whatever
                structural metadata it closes over) and reports the outcome.
                May raise LedgerSubmitError or TimeoutError.

        Returns:
            PublishOutcome classifying the combined result

        Any other exception raised by ledger_submit propagates unchanged;
        the content is already durable at that point.
        """
        receipt = self._store.store(body)
        address = receipt.address
        log = logger.bind(address=address)

        if not receipt.durable and not self._ensure_durable(address):
            # Never submit a digest for content that is not durably retrievable
            log.warning("Publish halted before ledger submission: content is not durable")
            return PublishOutcome(status=PublishStatus.DURABILITY_DEGRADED, address=address, durable=False)

        try:
            outcome = ledger_submit(address)
        except LedgerSubmitError as e:
            outcome = LedgerOutcome.transport_failed(detail=str(e))
        except TimeoutError as e:
            outcome = LedgerOutcome.timed_out(detail=str(e) or "ledger submission timed out")

        status = _LEDGER_TO_PUBLISH[outcome.status]
        if status == PublishStatus.PUBLISHED:
            log.info("Published", transaction_id=outcome.transaction_id, settled=outcome.settled)
        elif status == PublishStatus.PENDING_CONFIRMATION:
            log.warning("Ledger submission outcome unknown; content kept pending confirmation", detail=outcome.detail)
        else:
            log.warning("Ledger submission failed; content is orphaned", ledger_status=outcome.status, detail=outcome.detail)

        return PublishOutcome(status=status, address=address, durable=True, ledger=outcome)
