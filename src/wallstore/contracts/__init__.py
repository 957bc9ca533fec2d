"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core.
Settings classes are NOT re-exported here - import them from
wallstore.core.config.

Import patterns:
    # Contracts (lightweight, no heavy dependencies)
    from wallstore.contracts import Found, Missing, LedgerOutcome

    # Settings classes (from core, pulls in pydantic/dynaconf)
    from wallstore.core.config import WallstoreSettings
"""

from wallstore.contracts.content import ContentEntry, Found, Missing, Resolution, StoreReceipt
from wallstore.contracts.enums import (
    Category,
    LedgerStatus,
    MissingReason,
    PostStatus,
    PublishStatus,
)
from wallstore.contracts.errors import (
    DurabilityDegradedError,
    IntegrityError,
    LedgerSubmitError,
    MalformedAddressError,
)
from wallstore.contracts.ledger import (
    HydratedRecord,
    LedgerOutcome,
    LedgerRecord,
    LedgerSubmit,
    PublishOutcome,
)
from wallstore.contracts.storage import DurableTier

__all__ = [
    "Category",
    "ContentEntry",
    "DurabilityDegradedError",
    "DurableTier",
    "Found",
    "HydratedRecord",
    "IntegrityError",
    "LedgerOutcome",
    "LedgerRecord",
    "LedgerStatus",
    "LedgerSubmit",
    "LedgerSubmitError",
    "MalformedAddressError",
    "Missing",
    "MissingReason",
    "PostStatus",
    "PublishOutcome",
    "PublishStatus",
    "Resolution",
    "StoreReceipt",
]
