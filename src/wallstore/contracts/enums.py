"""Status codes and kinds shared across wallstore subsystems."""

from enum import IntEnum, StrEnum


class MissingReason(StrEnum):
    """Why a lookup resolved to Missing.

    Every reason is still "Missing" to callers. The reason only helps the
    rendering layer tell "not there" apart from "could not ask".
    """

    NOT_FOUND = "not_found"
    TIMED_OUT = "timed_out"
    UNAVAILABLE = "unavailable"
    CORRUPT = "corrupt"
    MALFORMED = "malformed"


class LedgerStatus(StrEnum):
    """Outcome of a ledger submission as reported by the ledger client."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    TRANSPORT_FAILED = "transport_failed"
    TIMED_OUT = "timed_out"


class PublishStatus(StrEnum):
    """Combined outcome of the two-phase publish sequence."""

    PUBLISHED = "published"
    ORPHANED_CONTENT = "orphaned_content"
    PENDING_CONFIRMATION = "pending_confirmation"
    DURABILITY_DEGRADED = "durability_degraded"


class Category(IntEnum):
    """Category codes recorded on the ledger."""

    GENERAL = 0
    LONELINESS = 1
    CAREER = 2
    ANXIETY = 3
    RELATIONSHIPS = 4
    IDENTITY = 5
    LOSS = 6


class PostStatus(IntEnum):
    """Moderation status codes recorded on the ledger."""

    ACTIVE = 0
    HIDDEN = 1
    DELETED = 2
    PINNED = 3
