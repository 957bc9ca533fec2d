"""Exceptions raised across wallstore subsystem boundaries.

Lookup misses are NOT errors here - they are Missing values
(see wallstore.contracts.content).
"""


class MalformedAddressError(ValueError):
    """Raised when a value is not a well-formed content address.

    Rejected locally; a malformed address never reaches a storage tier.
    """

    def __init__(self, value: object) -> None:
        super().__init__(f"Malformed content address: expected 0x followed by 64 hex characters, got {repr(value)[:80]}")
        self.value = value


class DurabilityDegradedError(Exception):
    """Raised when content is cache-resident but not yet durable.

    The body is still retrievable from this process, but a restart or
    another replica would not see it. Nothing may be submitted to the
    ledger for this address until durability is restored.

    Attributes:
        address: Content address whose durable write failed
    """

    def __init__(self, address: str, cause: str | None = None) -> None:
        message = f"Content {address} is cache-only: durable write failed"
        if cause:
            message = f"{message} ({cause})"
        super().__init__(message)
        self.address = address


class IntegrityError(Exception):
    """Raised when stored content doesn't match its address.

    Indicates corruption or tampering in the durable tier. Corrupted content
    is never returned to callers.
    """

    pass


class LedgerSubmitError(Exception):
    """Raised by a ledger collaborator when a submission failed.

    The Write Coordinator maps this to ORPHANED_CONTENT and never retries.
    """

    pass
