# src/wallstore/contracts/storage.py
"""DurableTier protocol for the persistent side of the Content Store.

This protocol defines the interface for durable backends used by:
- core/storage/database.py (DatabaseDurableTier)
- core/storage/filesystem.py (FilesystemDurableTier)
- core/content_store.py (ContentStore, which puts a cache in front)

Consolidated here to avoid circular imports and provide single source of truth.
"""

from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from wallstore.contracts.content import ContentEntry


@runtime_checkable
class DurableTier(Protocol):
    """Protocol for durable content backends.

    Implementations are keyed by content address and never update an
    existing entry. I/O failures propagate as exceptions; the ContentStore
    decides how to degrade.
    """

    def read(self, address: str) -> ContentEntry | None:
        """Point read.

        Args:
            address: Validated content address

        Returns:
            The stored entry, or None if absent

        Raises:
            IntegrityError: If stored content doesn't match its address
        """
        ...

    def insert_if_absent(self, entry: ContentEntry) -> bool:
        """Point write with insert-if-absent semantics.

        Returns:
            True if the entry was written, False if the address already existed
        """
        ...

    def scan(self) -> Iterator[ContentEntry]:
        """Enumerate every stored entry (order unspecified)."""
        ...

    def delete(self, address: str) -> bool:
        """Point delete.

        Returns:
            True if the entry was deleted, False if not found
        """
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...
