# src/wallstore/core/storage/filesystem.py
"""Filesystem-backed durable tier.

Stores each entry as a small JSON envelope in a directory structure using
the first 2 hex characters of the digest as subdirectory for better file
distribution.

Structure: base_path/ab/0xabcdef123...
"""

import json
import os
import tempfile
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import structlog

from wallstore.contracts.content import ContentEntry
from wallstore.contracts.errors import IntegrityError
from wallstore.core.digest import is_valid_address, validate_address, verify

__all__ = ["FilesystemDurableTier"]

logger = structlog.get_logger(__name__)


class FilesystemDurableTier:
    """Filesystem-based durable tier.

    Writes are staged in a temporary file and published with a hard link,
    which fails if the target already exists. Readers therefore see either
    no file or a complete one, and concurrent writers of the same address
    cannot overwrite each other.
    """

    def __init__(self, base_path: Path) -> None:
        """Initialize filesystem tier.

        Args:
            base_path: Root directory for content storage
        """
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for_address(self, address: str) -> Path:
        """Get filesystem path for an address.

        Validates address format and ensures path containment.

        Raises:
            MalformedAddressError: If address is not a well-formed address
            ValueError: If the resolved path escapes base_path
        """
        address = validate_address(address)
        path = self.base_path / address[2:4] / address

        # Defense in depth: verify path is contained within base_path
        resolved = path.resolve()
        base_resolved = self.base_path.resolve()
        if not resolved.is_relative_to(base_resolved):
            raise ValueError(f"Invalid address: path traversal detected, resolved path {resolved} is not under {base_resolved}")
        return path

    @staticmethod
    def _decode(address: str, raw: bytes) -> ContentEntry:
        try:
            envelope = json.loads(raw)
            entry = ContentEntry(
                address=envelope["address"],
                body=envelope["body"],
                stored_at=datetime.fromisoformat(envelope["stored_at"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise IntegrityError(f"Content integrity check failed: unreadable envelope for {address}") from e
        if entry.address != address or not verify(entry.body, address):
            raise IntegrityError(f"Content integrity check failed: stored body does not hash to {address}")
        return entry

    def read(self, address: str) -> ContentEntry | None:
        """Read an entry with integrity verification.

        Raises:
            IntegrityError: If the envelope is unreadable or doesn't match address
        """
        path = self._path_for_address(address)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        return self._decode(address, raw)

    def insert_if_absent(self, entry: ContentEntry) -> bool:
        path = self._path_for_address(entry.address)
        if path.exists():
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        envelope = {
            "address": entry.address,
            "body": entry.body,
            "stored_at": entry.stored_at.isoformat(),
        }
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(envelope, tmp)
                tmp.flush()
                os.fsync(tmp.fileno())
            try:
                os.link(tmp_name, path)
            except FileExistsError:
                return False
        finally:
            os.unlink(tmp_name)
        return True

    def scan(self) -> Iterator[ContentEntry]:
        """Enumerate stored entries.

        Files removed between listing and reading are skipped, as are files
        that fail integrity checks (logged; read() still refuses them).
        """
        for shard in sorted(p for p in self.base_path.iterdir() if p.is_dir()):
            for path in sorted(shard.iterdir()):
                if not is_valid_address(path.name):
                    continue
                try:
                    raw = path.read_bytes()
                except FileNotFoundError:
                    continue
                try:
                    entry = self._decode(path.name, raw)
                except IntegrityError as e:
                    logger.warning("Skipping corrupt content file during scan", path=str(path), error=str(e))
                    continue
                yield entry

    def delete(self, address: str) -> bool:
        """Delete an entry.

        Returns:
            True if content was deleted, False if not found
        """
        path = self._path_for_address(address)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def close(self) -> None:
        """Nothing to release; present for DurableTier conformance."""
