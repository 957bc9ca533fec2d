# tests/unit/core/storage/test_filesystem.py
"""Tests for FilesystemDurableTier."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from wallstore.contracts.content import ContentEntry
from wallstore.contracts.errors import IntegrityError, MalformedAddressError
from wallstore.contracts.storage import DurableTier
from wallstore.core.digest import digest
from wallstore.core.storage.filesystem import FilesystemDurableTier

STORED_AT = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def make_entry(body: str) -> ContentEntry:
    return ContentEntry(address=digest(body), body=body, stored_at=STORED_AT)


@pytest.fixture
def tier(tmp_path: Path) -> FilesystemDurableTier:
    return FilesystemDurableTier(tmp_path / "content")


class TestLayout:
    def test_protocol_conformance(self, tier: FilesystemDurableTier) -> None:
        assert isinstance(tier, DurableTier)

    def test_creates_base_path(self, tmp_path: Path) -> None:
        FilesystemDurableTier(tmp_path / "x" / "y")

        assert (tmp_path / "x" / "y").is_dir()

    def test_sharded_path(self, tier: FilesystemDurableTier) -> None:
        entry = make_entry("sharded")
        tier.insert_if_absent(entry)

        path = tier.base_path / entry.address[2:4] / entry.address
        assert path.exists()
        assert json.loads(path.read_text())["body"] == "sharded"

    def test_no_temp_files_left(self, tier: FilesystemDurableTier) -> None:
        tier.insert_if_absent(make_entry("clean"))

        assert not [p for p in tier.base_path.rglob(".tmp-*")]

    @pytest.mark.parametrize("bad", ["../../etc/passwd", "0x" + "g" * 64, "0x12"])
    def test_malformed_address_rejected(self, tier: FilesystemDurableTier, bad: str) -> None:
        with pytest.raises(MalformedAddressError):
            tier.read(bad)


class TestReadWrite:
    def test_roundtrip(self, tier: FilesystemDurableTier) -> None:
        entry = make_entry("hello disk")

        assert tier.insert_if_absent(entry) is True
        assert tier.read(entry.address) == entry

    def test_insert_existing_returns_false(self, tier: FilesystemDurableTier) -> None:
        tier.insert_if_absent(make_entry("once"))

        assert tier.insert_if_absent(make_entry("once")) is False

    def test_read_absent(self, tier: FilesystemDurableTier) -> None:
        assert tier.read(digest("absent")) is None

    def test_tampered_body_raises(self, tier: FilesystemDurableTier) -> None:
        entry = make_entry("genuine")
        tier.insert_if_absent(entry)
        path = tier.base_path / entry.address[2:4] / entry.address
        envelope = json.loads(path.read_text())
        envelope["body"] = "forged"
        path.write_text(json.dumps(envelope))

        with pytest.raises(IntegrityError):
            tier.read(entry.address)

    def test_garbage_file_raises(self, tier: FilesystemDurableTier) -> None:
        entry = make_entry("genuine")
        tier.insert_if_absent(entry)
        (tier.base_path / entry.address[2:4] / entry.address).write_text("not json")

        with pytest.raises(IntegrityError, match="unreadable"):
            tier.read(entry.address)


class TestScanAndDelete:
    def test_scan_returns_all(self, tier: FilesystemDurableTier) -> None:
        entries = [make_entry(f"body {i}") for i in range(4)]
        for entry in entries:
            tier.insert_if_absent(entry)

        assert sorted(e.address for e in tier.scan()) == sorted(e.address for e in entries)

    def test_scan_skips_foreign_and_corrupt_files(self, tier: FilesystemDurableTier) -> None:
        good = make_entry("good")
        bad = make_entry("bad")
        tier.insert_if_absent(good)
        tier.insert_if_absent(bad)
        (tier.base_path / bad.address[2:4] / bad.address).write_text("{}")
        (tier.base_path / good.address[2:4] / "README").write_text("not content")

        assert [e.address for e in tier.scan()] == [good.address]

    def test_delete(self, tier: FilesystemDurableTier) -> None:
        entry = make_entry("bye")
        tier.insert_if_absent(entry)

        assert tier.delete(entry.address) is True
        assert tier.delete(entry.address) is False
        assert tier.read(entry.address) is None
