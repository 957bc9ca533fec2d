# src/wallstore/core/__init__.py
"""Core infrastructure: Digest, Content Store, Resolver, Publish, Retention, Configuration, Logging."""

from wallstore.core.cache import ContentCache
from wallstore.core.config import (
    ContentStoreSettings,
    PublishSettings,
    ResolverSettings,
    RetentionSettings,
    WallstoreSettings,
    load_settings,
)
from wallstore.core.content_store import ContentStore, StoreStats
from wallstore.core.digest import digest, is_valid_address, validate_address, verify
from wallstore.core.logging import configure_logging
from wallstore.core.publish import WriteCoordinator
from wallstore.core.resolver import BatchResolver
from wallstore.core.retention import PeriodicSweeper, RetentionSweeper, SweepResult
from wallstore.core.storage import DatabaseDurableTier, FilesystemDurableTier

__all__ = [
    "BatchResolver",
    "ContentCache",
    "ContentStore",
    "ContentStoreSettings",
    "DatabaseDurableTier",
    "FilesystemDurableTier",
    "PeriodicSweeper",
    "PublishSettings",
    "ResolverSettings",
    "RetentionSettings",
    "RetentionSweeper",
    "StoreStats",
    "SweepResult",
    "WallstoreSettings",
    "WriteCoordinator",
    "configure_logging",
    "digest",
    "is_valid_address",
    "load_settings",
    "validate_address",
    "verify",
]
