"""Durable tier backends for the Content Store."""

from wallstore.core.storage.database import DatabaseDurableTier
from wallstore.core.storage.filesystem import FilesystemDurableTier

__all__ = ["DatabaseDurableTier", "FilesystemDurableTier"]
