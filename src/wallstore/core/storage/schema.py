# src/wallstore/core/storage/schema.py
"""SQLAlchemy table definitions for the durable content tier.

Uses SQLAlchemy Core (not ORM) for explicit control over queries
and compatibility with multiple database backends.
"""

from sqlalchemy import Column, DateTime, MetaData, String, Table, Text

# Shared metadata for all tables
metadata = MetaData()

content_entries_table = Table(
    "content_entries",
    metadata,
    # "0x" + 64 lowercase hex characters
    Column("address", String(66), primary_key=True),
    Column("body", Text, nullable=False),
    Column("stored_at", DateTime(timezone=True), nullable=False),
)
