"""SQLAlchemy Core table definitions for the cache database."""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, Table, Text

metadata = MetaData()

# One row per cached friend; ``position`` keeps the order the source returned.
friend_cache = Table(
    "friend_cache",
    metadata,
    Column("position", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("phone", Text, nullable=False),
    Column("cached_at", Text, nullable=False),
)
