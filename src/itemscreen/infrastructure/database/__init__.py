"""SQLite engine and schema for the friends cache via SQLAlchemy Core."""

from itemscreen.infrastructure.database.engine import create_db_engine, init_cache_database
from itemscreen.infrastructure.database.schema import friend_cache, metadata

__all__ = [
    "create_db_engine",
    "friend_cache",
    "init_cache_database",
    "metadata",
]
