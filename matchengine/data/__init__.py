"""
Data layer for the matching engine.

Contains the record store implementations, models and repositories.
"""

from .database import (
    DatabaseManager,
    InMemoryRecordStore,
    MongoRecordStore,
    RecordStore,
    get_database_manager,
)

__all__ = [
    "DatabaseManager",
    "InMemoryRecordStore",
    "MongoRecordStore",
    "RecordStore",
    "get_database_manager",
]
