# Area: Store
"""
Round store: transaction operations and the SQLite-backed store.
"""

from .operations import (
    GAMES,
    ROUNDS,
    AppendToLists,
    CreateRecord,
    LinkRecords,
    UpdateRecord,
)
from .sqlite_store import SqliteRoundStore

__all__ = [
    "GAMES",
    "ROUNDS",
    "AppendToLists",
    "CreateRecord",
    "LinkRecords",
    "UpdateRecord",
    "SqliteRoundStore",
]
