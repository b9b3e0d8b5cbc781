# Area: Store
"""
party_rounds._store.database — SQLite file access
=================================================

Schema setup with versioning, short-lived connections for reads and
writes, and a long-lived watcher that notices commits made through
other connections (other store instances or other processes sharing
the file).
"""

import sqlite3
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ..errors import StoreError

logger = logging.getLogger("party_rounds.store.database")

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
SCHEMA_VERSION = 1

DEFAULT_DB_PATH = "party_rounds.db"


def get_connection(
    db_path: str = DEFAULT_DB_PATH, timeout: float = 10.0
) -> sqlite3.Connection:
    """
    Open a connection with dict-like rows.

    Args:
        db_path: Path to the SQLite database file
        timeout: Seconds to wait for a lock held by another writer
    """
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.row_factory = sqlite3.Row
    return conn


def init_database(db_path: str = DEFAULT_DB_PATH) -> int:
    """
    Create the tables and stamp the schema version.

    Opening a file written by a newer release is refused rather than
    risking a write in a layout this code does not understand.

    Returns:
        The schema version of the file

    Raises:
        StoreError: The file carries a newer schema version
    """
    conn = get_connection(db_path)
    try:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        if version > SCHEMA_VERSION:
            raise StoreError(
                f"{db_path} has schema version {version}; "
                f"this release supports up to {SCHEMA_VERSION}"
            )
        conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
        if version < SCHEMA_VERSION:
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            logger.info(f"Database at {db_path} set to schema version {SCHEMA_VERSION}")
        conn.commit()
    finally:
        conn.close()
    return SCHEMA_VERSION


class ChangeWatcher:
    """
    Detects commits made through any other connection to the file.

    Holds one idle connection and compares ``PRAGMA data_version``
    between calls. The value moves whenever another connection commits,
    which includes this process's own write connections.
    """

    def __init__(self, db_path: str):
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self._version = self._read()

    def _read(self) -> int:
        return self._conn.execute("PRAGMA data_version").fetchone()[0]

    def changed(self) -> bool:
        """True if anything was committed since the previous call."""
        with self._lock:
            version = self._read()
            if version == self._version:
                return False
            self._version = version
            return True

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class RecordDatabase:
    """
    Connection handling shared by SQLite-backed stores.

    Reads use a fresh connection each; writes go through
    ``_transaction``.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def _query(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        conn = get_connection(self.db_path)
        try:
            return [dict(row) for row in conn.execute(query, params).fetchall()]
        finally:
            conn.close()

    def _query_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        rows = self._query(query, params)
        return rows[0] if rows else None

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Open a write transaction.

        ``BEGIN IMMEDIATE`` takes the write lock up front, so reads made
        inside the block (precondition checks) cannot be invalidated by
        another writer before commit. Any exception rolls everything back.
        """
        conn = get_connection(self.db_path)
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()
