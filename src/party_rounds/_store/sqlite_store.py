# Area: Store
"""
party_rounds._store.sqlite_store — SQLite-backed round store
============================================================

A RoundStore on top of a SQLite file. Games and rounds are stored as
JSON documents; game-to-round links live in their own table.

After every committed transaction each subscription's snapshot is
rebuilt and delivered if it differs from the last one that subscriber
saw. Commits made by another store instance or another process on the
same file are picked up by ``poll()``, which a client calls once per
tick; several controllers sharing one file therefore behave like
several connected clients.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import uuid
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence, Tuple

from ..collaborators import GameCallback, RoundStore, Unsubscribe
from ..errors import (
    DuplicateGameCodeError,
    PreconditionFailedError,
    RecordNotFoundError,
    StoreError,
    TransactionError,
)
from .._engine.models import Game, Round
from .database import DEFAULT_DB_PATH, ChangeWatcher, RecordDatabase, init_database
from .operations import (
    COLLECTIONS,
    GAMES,
    ROUNDS,
    AppendToLists,
    CreateRecord,
    LinkRecords,
    UpdateRecord,
)

logger = logging.getLogger("party_rounds.store")


class _Subscription:
    """One subscriber and the last snapshot it was given."""

    _UNSET = object()

    def __init__(self, game_code: str, callback: GameCallback):
        self.game_code = game_code
        self.callback = callback
        self.last: Any = self._UNSET
        self.active = True

    def is_new(self, snapshot: Optional[Game]) -> bool:
        return self.last is self._UNSET or self.last != snapshot


class SqliteRoundStore(RecordDatabase, RoundStore):
    """
    Round store backed by a SQLite database file.

    Usage:
        store = SqliteRoundStore("party.db")
        unsubscribe = store.subscribe("ABCD", on_change)
        store.transact([UpdateRecord(GAMES, game_id, {...})])
        store.poll()                # pick up commits from other processes
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH, initialize: bool = True):
        super().__init__(db_path)
        if initialize:
            init_database(db_path)
        self._lock = threading.RLock()
        self._subscriptions: List[_Subscription] = []
        self._pending: Deque[Tuple[_Subscription, Optional[Game]]] = deque()
        self._dispatching = False
        self._watcher = ChangeWatcher(db_path)

    # ── Reads ────────────────────────────────────────────────

    def get_game(self, game_code: str) -> Optional[Game]:
        row = self._query_one(
            "SELECT data FROM games WHERE game_code = ?", (game_code,)
        )
        if row is None:
            return None
        data = json.loads(row["data"])
        data["rounds"] = self._linked_rounds(data["id"])
        return Game.model_validate(data)

    def get_round(self, round_id: str) -> Optional[Round]:
        row = self._query_one("SELECT data FROM rounds WHERE id = ?", (round_id,))
        if row is None:
            return None
        return Round.model_validate(json.loads(row["data"]))

    def _linked_rounds(self, game_id: str) -> List[Dict[str, Any]]:
        rows = self._query(
            """
            SELECT r.data FROM links l
            JOIN rounds r ON r.id = l.target_id
            WHERE l.collection = ? AND l.record_id = ? AND l.label = ?
            ORDER BY r.round_number
            """,
            (GAMES, game_id, ROUNDS),
        )
        return [json.loads(row["data"]) for row in rows]

    def generate_id(self) -> str:
        return str(uuid.uuid4())

    # ── Writes ───────────────────────────────────────────────

    def transact(self, operations: Sequence) -> None:
        operations = list(operations)
        if not operations:
            return
        with self._lock:
            try:
                with self._transaction() as conn:
                    for op in operations:
                        self._apply(conn, op)
            except StoreError:
                raise
            except sqlite3.Error as e:
                raise TransactionError(str(e), operations) from e
        logger.debug("Committed %d operation(s)", len(operations))
        # Our own commit; the snapshots rebuilt below already include it.
        self._watcher.changed()
        self._notify()

    def poll(self) -> bool:
        """
        Deliver changes committed through other connections.

        Returns:
            True if the file changed since the last check
        """
        if not self._watcher.changed():
            return False
        logger.debug("External commit detected in %s", self.db_path)
        self._notify()
        return True

    def close(self) -> None:
        """Release the change watcher's connection."""
        self._watcher.close()

    def _apply(self, conn: sqlite3.Connection, op: Any) -> None:
        if isinstance(op, CreateRecord):
            self._apply_create(conn, op)
        elif isinstance(op, UpdateRecord):
            data = self._load_for_write(conn, op.collection, op.record_id)
            _check_expect(op.collection, op.record_id, data, op.expect)
            data.update(op.fields)
            self._save(conn, op.collection, op.record_id, data)
        elif isinstance(op, AppendToLists):
            data = self._load_for_write(conn, op.collection, op.record_id)
            _check_expect(op.collection, op.record_id, data, op.expect)
            for name in op.unique_fields:
                current = data.get(name) or []
                if op.values.get(name) in current:
                    raise PreconditionFailedError(
                        op.collection, op.record_id, name,
                        f"not containing {op.values.get(name)!r}", current,
                    )
            for name, value in op.values.items():
                data[name] = list(data.get(name) or []) + [value]
            self._save(conn, op.collection, op.record_id, data)
        elif isinstance(op, LinkRecords):
            self._load_for_write(conn, op.collection, op.record_id)
            conn.execute(
                "INSERT OR IGNORE INTO links (collection, record_id, label, target_id) "
                "VALUES (?, ?, ?, ?)",
                (op.collection, op.record_id, op.label, op.target_id),
            )
        else:
            raise TransactionError(f"Unsupported operation {op!r}", [op])

    def _apply_create(self, conn: sqlite3.Connection, op: CreateRecord) -> None:
        _check_collection(op.collection)
        exists = conn.execute(
            f"SELECT 1 FROM {op.collection} WHERE id = ?", (op.record_id,)
        ).fetchone()
        if exists:
            raise TransactionError(
                f"{op.collection}[{op.record_id}] already exists", [op]
            )
        data = dict(op.fields)
        data["id"] = op.record_id
        if op.collection == GAMES:
            game_code = data.get("gameCode")
            if not game_code:
                raise TransactionError("Game records need a gameCode", [op])
            try:
                conn.execute(
                    "INSERT INTO games (id, game_code, data) VALUES (?, ?, ?)",
                    (op.record_id, game_code, json.dumps(data)),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateGameCodeError(game_code) from e
        else:
            conn.execute(
                "INSERT INTO rounds (id, game_id, round_number, data) VALUES (?, ?, ?, ?)",
                (op.record_id, data.get("gameId"), data.get("roundNumber"),
                 json.dumps(data)),
            )

    def _load_for_write(
        self, conn: sqlite3.Connection, collection: str, record_id: str
    ) -> Dict[str, Any]:
        _check_collection(collection)
        row = conn.execute(
            f"SELECT data FROM {collection} WHERE id = ?", (record_id,)
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(collection, record_id)
        return json.loads(row["data"])

    def _save(
        self, conn: sqlite3.Connection, collection: str, record_id: str,
        data: Dict[str, Any],
    ) -> None:
        data["id"] = record_id
        if collection == ROUNDS:
            conn.execute(
                "UPDATE rounds SET game_id = ?, round_number = ?, data = ?, "
                "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (data.get("gameId"), data.get("roundNumber"), json.dumps(data), record_id),
            )
        else:
            conn.execute(
                "UPDATE games SET data = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (json.dumps(data), record_id),
            )

    # ── Subscriptions ────────────────────────────────────────

    def subscribe(self, game_code: str, callback: GameCallback) -> Unsubscribe:
        subscription = _Subscription(game_code, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed to game %s", game_code)
        self._notify([subscription])

        def unsubscribe() -> None:
            subscription.active = False
            with self._lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)
            logger.debug("Unsubscribed from game %s", game_code)

        return unsubscribe

    def _notify(self, subscriptions: Optional[List[_Subscription]] = None) -> None:
        """Queue fresh snapshots for subscribers and drain the queue.

        A callback that writes to the store re-enters here; its
        notifications are queued and delivered by the outer drain loop.
        """
        with self._lock:
            targets = list(subscriptions if subscriptions is not None else self._subscriptions)
            snapshots: Dict[str, Optional[Game]] = {}
            for sub in targets:
                if sub.game_code not in snapshots:
                    snapshots[sub.game_code] = self.get_game(sub.game_code)
                snapshot = snapshots[sub.game_code]
                if sub.is_new(snapshot):
                    sub.last = snapshot
                    self._pending.append((sub, snapshot))
            if self._dispatching:
                return
            self._dispatching = True

        try:
            while True:
                with self._lock:
                    if not self._pending:
                        break
                    sub, snapshot = self._pending.popleft()
                if sub.active:
                    _deliver(sub.callback, snapshot)
        finally:
            with self._lock:
                self._dispatching = False


def _deliver(callback: Callable[[Optional[Game]], None], snapshot: Optional[Game]) -> None:
    try:
        callback(snapshot)
    except Exception as e:
        logger.error(f"Subscriber error: {e}", exc_info=True)


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise TransactionError(f"Unknown collection {collection!r}")


def _check_expect(
    collection: str, record_id: str, data: Dict[str, Any],
    expect: Optional[Dict[str, Any]],
) -> None:
    for name, expected in (expect or {}).items():
        actual = data.get(name)
        if actual != expected:
            raise PreconditionFailedError(collection, record_id, name, expected, actual)
