# Area: Store
"""
party_rounds._store.operations — Transaction operations
=======================================================

The operations a store transaction is built from. A transaction is a
list of these; the store applies all of them or none.

``expect`` on an update or append is an optimistic precondition: a
mapping of field name to the value the writer last observed. If any
field holds something else at commit time the whole transaction is
rejected with PreconditionFailedError.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

GAMES = "games"
ROUNDS = "rounds"

COLLECTIONS = (GAMES, ROUNDS)


@dataclass(frozen=True)
class CreateRecord:
    """Create a record with the given fields."""

    collection: str
    record_id: str
    fields: Dict[str, Any]

    def describe(self) -> Dict[str, Any]:
        return {"op": "create", "collection": self.collection,
                "id": self.record_id, "fields": self.fields}


@dataclass(frozen=True)
class UpdateRecord:
    """Overwrite fields on an existing record."""

    collection: str
    record_id: str
    fields: Dict[str, Any]
    expect: Optional[Dict[str, Any]] = None

    def describe(self) -> Dict[str, Any]:
        return {"op": "update", "collection": self.collection,
                "id": self.record_id, "fields": self.fields,
                "expect": self.expect}


@dataclass(frozen=True)
class LinkRecords:
    """Link a record to another under a label (e.g. game -> rounds)."""

    collection: str
    record_id: str
    label: str
    target_id: str

    def describe(self) -> Dict[str, Any]:
        return {"op": "link", "collection": self.collection,
                "id": self.record_id, "label": self.label,
                "target": self.target_id}


@dataclass(frozen=True)
class AppendToLists:
    """
    Append one value to each of several list fields.

    The append happens against the committed record, not the writer's
    snapshot, so concurrent appends from different clients are not lost.
    Fields named in ``unique_fields`` must not already contain the value
    being appended; a repeat rejects the transaction.
    """

    collection: str
    record_id: str
    values: Dict[str, Any]
    unique_fields: Tuple[str, ...] = field(default=())
    expect: Optional[Dict[str, Any]] = None

    def describe(self) -> Dict[str, Any]:
        return {"op": "append", "collection": self.collection,
                "id": self.record_id, "values": self.values,
                "unique": list(self.unique_fields), "expect": self.expect}
