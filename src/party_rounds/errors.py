"""
party_rounds.errors — Custom exception classes
==============================================

Defines the exception hierarchy for store and configuration errors.
Each exception stores enough context for structured logging.
"""

from __future__ import annotations
from typing import Any, Dict, List, Sequence
import json


class PartyRoundsError(Exception):
    """Base exception for all party_rounds errors."""
    pass


class ConfigError(PartyRoundsError, ValueError):
    """Raised when the runner configuration is missing keys or malformed."""
    pass


class StoreError(PartyRoundsError):
    """Base class for round store failures."""
    pass


class TransactionError(StoreError):
    """Raised when a transaction is rejected and none of its operations apply.

    Treated as transient: the caller retries on its next tick.
    """

    def __init__(self, reason: str, operations: Sequence[Any] = ()):
        self.reason = reason
        self.operations = list(operations)
        super().__init__(f"Transaction rejected: {reason}")

    def format_error_log(self) -> str:
        return _format_error_block(
            error_type="TRANSACTION_REJECTED",
            reason=self.reason,
            operations=[_describe_operation(op) for op in self.operations],
        )


class PreconditionFailedError(StoreError):
    """Raised when an optimistic precondition no longer holds.

    Another client already moved the record on; the transaction is
    rolled back as a whole.
    """

    def __init__(
        self,
        collection: str,
        record_id: str,
        field: str,
        expected: Any,
        actual: Any,
    ):
        self.collection = collection
        self.record_id = record_id
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{collection}[{record_id}].{field}: expected {expected!r}, found {actual!r}"
        )


class RecordNotFoundError(StoreError):
    """Raised when an operation targets a record that does not exist."""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"No {collection} record with id {record_id!r}")


class DuplicateGameCodeError(StoreError):
    """Raised when a second game is created with an existing join code."""

    def __init__(self, game_code: str):
        self.game_code = game_code
        super().__init__(f"Game code {game_code!r} is already in use")


def _describe_operation(op: Any) -> Dict[str, Any]:
    """Reduce an operation to a JSON-friendly dict."""
    describe = getattr(op, "describe", None)
    if callable(describe):
        return describe()
    return {"operation": repr(op)}


def _format_error_block(
    error_type: str,
    reason: str,
    operations: List[Dict[str, Any]],
) -> str:
    """Format a structured error block for the log."""
    from datetime import datetime, timezone

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    lines = [
        "",
        "=" * 64,
        " STORE ERROR",
        "=" * 64,
        f" Timestamp:    {timestamp}",
        f" Error Type:   {error_type}",
        f" Reason:       {reason}",
    ]

    if operations:
        lines.append("")
        lines.append(" ── OPERATIONS " + "─" * 49)
        for op in operations:
            lines.append(_indent_json(op))

    lines.append("")
    lines.append("=" * 64)
    lines.append("")

    return "\n".join(lines)


def _indent_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format JSON with indentation for error logs."""
    try:
        formatted = json.dumps(data, indent=indent, default=str)
        return "\n".join(" " + line for line in formatted.split("\n"))
    except (TypeError, ValueError):
        return f" {repr(data)}"
