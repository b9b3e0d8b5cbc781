"""
party_rounds — Realtime party game round controller
===================================================

A shared round cycles PREP → GAME → VOTING → RESULTS → PREP on a
server-timestamped countdown. Every connected client runs a
PlayController against the same RoundStore; stage completions are
guarded so concurrent clients agree on one transition, and a redirect
signal moves everyone to the new round together.

Quick Start:
    from party_rounds import (
        SqliteRoundStore, RoundLifecycleManager, PlayController, HistoryNavigator,
    )
    store = SqliteRoundStore("party.db")
    RoundLifecycleManager(store).create_game("ABCD", ["alice", "bob"])
    controller = PlayController(store, "ABCD", "alice", HistoryNavigator())
    controller.run()

Custom backends:
    Subclass RoundStore, Navigator or LocalCache (party_rounds.collaborators).

Type Definitions
----------------
    from party_rounds import StageProps, RenderState
"""

from .errors import (
    PartyRoundsError,
    ConfigError,
    StoreError,
    TransactionError,
    PreconditionFailedError,
    RecordNotFoundError,
    DuplicateGameCodeError,
)
from ._engine import (
    Stage,
    View,
    Game,
    Round,
    next_stage,
    stage_duration,
    compute_remaining,
)
from .collaborators import RoundStore, Navigator, LocalCache
from ._store import SqliteRoundStore
from ._shared import HistoryNavigator, MemoryCache, JsonFileCache, setup_logging
from ._engine.lifecycle import RoundLifecycleManager, StageTransition
from ._engine.redirect import RedirectSync
from .controller import PlayController
from .types import StageProps, RenderState

__all__ = [
    # Main classes
    "PlayController",
    "RoundLifecycleManager",
    "StageTransition",
    "RedirectSync",
    # Collaborators
    "RoundStore",
    "Navigator",
    "LocalCache",
    "SqliteRoundStore",
    "HistoryNavigator",
    "MemoryCache",
    "JsonFileCache",
    # Engine
    "Stage",
    "View",
    "Game",
    "Round",
    "next_stage",
    "stage_duration",
    "compute_remaining",
    "setup_logging",
    # Errors
    "PartyRoundsError",
    "ConfigError",
    "StoreError",
    "TransactionError",
    "PreconditionFailedError",
    "RecordNotFoundError",
    "DuplicateGameCodeError",
    # Types
    "StageProps",
    "RenderState",
]
__version__ = "1.0.0"
