"""
party_rounds.collaborators — The three things a controller talks to
====================================================================

A PlayController never touches storage, routing or browser-style
local storage directly. It is handed three collaborators:

    RoundStore   shared records, atomic transactions, change push
    Navigator    moves this client to another location
    LocalCache   client-scoped key/value cache (answer recall)

The package ships one implementation of each
(SqliteRoundStore, HistoryNavigator, MemoryCache / JsonFileCache).
Subclass these to plug in a different backend.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from ._engine.models import Game

GameCallback = Callable[[Optional[Game]], None]
Unsubscribe = Callable[[], None]


class RoundStore(ABC):
    """
    Abstract shared record store.

    Holds Game and Round records. Transactions are atomic: subscribers
    observe all of a transaction's operations or none of them.
    """

    @abstractmethod
    def subscribe(self, game_code: str, callback: GameCallback) -> Unsubscribe:
        """
        Watch the game with ``game_code``.

        The callback is invoked once right away with the current snapshot
        (None while no such game exists) and again after every committed
        change to the game or its linked rounds.

        Returns
        -------
        Unsubscribe
            Call it to stop receiving updates.
        """

    @abstractmethod
    def get_game(self, game_code: str) -> Optional[Game]:
        """Return the current snapshot of a game, or None."""

    @abstractmethod
    def transact(self, operations: Sequence) -> None:
        """
        Apply operations atomically.

        Raises
        ------
        PreconditionFailedError
            An ``expect`` guard no longer matches; nothing was applied.
        TransactionError
            The store rejected the transaction; nothing was applied.
        """

    @abstractmethod
    def generate_id(self) -> str:
        """Return a globally unique id usable before the record exists."""

    def poll(self) -> bool:
        """
        Deliver changes this store did not push on its own.

        Stores that push every change need not override this.

        Returns
        -------
        bool
            True if new changes were found and delivered.
        """
        return False


class Navigator(ABC):
    """Moves this client to another location."""

    @abstractmethod
    def navigate_to(self, path: str) -> None:
        """
        Go to ``path``.

        Navigating to the current location must be a no-op.
        """

    @property
    @abstractmethod
    def location(self) -> Optional[str]:
        """The current location, or None before the first navigation."""


class LocalCache(ABC):
    """Client-scoped string cache. Never authoritative."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the cached value, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
