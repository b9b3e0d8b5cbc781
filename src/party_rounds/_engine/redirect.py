# Area: Engine
"""
party_rounds._engine.redirect — Round redirect synchronization
==============================================================

Moves every client to the new round's location once it exists.

The writer publishes ``shouldRedirect``/``redirectTo`` together with an
incremented ``redirectVersion``. Each client consumes a given version
once: it navigates, then tries to clear the flag. The clear is guarded
on the version it consumed, so a slow client can never wipe out a newer
redirect, and a failed clear is only logged.

A client that never saw the flag (it was cleared before that client's
update arrived) still converges: ``follow_current_round`` sends it to
the location of the round record matching ``currentRound``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..errors import StoreError
from .._store.operations import GAMES, UpdateRecord
from .lifecycle import REDIRECT_TEMPLATE, round_path
from .models import Game

if TYPE_CHECKING:
    from ..collaborators import Navigator, RoundStore

logger = logging.getLogger("party_rounds.redirect")


class RedirectSync:
    """
    Per-client consumer of the redirect signal.

    Attributes:
        last_version: Highest redirect version this client has acted on
    """

    def __init__(
        self,
        store: "RoundStore",
        navigator: "Navigator",
        redirect_template: str = REDIRECT_TEMPLATE,
    ):
        self.store = store
        self.navigator = navigator
        self.redirect_template = redirect_template
        self.last_version = 0

    def observe(self, game: Optional[Game]) -> Optional[str]:
        """
        Act on a pending redirect in ``game``.

        Returns:
            The path navigated to, or None if there was nothing new
        """
        if game is None or not game.should_redirect or not game.redirect_to:
            return None
        if game.redirect_version and game.redirect_version <= self.last_version:
            return None

        self.navigator.navigate_to(game.redirect_to)
        self.last_version = max(self.last_version, game.redirect_version)
        logger.info(f"[{game.game_code}] Redirected to {game.redirect_to}")
        self._clear(game)
        return game.redirect_to

    def follow_current_round(self, game: Optional[Game]) -> Optional[str]:
        """
        Navigate to the current round's location if this client is elsewhere.

        Skipped while a redirect is pending so ``observe`` stays the
        primary path.
        """
        if game is None or game.should_redirect:
            return None
        current = game.current_round_record()
        if current is None:
            return None
        path = round_path(game.game_code, current.id, self.redirect_template)
        if self.navigator.location == path:
            return None
        self.navigator.navigate_to(path)
        logger.info(f"[{game.game_code}] Following round {current.round_number} at {path}")
        return path

    def _clear(self, game: Game) -> None:
        try:
            self.store.transact([
                UpdateRecord(
                    GAMES, game.id,
                    {"shouldRedirect": False, "redirectTo": None},
                    expect={"redirectVersion": game.redirect_version},
                ),
            ])
        except StoreError as e:
            logger.debug(f"[{game.game_code}] Redirect clear skipped: {e}")
