# Area: Engine
"""
party_rounds._engine.aggregator — Answer and vote collection
============================================================

Appends player submissions to the shared accumulators. Appends are
done by the store against the committed record, so answers from
different players never overwrite each other. Each player id may
appear once per round; a repeat submission is rejected by the store
and reported here as ``False``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..errors import PreconditionFailedError
from .._store.operations import GAMES, ROUNDS, AppendToLists, UpdateRecord
from .enums import Stage
from .models import Game

if TYPE_CHECKING:
    from ..collaborators import LocalCache, RoundStore

logger = logging.getLogger("party_rounds.aggregator")


def answer_cache_key(game_code: str, round_number: int) -> str:
    """Local cache key for a player's own answer in one round."""
    return f"answer_{game_code}_{round_number}"


def recall_answer(
    cache: Optional["LocalCache"], game_code: str, round_number: int
) -> Optional[str]:
    """Return the answer this client cached for the round, if any."""
    if cache is None:
        return None
    return cache.get(answer_cache_key(game_code, round_number))


def _is_participant(game: Game, player_id: str) -> bool:
    return not game.players or player_id in game.players


def submit_answer(
    store: "RoundStore",
    game: Game,
    player_id: str,
    answer: str,
    cache: Optional["LocalCache"] = None,
) -> bool:
    """
    Record a player's answer for the current round.

    Blank answers are ignored. The answer is appended to the game (and
    mirrored on the current round record); once recorded it is also
    cached locally so the submission view can show it after a reload.

    Returns:
        True if the answer was recorded
    """
    if answer is None or not answer.strip():
        return False
    if not _is_participant(game, player_id):
        logger.warning(f"[{game.game_code}] {player_id} is not in this game")
        return False

    values = {"answers": answer, "submittedPlayers": player_id}
    operations: List[Any] = [
        AppendToLists(
            GAMES, game.id, values,
            unique_fields=("submittedPlayers",),
            expect={"currentStage": Stage.GAME.value,
                    "currentRound": game.current_round},
        ),
    ]
    current = game.current_round_record()
    if current is not None:
        operations.append(AppendToLists(ROUNDS, current.id, dict(values)))

    try:
        store.transact(operations)
    except PreconditionFailedError as e:
        logger.debug(f"[{game.game_code}] Answer from {player_id} not recorded: {e}")
        return False

    if cache is not None:
        cache.set(answer_cache_key(game.game_code, game.current_round), answer)
    logger.info(f"[{game.game_code}] Answer recorded for {player_id} "
                f"(round {game.current_round})")
    return True


def cast_vote(
    store: "RoundStore", game: Game, player_id: str, choice: str
) -> bool:
    """
    Record a player's vote on the current round.

    Returns:
        True if the vote was recorded; False outside VOTING, without a
        round record, or for a second vote by the same player
    """
    current = game.current_round_record()
    if game.current_stage is not Stage.VOTING or current is None:
        return False
    if not _is_participant(game, player_id):
        logger.warning(f"[{game.game_code}] {player_id} is not in this game")
        return False

    vote: Dict[str, Any] = {"playerId": player_id, "answer": choice}
    try:
        store.transact([
            UpdateRecord(
                GAMES, game.id, {},
                expect={"currentStage": Stage.VOTING.value,
                        "currentRound": game.current_round},
            ),
            AppendToLists(
                ROUNDS, current.id,
                {"votes": vote, "voters": player_id},
                unique_fields=("voters",),
            ),
        ])
    except PreconditionFailedError as e:
        logger.debug(f"[{game.game_code}] Vote from {player_id} not recorded: {e}")
        return False

    logger.info(f"[{game.game_code}] Vote recorded for {player_id}")
    return True
