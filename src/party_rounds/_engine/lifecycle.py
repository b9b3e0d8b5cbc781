# Area: Engine
"""
party_rounds._engine.lifecycle — Round Lifecycle Manager
========================================================

Commits stage transitions and creates rounds.

Completing a stage is split into a pure planner
(``plan_stage_completion``) and an executor
(``RoundLifecycleManager.complete_stage``). The plan is a list of
transaction batches; each batch is committed atomically, in order.

Every client runs the same completion for the same expiry. The game
update in each plan is guarded on the ``currentStage`` and
``timerStart`` the client observed, so the first commit wins and the
others fail their precondition without writing anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from ..errors import PreconditionFailedError, StoreError
from .._store.operations import GAMES, ROUNDS, CreateRecord, LinkRecords, UpdateRecord
from .enums import Stage
from .models import Game
from .stages import next_stage, stage_duration, starts_new_round
from . import timer

if TYPE_CHECKING:
    from ..collaborators import RoundStore

logger = logging.getLogger("party_rounds.lifecycle")

FALLBACK_THEME = "Things a pirate would say"
FALLBACK_PROMPT = "BBL"
REDIRECT_TEMPLATE = "/game/{game_code}/play/{round_id}"

Batch = List[Any]


@dataclass(frozen=True)
class StageTransition:
    """
    Outcome of a committed stage completion.

    Attributes:
        game_id: Game that moved
        from_stage: Stage that was completed
        to_stage: Stage now running
        round_number: Game's round number after the transition
        round_id: Id of the round created (RESULTS -> PREP only)
        redirect_to: Location published to clients (RESULTS -> PREP only)
        redirect_published: False if the round was created but the
            redirect transaction failed
    """

    game_id: str
    from_stage: Stage
    to_stage: Stage
    round_number: int
    round_id: Optional[str] = None
    redirect_to: Optional[str] = None
    redirect_published: bool = True

    @property
    def new_round(self) -> bool:
        return self.round_id is not None


def round_path(
    game_code: str, round_id: str, template: str = REDIRECT_TEMPLATE
) -> str:
    """Location of a round, e.g. ``/game/ABCD/play/<round id>``."""
    return template.format(game_code=game_code, round_id=round_id)


def transition_guard(game: Game) -> Dict[str, Any]:
    """Precondition pinning the stage and timer a client observed."""
    return {
        "currentStage": game.current_stage.value,
        "timerStart": game.timer_start,
    }


def new_round_fields(
    game: Game,
    round_number: int,
    fallback_theme: str = FALLBACK_THEME,
    fallback_prompt: str = FALLBACK_PROMPT,
) -> Dict[str, Any]:
    """Fields of a fresh Round record with empty accumulators."""
    return {
        "gameId": game.id,
        "roundNumber": round_number,
        "answers": [],
        "submittedPlayers": [],
        "votes": [],
        "voters": [],
        "theme": game.theme or fallback_theme,
        "prompt": game.prompt or fallback_prompt,
    }


def plan_stage_completion(
    game: Game,
    now: int,
    round_id: Optional[str] = None,
    durations: Optional[Mapping[Any, int]] = None,
    fallback_theme: str = FALLBACK_THEME,
    fallback_prompt: str = FALLBACK_PROMPT,
    redirect_template: str = REDIRECT_TEMPLATE,
) -> List[Batch]:
    """
    Build the transactions that complete the game's current stage.

    Args:
        game: Snapshot the caller observed
        now: Epoch milliseconds to record as the new ``timerStart``
        round_id: Id for the new round; required when the current
            stage is RESULTS
        durations: Optional stage duration overrides

    Returns:
        One batch for an ordinary transition. Two batches for
        RESULTS -> PREP: round creation first, redirect second, so the
        redirect never points at a round that is not committed yet.
    """
    target = next_stage(game.current_stage)
    timer_fields = {
        "currentStage": target.value,
        "timerStart": now,
        "timeLeft": stage_duration(target, durations),
        "isTimerRunning": True,
    }
    guard = transition_guard(game)

    if not starts_new_round(game.current_stage):
        return [[UpdateRecord(GAMES, game.id, timer_fields, expect=guard)]]

    if not round_id:
        raise ValueError("round_id is required to complete RESULTS")

    next_round_number = (game.current_round or 1) + 1
    create_round = [
        CreateRecord(
            ROUNDS, round_id,
            new_round_fields(game, next_round_number, fallback_theme, fallback_prompt),
        ),
        LinkRecords(GAMES, game.id, ROUNDS, round_id),
        UpdateRecord(
            GAMES, game.id,
            dict(timer_fields,
                 currentRound=next_round_number,
                 answers=[],
                 submittedPlayers=[]),
            expect=guard,
        ),
    ]
    publish_redirect = [
        UpdateRecord(
            GAMES, game.id,
            {
                "shouldRedirect": True,
                "redirectTo": round_path(game.game_code, round_id, redirect_template),
                "redirectVersion": game.redirect_version + 1,
            },
            expect={"currentRound": next_round_number},
        ),
    ]
    return [create_round, publish_redirect]


class RoundLifecycleManager:
    """
    Executes stage completions and creates games against a RoundStore.

    Usage:
        manager = RoundLifecycleManager(store)
        transition = manager.complete_stage(game)
    """

    def __init__(
        self,
        store: "RoundStore",
        durations: Optional[Mapping[Any, int]] = None,
        fallback_theme: str = FALLBACK_THEME,
        fallback_prompt: str = FALLBACK_PROMPT,
        redirect_template: str = REDIRECT_TEMPLATE,
    ):
        self.store = store
        self.durations = dict(durations or {})
        self.fallback_theme = fallback_theme
        self.fallback_prompt = fallback_prompt
        self.redirect_template = redirect_template

    def complete_stage(self, game: Game) -> Optional[StageTransition]:
        """
        Complete the game's current stage.

        Args:
            game: Snapshot the caller observed

        Returns:
            The committed transition, or None if another client already
            completed this stage (precondition mismatch)

        Raises:
            TransactionError: The first batch was rejected; nothing was
                written and the caller should retry on its next tick
        """
        from_stage = game.current_stage
        new_round = starts_new_round(from_stage)
        round_id = self.store.generate_id() if new_round else None
        batches = plan_stage_completion(
            game,
            now=timer.now_millis(),
            round_id=round_id,
            durations=self.durations,
            fallback_theme=self.fallback_theme,
            fallback_prompt=self.fallback_prompt,
            redirect_template=self.redirect_template,
        )

        try:
            self.store.transact(batches[0])
        except PreconditionFailedError as e:
            logger.debug(f"[{game.game_code}] {from_stage.value} already completed: {e}")
            return None

        to_stage = next_stage(from_stage)
        round_number = game.current_round + 1 if new_round else game.current_round
        logger.info(
            f"[{game.game_code}] Stage: {from_stage.value} → {to_stage.value} "
            f"(round {round_number})"
        )
        if not new_round:
            return StageTransition(game.id, from_stage, to_stage, round_number)

        redirect_to = round_path(game.game_code, round_id, self.redirect_template)
        published = self._publish_redirect(game, batches[1])
        return StageTransition(
            game.id, from_stage, to_stage, round_number,
            round_id=round_id,
            redirect_to=redirect_to,
            redirect_published=published,
        )

    def _publish_redirect(self, game: Game, batch: Sequence[Any]) -> bool:
        try:
            self.store.transact(batch)
        except StoreError as e:
            # Clients still converge by following the current round record.
            logger.warning(f"[{game.game_code}] Redirect not published: {e}")
            return False
        return True

    def create_game(
        self,
        game_code: str,
        players: Sequence[str] = (),
        theme: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> str:
        """
        Create a game in PREP with its first round.

        Args:
            game_code: Join code; must not already be in use
            players: Participant ids in join order
            theme: Content for round 1 (fallback theme if omitted)
            prompt: Content for round 1 (fallback prompt if omitted)

        Returns:
            The new game's id

        Raises:
            DuplicateGameCodeError: ``game_code`` is already in use
        """
        game_id = self.store.generate_id()
        round_id = self.store.generate_id()
        theme = theme or self.fallback_theme
        prompt = prompt or self.fallback_prompt
        game_fields = {
            "gameCode": game_code,
            "currentStage": Stage.PREP.value,
            "currentRound": 1,
            "timerStart": timer.now_millis(),
            "timeLeft": stage_duration(Stage.PREP, self.durations),
            "isTimerRunning": True,
            "answers": [],
            "submittedPlayers": [],
            "theme": theme,
            "prompt": prompt,
            "players": list(players),
            "shouldRedirect": False,
            "redirectTo": None,
            "redirectVersion": 0,
        }
        draft = Game(id=game_id, gameCode=game_code, theme=theme, prompt=prompt)
        self.store.transact([
            CreateRecord(GAMES, game_id, game_fields),
            CreateRecord(
                ROUNDS, round_id,
                new_round_fields(draft, 1, self.fallback_theme, self.fallback_prompt),
            ),
            LinkRecords(GAMES, game_id, ROUNDS, round_id),
        ])
        logger.info(f"[{game_code}] Game created with {len(players)} player(s)")
        return game_id
