"""
party_rounds.controller — Per-client play controller
====================================================

One PlayController runs per connected client. It drives the shared
round from two event sources:

    tick()            once per second: pick up changes made elsewhere,
                      recompute the countdown and complete the stage
                      when it reaches zero
    on_game_change()  every store update: refresh the snapshot, restart
                      the countdown if the timer changed, follow redirects

Every client runs the same logic against the same store. Stage
completion is guarded by optimistic preconditions, so when several
clients expire together exactly one transition commits and the rest
become no-ops; a client that lost reloads the game and carries on
from the winner's state. A transient store failure is logged and
retried on the next tick; nothing is raised to the view layer.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .collaborators import LocalCache, Navigator, RoundStore, Unsubscribe
from .errors import StoreError, TransactionError
from ._config import validate_config, with_defaults
from ._engine import aggregator
from ._engine.enums import Stage, View
from ._engine.lifecycle import RoundLifecycleManager, StageTransition
from ._engine.models import Game
from ._engine.redirect import RedirectSync
from ._engine.timer import TimerKey, compute_remaining, timer_key
from ._shared.logging_config import log_transaction_error
from .types import RenderState, StageProps

logger = logging.getLogger("party_rounds.controller")

RenderCallback = Callable[[RenderState], None]


class PlayController:
    """
    Client-side controller for one player in one game.

    Usage:
        controller = PlayController(store, "ABCD", "alice", HistoryNavigator())
        controller.start()          # subscribe
        controller.tick()           # call once per second
        controller.submit_answer("Arr")
        state = controller.render_state()
    """

    def __init__(
        self,
        store: RoundStore,
        game_code: str,
        player_id: str,
        navigator: Navigator,
        cache: Optional[LocalCache] = None,
        config: Optional[Dict[str, Any]] = None,
        on_render: Optional[RenderCallback] = None,
    ):
        self.config = with_defaults(config)
        validate_config(self.config, require_identity=False)

        self.store = store
        self.game_code = game_code
        self.player_id = player_id
        self.navigator = navigator
        self.cache = cache
        self.on_render = on_render

        self.lifecycle = RoundLifecycleManager(
            store,
            durations=self.config["stage_durations"],
            fallback_theme=self.config["fallback_theme"],
            fallback_prompt=self.config["fallback_prompt"],
            redirect_template=self.config["redirect_template"],
        )
        self.redirects = RedirectSync(
            store, navigator, redirect_template=self.config["redirect_template"]
        )

        self.game: Optional[Game] = None
        self.local_time_left: Optional[int] = None
        self._submitted_locally = False
        self._timer_key: Optional[TimerKey] = None
        self._expiry_attempted = False
        self._unsubscribe: Optional[Unsubscribe] = None
        self._last_render: Optional[RenderState] = None
        self._running = False

    # ── Subscription ─────────────────────────────────────────

    def start(self) -> None:
        """Subscribe to the game. Safe to call more than once."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.game_code, self.on_game_change)

    def stop(self) -> None:
        """Unsubscribe and stop the run loop."""
        self._running = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_game_change(self, game: Optional[Game]) -> None:
        """Store callback: adopt the new snapshot."""
        previous = self.game
        self.game = game
        if game is None:
            return

        if game.current_stage is Stage.GAME and (
            previous is None
            or previous.current_stage is not Stage.GAME
            or previous.current_round != game.current_round
        ):
            self._submitted_locally = False

        key = timer_key(game)
        if key != self._timer_key:
            # Timer changed: start the countdown over against the new values.
            self._timer_key = key
            self._expiry_attempted = False
            self.local_time_left = compute_remaining(game)

        if self.redirects.observe(game) is None:
            self.redirects.follow_current_round(game)
        self._emit_render()

    # ── Timer ────────────────────────────────────────────────

    def tick(self, now: Optional[int] = None) -> Optional[int]:
        """
        Recompute the countdown; complete the stage if it expired.

        Completion is attempted once per timer key. If the attempt
        failed transiently it is retried on the next tick; if another
        client got there first the game is reloaded, which brings a new
        timer key.

        Returns:
            Seconds left, or None while the game has not loaded
        """
        self.store.poll()
        game = self.game
        if game is None:
            return None

        remaining = compute_remaining(game, now)
        self.local_time_left = remaining

        if remaining == 0 and game.is_timer_running and not self._expiry_attempted:
            self._expiry_attempted = True
            _, failed = self._complete(game)
            if failed:
                self._expiry_attempted = False

        self._emit_render()
        return self.local_time_left

    # ── Handlers handed to stage views ───────────────────────

    def complete_stage(self) -> Optional[StageTransition]:
        """Complete the current stage now. None if nothing was committed."""
        if self.game is None:
            return None
        transition, _ = self._complete(self.game)
        return transition

    def next_stage(self) -> Optional[StageTransition]:
        """RESULTS view "next" button: start the next round early."""
        if self.game is None or self.game.current_stage is not Stage.RESULTS:
            return None
        return self.complete_stage()

    def submit_answer(self, answer: str) -> bool:
        """GAME view submit handler. True if the answer was recorded."""
        game = self.game
        if game is None:
            return False
        try:
            accepted = aggregator.submit_answer(
                self.store, game, self.player_id, answer, self.cache
            )
        except StoreError as e:
            self._log_store_error(e)
            return False
        if accepted:
            self._submitted_locally = True
            self._emit_render()
        return accepted

    def cast_vote(self, choice: str) -> bool:
        """
        VOTING view vote handler.

        Every vote also attempts to complete VOTING straight away,
        whether or not everyone has voted.
        """
        game = self.game
        if game is None:
            return False
        try:
            recorded = aggregator.cast_vote(self.store, game, self.player_id, choice)
        except StoreError as e:
            self._log_store_error(e)
            recorded = False
        if self.game is not None and self.game.current_stage is Stage.VOTING:
            self.complete_stage()
        return recorded

    # ── Render state ─────────────────────────────────────────

    @property
    def has_submitted(self) -> bool:
        if self._submitted_locally:
            return True
        return self.game is not None and self.game.has_submitted(self.player_id)

    def render_state(self) -> RenderState:
        """The view and props this client should show."""
        game = self.game
        if game is None:
            return {"view": View.LOADING, "props": None}

        props: StageProps = {
            "current_round": game.current_round,
            "time_left": (self.local_time_left
                          if self.local_time_left is not None else game.time_left),
            "theme": game.theme or self.config["fallback_theme"],
            "prompt": game.prompt or self.config["fallback_prompt"],
            "players": list(game.players),
            "submitted_answer": aggregator.recall_answer(
                self.cache, game.game_code, game.current_round
            ),
        }

        stage = game.current_stage
        if stage is Stage.GAME:
            view = View.WAITING if self.has_submitted else View.GAME
        elif stage is Stage.VOTING:
            view = View.VOTING
            props["answers"] = list(game.answers)
            props["show_no_submission_alert"] = not self.has_submitted
        elif stage is Stage.RESULTS:
            view = View.RESULTS
            props["answers"] = list(game.answers)
        else:
            view = View.PREP
        return {"view": view, "props": props}

    # ── Run loop ─────────────────────────────────────────────

    def run(self, max_ticks: Optional[int] = None) -> None:
        """Subscribe and tick until stopped or interrupted."""
        interval = self.config["tick_interval_seconds"]
        self._running = True
        self.start()
        logger.info(f"[{self.game_code}] {self.player_id} joined, tick every {interval}s")

        ticks = 0
        while self._running:
            try:
                self.tick()
                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break
                time.sleep(interval)
            except KeyboardInterrupt:
                break
            except Exception as e:
                logger.error(f"Loop error: {e}", exc_info=True)
                time.sleep(interval)

        self.stop()
        logger.info(f"[{self.game_code}] {self.player_id} left")

    # ── Internals ────────────────────────────────────────────

    def _complete(self, game: Game) -> Tuple[Optional[StageTransition], bool]:
        """Attempt completion. Returns (transition, failed_transiently)."""
        try:
            transition = self.lifecycle.complete_stage(game)
        except StoreError as e:
            self._log_store_error(e)
            return None, True
        if transition is None:
            self._reload()
        return transition, False

    def _reload(self) -> None:
        """Fetch the game directly; another client moved it on."""
        try:
            game = self.store.get_game(self.game_code)
        except StoreError as e:
            self._log_store_error(e)
            return
        self.on_game_change(game)

    def _log_store_error(self, error: StoreError) -> None:
        if isinstance(error, TransactionError):
            log_transaction_error(error, self.game_code)
        else:
            logger.warning(f"[{self.game_code}] Store error: {error}")

    def _emit_render(self) -> None:
        if self.on_render is None:
            return
        state = self.render_state()
        if state != self._last_render:
            self._last_render = state
            self.on_render(state)
