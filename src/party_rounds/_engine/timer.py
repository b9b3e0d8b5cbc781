# Area: Engine
"""
party_rounds._engine.timer — Stage countdown
============================================

Derives the live countdown of the current stage from the recorded
``timerStart`` (epoch milliseconds) and ``timeLeft`` (the stage's
duration in seconds). Nothing here writes to the store; the countdown
is recomputed on every tick rather than stored.
"""

from __future__ import annotations

import time
from typing import Optional, Tuple

from .models import Game

TimerKey = Tuple[Optional[int], int, bool]


def now_millis() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def compute_remaining(game: Game, now: Optional[int] = None) -> int:
    """
    Seconds left in the current stage.

    A frozen timer reports its stored ``time_left``. A running timer
    subtracts whole elapsed seconds. A start time in the future (clock
    skew) counts as zero elapsed, so the result stays within
    ``[0, time_left]``.
    """
    if not game.is_timer_running or game.timer_start is None:
        return max(0, game.time_left)

    if now is None:
        now = now_millis()

    elapsed = max(0, (now - game.timer_start) // 1000)
    return max(0, game.time_left - elapsed)


def is_expired(game: Game, now: Optional[int] = None) -> bool:
    """True when a running timer has reached zero."""
    return game.is_timer_running and compute_remaining(game, now) == 0


def timer_key(game: Game) -> TimerKey:
    """
    The fields a client countdown depends on.

    When the key changes the client drops its countdown bookkeeping and
    starts fresh against the new values.
    """
    return (game.timer_start, game.time_left, game.is_timer_running)
