# Area: Engine
"""
Round engine: the stage cycle, its countdown, and the data lifecycle.

This package contains:
- Stage transition and duration tables
- The stage countdown
- Game and Round read models
- Stage completion and round creation
- Redirect synchronization
- Answer and vote collection
"""

from .enums import Stage, View
from .models import Game, Round
from .stages import next_stage, stage_duration, starts_new_round, parse_stage
from .timer import compute_remaining, now_millis, timer_key

__all__ = [
    "Stage",
    "View",
    "Game",
    "Round",
    "next_stage",
    "stage_duration",
    "starts_new_round",
    "parse_stage",
    "compute_remaining",
    "now_millis",
    "timer_key",
]
