# Area: Engine
"""
party_rounds._engine.stages — Stage Transition Engine
=====================================================

Next-stage and duration tables for the round cycle. Every function
here is total: unknown or missing stages fall back to PREP behavior
instead of raising.
"""

from typing import Any, Mapping, Optional

from .enums import Stage


# {current_stage: next_stage}
TRANSITIONS = {
    Stage.PREP: Stage.GAME,
    Stage.GAME: Stage.VOTING,
    Stage.VOTING: Stage.RESULTS,
    Stage.RESULTS: Stage.PREP,
}

# Seconds each stage's countdown runs for
STAGE_DURATIONS = {
    Stage.PREP: 5,      # get ready
    Stage.GAME: 30,     # enter an answer
    Stage.VOTING: 15,   # vote
    Stage.RESULTS: 10,  # show results
}

DEFAULT_DURATION = 30


def parse_stage(value: Any) -> Optional[Stage]:
    """
    Convert a stored stage value to a Stage.

    Args:
        value: A Stage, its string value, or anything else

    Returns:
        The matching Stage, or None if the value is not a known stage
    """
    if isinstance(value, Stage):
        return value
    try:
        return Stage(value)
    except ValueError:
        return None


def next_stage(current: Any) -> Stage:
    """
    Return the stage that follows ``current``.

    Unknown or unset stages restart the cycle at PREP.
    """
    stage = parse_stage(current)
    if stage is None:
        return Stage.PREP
    return TRANSITIONS[stage]


def stage_duration(
    stage: Any, durations: Optional[Mapping[Any, int]] = None
) -> int:
    """
    Return the countdown length in seconds for ``stage``.

    Args:
        stage: The stage to look up
        durations: Optional overrides keyed by Stage or stage name

    Returns:
        Duration in seconds; DEFAULT_DURATION for unknown stages
    """
    parsed = parse_stage(stage)
    if parsed is None:
        return DEFAULT_DURATION
    if durations:
        for key in (parsed, parsed.value):
            if key in durations:
                return int(durations[key])
    return STAGE_DURATIONS[parsed]


def starts_new_round(current: Any) -> bool:
    """True when completing ``current`` begins a new round (RESULTS -> PREP)."""
    return parse_stage(current) is Stage.RESULTS
