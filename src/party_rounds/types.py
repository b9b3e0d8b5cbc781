"""
party_rounds.types — TypedDict schemas for stage view props
===========================================================

This module documents the exact structure of the props a
PlayController hands to each stage view. Views only read these;
every action goes back through the controller's handlers
(``submit_answer``, ``cast_vote``, ``next_stage``).

All types are exported from the main package:

    from party_rounds import StageProps, RenderState

Use __annotations__ to inspect fields:

    >>> StageProps.__annotations__
    {'current_round': int, 'time_left': int, ...}
"""

from typing import List, Optional, TypedDict

from ._engine.enums import View


# ============================================
# Props common to every stage view
# ============================================

class _BaseStageProps(TypedDict):
    current_round: int              # e.g. 2
    time_left: int                  # live countdown, seconds
    theme: str                      # e.g. "Things a pirate would say"
    prompt: str                     # e.g. "BBL"
    players: List[str]              # participant ids in join order
    submitted_answer: Optional[str] # this player's cached answer, if any


class StageProps(_BaseStageProps, total=False):
    """Props passed to a stage view.

    Fields
    ------
    current_round : int
        The round number (1, 2, 3, ...).
    time_left : int
        Seconds left in the current stage, never negative.
    theme, prompt : str
        Round content, with fallbacks applied.
    players : List[str]
        Participant ids.
    submitted_answer : Optional[str]
        The answer this client cached for the round.
    answers : List[str]
        VOTING and RESULTS only: answers collected this round.
    show_no_submission_alert : bool
        VOTING only: True if this player did not submit an answer.
    """
    answers: List[str]
    show_no_submission_alert: bool


# ============================================
# Render state
# ============================================

class RenderState(TypedDict):
    """What a client should show right now.

    Fields
    ------
    view : View
        LOADING until the game record arrives, then the stage view.
        WAITING during GAME once this player has submitted.
    props : Optional[StageProps]
        None while LOADING.
    """
    view: View
    props: Optional[StageProps]
