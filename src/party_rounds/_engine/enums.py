# Area: Engine
"""
party_rounds._engine.enums — Stage and View Enums
=================================================

Defines the stages a round cycles through and the views a client
renders for them.
"""

from enum import Enum


class Stage(str, Enum):
    """
    Stages of a round.

    Stage transitions (cyclic, no terminal state):
    PREP -> GAME -> VOTING -> RESULTS -> PREP (new round)
    """
    PREP = "PREP"
    GAME = "GAME"
    VOTING = "VOTING"
    RESULTS = "RESULTS"


class View(str, Enum):
    """
    Views a client can render.

    WAITING replaces GAME for a player who already submitted an answer.
    LOADING is shown while the game record has not arrived yet.
    """
    LOADING = "LOADING"
    PREP = "PREP"
    GAME = "GAME"
    WAITING = "WAITING"
    VOTING = "VOTING"
    RESULTS = "RESULTS"
