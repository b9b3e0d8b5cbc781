# Area: Engine
"""
party_rounds._engine.models — Game and Round records
====================================================

Read models for the two shared records. The store keeps records as
camelCase field dicts; these models validate them into snake_case
attributes and fill defaults for fields that were never written.

Snapshots are immutable. Clients never edit them in place: every
mutation goes through a store transaction and comes back as a new
snapshot.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import Stage
from .stages import parse_stage


class Round(BaseModel):
    """One playthrough of the stage cycle within a game."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str
    game_id: str = Field(alias="gameId")
    round_number: int = Field(alias="roundNumber")
    answers: List[str] = Field(default_factory=list)
    submitted_players: List[str] = Field(default_factory=list, alias="submittedPlayers")
    votes: List[Dict[str, Any]] = Field(default_factory=list)
    voters: List[str] = Field(default_factory=list)
    theme: Optional[str] = None
    prompt: Optional[str] = None


class Game(BaseModel):
    """
    Shared state of one game session, identified by its join code.

    ``rounds`` holds the Round records linked to this game, ordered by
    round number. It is filled in by the store when it builds a snapshot.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str
    game_code: str = Field(alias="gameCode")
    current_stage: Stage = Field(default=Stage.PREP, alias="currentStage")
    current_round: int = Field(default=1, alias="currentRound")
    timer_start: Optional[int] = Field(default=None, alias="timerStart")
    time_left: int = Field(default=0, alias="timeLeft")
    is_timer_running: bool = Field(default=False, alias="isTimerRunning")
    answers: List[str] = Field(default_factory=list)
    submitted_players: List[str] = Field(default_factory=list, alias="submittedPlayers")
    theme: Optional[str] = None
    prompt: Optional[str] = None
    players: List[str] = Field(default_factory=list)
    should_redirect: bool = Field(default=False, alias="shouldRedirect")
    redirect_to: Optional[str] = Field(default=None, alias="redirectTo")
    redirect_version: int = Field(default=0, alias="redirectVersion")
    rounds: List[Round] = Field(default_factory=list)

    @field_validator("current_stage", mode="before")
    @classmethod
    def _unknown_stage_reads_as_prep(cls, value: Any) -> Stage:
        return parse_stage(value) or Stage.PREP

    @field_validator("current_round", mode="before")
    @classmethod
    def _missing_round_reads_as_first(cls, value: Any) -> Any:
        return value or 1

    @field_validator("answers", "submitted_players", "players", mode="before")
    @classmethod
    def _null_list_reads_as_empty(cls, value: Any) -> Any:
        return value if value is not None else []

    @field_validator("time_left", mode="before")
    @classmethod
    def _null_time_left_reads_as_zero(cls, value: Any) -> Any:
        return value if value is not None else 0

    @field_validator("should_redirect", mode="before")
    @classmethod
    def _null_flag_reads_as_false(cls, value: Any) -> Any:
        return bool(value)

    def current_round_record(self) -> Optional[Round]:
        """Return the linked Round whose number matches ``current_round``."""
        for round_ in self.rounds:
            if round_.round_number == self.current_round:
                return round_
        return None

    def has_submitted(self, player_id: str) -> bool:
        return player_id in self.submitted_players
