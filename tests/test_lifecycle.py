# Area: Engine Tests
"""Tests for stage completion and round creation."""

import os
import tempfile
from unittest.mock import MagicMock, patch

import pytest

from party_rounds._engine.enums import Stage
from party_rounds._engine.lifecycle import (
    FALLBACK_PROMPT,
    FALLBACK_THEME,
    RoundLifecycleManager,
    new_round_fields,
    plan_stage_completion,
    round_path,
)
from party_rounds._engine.models import Game
from party_rounds._engine.timer import compute_remaining
from party_rounds._store.operations import (
    GAMES,
    ROUNDS,
    CreateRecord,
    LinkRecords,
    UpdateRecord,
)
from party_rounds._store.sqlite_store import SqliteRoundStore
from party_rounds.errors import DuplicateGameCodeError, TransactionError

MOCK_TIME = "party_rounds._engine.timer.time"
T = 1_700_000_000_000


def snapshot(**fields):
    data = {"id": "g1", "gameCode": "ABCD", "currentStage": "GAME",
            "currentRound": 1, "timerStart": T, "timeLeft": 30,
            "isTimerRunning": True, "theme": "Pirates", "prompt": "BBL"}
    data.update(fields)
    return Game.model_validate(data)


class TestPlanStageCompletion:
    """Tests for the pure planner."""

    def test_ordinary_transition_is_one_guarded_update(self):
        batches = plan_stage_completion(snapshot(), now=T + 31_000)

        assert len(batches) == 1
        [op] = batches[0]
        assert isinstance(op, UpdateRecord)
        assert op.fields == {"currentStage": "VOTING", "timerStart": T + 31_000,
                             "timeLeft": 15, "isTimerRunning": True}
        assert op.expect == {"currentStage": "GAME", "timerStart": T}

    def test_duration_override(self):
        batches = plan_stage_completion(snapshot(currentStage="PREP"), now=T,
                                        durations={"GAME": 45})
        assert batches[0][0].fields["timeLeft"] == 45

    def test_results_requires_round_id(self):
        with pytest.raises(ValueError):
            plan_stage_completion(snapshot(currentStage="RESULTS"), now=T)

    def test_results_creates_round_then_redirects(self):
        game = snapshot(currentStage="RESULTS", currentRound=1, redirectVersion=4)

        create, redirect = plan_stage_completion(game, now=T, round_id="r2")

        assert [type(op) for op in create] == [CreateRecord, LinkRecords, UpdateRecord]
        new_round, link, update = create
        assert new_round.collection == ROUNDS
        assert new_round.fields["roundNumber"] == 2
        assert new_round.fields["answers"] == []
        assert new_round.fields["votes"] == []
        assert link == LinkRecords(GAMES, "g1", ROUNDS, "r2")
        assert update.fields["currentRound"] == 2
        assert update.fields["currentStage"] == "PREP"
        assert update.fields["timeLeft"] == 5
        assert update.fields["answers"] == []
        assert update.fields["submittedPlayers"] == []
        assert update.expect == {"currentStage": "RESULTS", "timerStart": T}

        [publish] = redirect
        assert publish.fields == {"shouldRedirect": True,
                                  "redirectTo": "/game/ABCD/play/r2",
                                  "redirectVersion": 5}

    def test_custom_redirect_template(self):
        _, redirect = plan_stage_completion(
            snapshot(currentStage="RESULTS"), now=T, round_id="r2",
            redirect_template="/rooms/{game_code}/{round_id}",
        )
        assert redirect[0].fields["redirectTo"] == "/rooms/ABCD/r2"


class TestNewRoundFields:
    """Tests for new_round_fields()."""

    def test_copies_game_content(self):
        fields = new_round_fields(snapshot(), 3)
        assert fields["theme"] == "Pirates"
        assert fields["prompt"] == "BBL"
        assert fields["gameId"] == "g1"

    def test_falls_back_when_game_has_no_content(self):
        fields = new_round_fields(snapshot(theme=None, prompt=None), 2)
        assert fields["theme"] == FALLBACK_THEME
        assert fields["prompt"] == FALLBACK_PROMPT

    def test_round_path(self):
        assert round_path("ABCD", "r9") == "/game/ABCD/play/r9"


class TestRoundLifecycleManager:
    """Tests for complete_stage() and create_game() against a real store."""

    @pytest.fixture
    def db_path(self):
        fd, path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        yield path
        os.unlink(path)

    @pytest.fixture
    def store(self, db_path):
        return SqliteRoundStore(db_path)

    @pytest.fixture
    def manager(self, store):
        return RoundLifecycleManager(store)

    def create(self, manager, **stage_fields):
        with patch(MOCK_TIME) as mock_time:
            mock_time.time.return_value = T / 1000
            manager.create_game("ABCD", ["alice", "bob"], "Pirates", "BBL")
        game = manager.store.get_game("ABCD")
        if stage_fields:
            manager.store.transact([UpdateRecord(GAMES, game.id, stage_fields)])
            game = manager.store.get_game("ABCD")
        return game

    def test_create_game_starts_in_prep_with_round_one(self, manager):
        game = self.create(manager)

        assert game.current_stage is Stage.PREP
        assert game.current_round == 1
        assert game.timer_start == T
        assert game.time_left == 5
        assert game.is_timer_running is True
        assert [r.round_number for r in game.rounds] == [1]
        assert game.rounds[0].theme == "Pirates"

    def test_create_game_rejects_duplicate_code(self, manager):
        self.create(manager)
        with pytest.raises(DuplicateGameCodeError):
            manager.create_game("ABCD", ["carol"])

    def test_game_expiry_moves_to_voting(self, manager, store):
        game = self.create(manager, currentStage="GAME", timeLeft=30)
        assert compute_remaining(game, T + 31_000) == 0

        with patch(MOCK_TIME) as mock_time:
            mock_time.time.return_value = (T + 31_000) / 1000
            transition = manager.complete_stage(game)

        assert transition.from_stage is Stage.GAME
        assert transition.to_stage is Stage.VOTING
        assert transition.new_round is False
        game = store.get_game("ABCD")
        assert game.current_stage is Stage.VOTING
        assert game.timer_start == T + 31_000
        assert game.time_left == 15
        assert game.is_timer_running is True

    def test_results_starts_round_two(self, manager, store):
        game = self.create(manager, currentStage="RESULTS", timeLeft=10,
                           answers=["Arr"], submittedPlayers=["alice"])

        with patch(MOCK_TIME) as mock_time:
            mock_time.time.return_value = (T + 60_000) / 1000
            transition = manager.complete_stage(game)

        assert transition.new_round is True
        assert transition.round_number == 2
        assert transition.redirect_published is True
        game = store.get_game("ABCD")
        assert game.current_stage is Stage.PREP
        assert game.current_round == 2
        assert game.time_left == 5
        assert game.timer_start == T + 60_000
        assert game.answers == []
        assert game.submitted_players == []
        assert game.should_redirect is True
        assert game.redirect_to == f"/game/ABCD/play/{transition.round_id}"
        assert game.redirect_version == 1
        new_round = game.current_round_record()
        assert new_round.id == transition.round_id
        assert new_round.round_number == 2
        assert new_round.answers == []
        assert new_round.submitted_players == []
        assert new_round.votes == []

    def test_stale_snapshot_is_a_noop(self, manager, store):
        game = self.create(manager, currentStage="RESULTS")

        first = manager.complete_stage(game)
        second = manager.complete_stage(game)

        assert first is not None
        assert second is None
        game = store.get_game("ABCD")
        assert game.current_round == 2
        assert [r.round_number for r in game.rounds] == [1, 2]

    def test_concurrent_prep_completions_leave_one_timer(self, manager, store):
        game = self.create(manager)

        with patch(MOCK_TIME) as mock_time:
            mock_time.time.return_value = (T + 5_000) / 1000
            first = RoundLifecycleManager(store).complete_stage(game)
            mock_time.time.return_value = (T + 5_400) / 1000
            second = RoundLifecycleManager(store).complete_stage(game)

        assert first is not None and second is None
        game = store.get_game("ABCD")
        assert game.current_stage is Stage.GAME
        assert game.timer_start == T + 5_000
        assert game.time_left == 30


class TestRoundLifecycleManagerFailures:
    """Tests for store failures during completion."""

    def test_rejected_round_creation_issues_no_redirect(self):
        store = MagicMock()
        store.generate_id.return_value = "r2"
        store.transact.side_effect = TransactionError("timeout")
        manager = RoundLifecycleManager(store)

        with pytest.raises(TransactionError):
            manager.complete_stage(snapshot(currentStage="RESULTS"))

        assert store.transact.call_count == 1

    def test_failed_redirect_is_reported(self):
        store = MagicMock()
        store.generate_id.return_value = "r2"
        store.transact.side_effect = [None, TransactionError("timeout")]
        manager = RoundLifecycleManager(store)

        transition = manager.complete_stage(snapshot(currentStage="RESULTS"))

        assert transition.round_id == "r2"
        assert transition.redirect_to == "/game/ABCD/play/r2"
        assert transition.redirect_published is False
