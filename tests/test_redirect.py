# Area: Engine Tests
"""Tests for redirect synchronization."""

import os
import tempfile
from unittest.mock import MagicMock

import pytest

from party_rounds._engine.lifecycle import RoundLifecycleManager
from party_rounds._engine.models import Game
from party_rounds._engine.redirect import RedirectSync
from party_rounds._shared.navigation import HistoryNavigator
from party_rounds._store.operations import GAMES, UpdateRecord
from party_rounds._store.sqlite_store import SqliteRoundStore
from party_rounds.errors import TransactionError


class TestRedirectSync:
    """Tests for RedirectSync against a real store."""

    @pytest.fixture
    def db_path(self):
        fd, path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        yield path
        os.unlink(path)

    @pytest.fixture
    def store(self, db_path):
        store = SqliteRoundStore(db_path)
        RoundLifecycleManager(store).create_game("ABCD", ["alice", "bob"])
        return store

    def publish(self, store, path, version):
        game = store.get_game("ABCD")
        store.transact([UpdateRecord(GAMES, game.id, {
            "shouldRedirect": True, "redirectTo": path, "redirectVersion": version,
        })])
        return store.get_game("ABCD")

    def test_no_redirect_pending(self, store):
        sync = RedirectSync(store, HistoryNavigator())
        assert sync.observe(store.get_game("ABCD")) is None
        assert sync.observe(None) is None

    def test_observe_navigates_then_clears(self, store):
        navigator = HistoryNavigator()
        sync = RedirectSync(store, navigator)
        game = self.publish(store, "/game/ABCD/play/r2", 1)

        assert sync.observe(game) == "/game/ABCD/play/r2"

        assert navigator.location == "/game/ABCD/play/r2"
        assert sync.last_version == 1
        cleared = store.get_game("ABCD")
        assert cleared.should_redirect is False
        assert cleared.redirect_to is None
        assert cleared.redirect_version == 1

    def test_same_version_consumed_once(self, store):
        navigator = HistoryNavigator()
        sync = RedirectSync(store, navigator)
        game = self.publish(store, "/game/ABCD/play/r2", 1)

        sync.observe(game)
        navigator.navigate_to("/elsewhere")

        assert sync.observe(game) is None
        assert navigator.location == "/elsewhere"

    def test_every_client_navigates_even_after_clear(self, store):
        first, second = HistoryNavigator(), HistoryNavigator()
        game = self.publish(store, "/game/ABCD/play/r2", 1)

        RedirectSync(store, first).observe(game)
        RedirectSync(store, second).observe(game)

        assert first.location == second.location == "/game/ABCD/play/r2"

    def test_stale_clear_keeps_newer_redirect(self, store):
        old = self.publish(store, "/game/ABCD/play/r2", 1)
        self.publish(store, "/game/ABCD/play/r3", 2)

        RedirectSync(store, HistoryNavigator()).observe(old)

        game = store.get_game("ABCD")
        assert game.should_redirect is True
        assert game.redirect_to == "/game/ABCD/play/r3"

    def test_follow_current_round(self, store):
        navigator = HistoryNavigator()
        sync = RedirectSync(store, navigator)
        game = store.get_game("ABCD")
        expected = f"/game/ABCD/play/{game.rounds[0].id}"

        assert sync.follow_current_round(game) == expected
        assert sync.follow_current_round(game) is None
        assert navigator.history == [expected]

    def test_follow_current_round_waits_for_pending_redirect(self, store):
        sync = RedirectSync(store, HistoryNavigator())
        game = self.publish(store, "/game/ABCD/play/r2", 1)
        assert sync.follow_current_round(game) is None


class TestRedirectSyncClearFailure:
    """A failed clear never raises."""

    def test_clear_failure_is_absorbed(self):
        store = MagicMock()
        store.transact.side_effect = TransactionError("offline")
        navigator = HistoryNavigator()
        game = Game.model_validate({
            "id": "g1", "gameCode": "ABCD", "shouldRedirect": True,
            "redirectTo": "/game/ABCD/play/r2", "redirectVersion": 1,
        })

        assert RedirectSync(store, navigator).observe(game) == "/game/ABCD/play/r2"
        assert navigator.location == "/game/ABCD/play/r2"
