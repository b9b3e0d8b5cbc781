# Area: Shared Tests
"""Tests for logging setup and structured transaction error logs."""

import json
import logging

import pytest

from party_rounds._shared.logging_config import (
    JSONFormatter,
    TerminalFormatter,
    log_transaction_error,
    setup_logging,
)
from party_rounds._store.operations import GAMES, UpdateRecord
from party_rounds.errors import TransactionError


@pytest.fixture
def pkg_logger():
    logger = logging.getLogger("party_rounds")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def make_record(msg="hello", **extra):
    record = logging.LogRecord("party_rounds.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(make_record(game_code="ABCD")))
        assert data["level"] == "INFO"
        assert data["logger"] == "party_rounds.test"
        assert data["message"] == "hello"
        assert data["game_code"] == "ABCD"

    def test_terminal_formatter_restores_levelname(self):
        record = make_record()
        output = TerminalFormatter(fmt="%(levelname)s %(message)s").format(record)
        assert "INFO" in output
        assert record.levelname == "INFO"


class TestSetupLogging:
    def test_terminal_only(self, pkg_logger):
        setup_logging(log_file_path="", level=logging.DEBUG)
        assert len(pkg_logger.handlers) == 1
        assert pkg_logger.level == logging.DEBUG
        assert pkg_logger.propagate is False

    def test_file_handler_writes_json(self, pkg_logger, tmp_path):
        path = tmp_path / "logs" / "party.log"
        setup_logging(log_file_path=str(path))

        logging.getLogger("party_rounds.test").info("written", extra={"game_code": "ABCD"})
        for handler in pkg_logger.handlers:
            handler.flush()

        line = json.loads(path.read_text().splitlines()[-1])
        assert line["message"] == "written"
        assert line["game_code"] == "ABCD"


class TestTransactionErrorLog:
    def test_warning_and_debug_block(self, pkg_logger, caplog):
        pkg_logger.propagate = True
        error = TransactionError(
            "database is locked",
            [UpdateRecord(GAMES, "g1", {"currentStage": "GAME"})],
        )
        with caplog.at_level(logging.DEBUG, logger="party_rounds"):
            log_transaction_error(error, "ABCD")

        messages = [r.getMessage() for r in caplog.records]
        assert any("database is locked" in m for m in messages)
        assert any("TRANSACTION_REJECTED" in m for m in messages)
