# Area: Shared
"""
party_rounds._shared.logging_config — Structured logging setup
==============================================================

Configures dual logging: terminal (colored) + file (JSON).
Provides the structured log for rejected store transactions.
"""

from __future__ import annotations
import logging
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..errors import TransactionError

# Package logger
logger = logging.getLogger("party_rounds")


class TerminalFormatter(logging.Formatter):
    """Colored formatter for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class JSONFormatter(logging.Formatter):
    """JSON formatter for file output."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        game_code = getattr(record, "game_code", None)
        if game_code:
            log_data["game_code"] = game_code
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def setup_logging(
    log_file_path: str = "party_rounds.log",
    level: int = logging.INFO,
) -> None:
    """
    Configure logging for the package.

    Parameters
    ----------
    log_file_path : str
        Path to the log file. Defaults to 'party_rounds.log' in current dir.
        An empty string disables the file handler.
    level : int
        Logging level. Defaults to INFO.
    """
    pkg_logger = logging.getLogger("party_rounds")
    pkg_logger.setLevel(level)

    # Remove existing handlers
    pkg_logger.handlers.clear()

    # Terminal handler with colors
    terminal_handler = logging.StreamHandler(sys.stdout)
    terminal_handler.setLevel(level)
    terminal_handler.setFormatter(TerminalFormatter(
        fmt="%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    ))
    pkg_logger.addHandler(terminal_handler)

    # File handler with JSON
    if log_file_path:
        try:
            log_path = Path(log_file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(JSONFormatter())
            pkg_logger.addHandler(file_handler)
        except OSError as e:
            pkg_logger.warning(f"Could not create log file: {e}")

    # Prevent propagation to root logger
    pkg_logger.propagate = False


def log_transaction_error(error: "TransactionError", game_code: str = "") -> None:
    """
    Log a rejected transaction in the structured format.

    The formatted block goes to the debug log; a one-line warning is
    always emitted.

    Parameters
    ----------
    error : TransactionError
        The rejected transaction.
    game_code : str
        Game the transaction belonged to, for the JSON log.
    """
    logger.warning(
        f"Transaction rejected, retrying next tick: {error.reason}",
        extra={"game_code": game_code},
    )
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(error.format_error_log(), extra={"game_code": game_code})
