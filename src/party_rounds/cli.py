"""
party_rounds.cli — Command-line interface
=========================================

Runs one client against a SQLite store and logs what it would render.

Usage:
    python -m party_rounds --game-code ABCD --player alice --create --players alice,bob
    python -m party_rounds --game-code ABCD --player bob
    python -m party_rounds --config config.json

Settings can also come from environment variables (PARTY_GAME_CODE,
PARTY_PLAYER_ID, PARTY_DB_PATH, ...) or a .env file.
"""

import argparse
import logging
import sys
from typing import Any, Dict

from .errors import ConfigError, DuplicateGameCodeError, StoreError
from ._config import load_config, validate_config
from ._engine.lifecycle import RoundLifecycleManager
from ._shared import HistoryNavigator, JsonFileCache, MemoryCache, setup_logging
from ._store import SqliteRoundStore
from .controller import PlayController
from .types import RenderState

logger = logging.getLogger("party_rounds.cli")


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Party rounds - run one game client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m party_rounds --game-code ABCD --player alice --create --players alice,bob
  python -m party_rounds --game-code ABCD --player bob --db party.db
  PARTY_GAME_CODE=ABCD PARTY_PLAYER_ID=bob python -m party_rounds
        """,
    )
    parser.add_argument("--config", type=str, help="Path to JSON config file")
    parser.add_argument("--db", type=str, help="Path to the SQLite store")
    parser.add_argument("--game-code", type=str, help="Join code of the game")
    parser.add_argument("--player", type=str, help="This client's player id")
    parser.add_argument(
        "--create",
        action="store_true",
        help="Create the game before joining it",
    )
    parser.add_argument(
        "--players",
        type=str,
        default="",
        help="Comma-separated player ids for --create",
    )
    parser.add_argument("--theme", type=str, help="Round theme for --create")
    parser.add_argument("--prompt", type=str, help="Round prompt for --create")
    parser.add_argument(
        "--ticks",
        type=int,
        help="Stop after this many ticks (default: run until Ctrl+C)",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge CLI flags over file and environment config."""
    config = load_config(args.config)
    if args.db:
        config["db_path"] = args.db
    if args.game_code:
        config["game_code"] = args.game_code
    if args.player:
        config["player_id"] = args.player
    return config


def log_render(state: RenderState) -> None:
    """Log a render state change."""
    props = state["props"]
    if props is None:
        logger.info("Waiting for game...")
        return
    logger.info(
        f"{state['view'].value:<8} round {props['current_round']} "
        f"│ {props['time_left']:>2}s │ {props['theme']} / {props['prompt']}"
    )


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    try:
        config = build_config(args)
        validate_config(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Set via flags, config file or environment variables.", file=sys.stderr)
        return 1

    setup_logging(
        log_file_path=config["log_file"],
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    try:
        store = SqliteRoundStore(config["db_path"])
    except StoreError as e:
        logger.error(f"Cannot open store: {e}")
        return 1

    if args.create:
        players = [p.strip() for p in args.players.split(",") if p.strip()]
        manager = RoundLifecycleManager(
            store,
            durations=config["stage_durations"],
            fallback_theme=config["fallback_theme"],
            fallback_prompt=config["fallback_prompt"],
        )
        try:
            manager.create_game(config["game_code"], players, args.theme, args.prompt)
        except DuplicateGameCodeError as e:
            logger.info(f"{e}; joining the existing game")

    cache_path = config.get("answer_cache_path")
    cache = JsonFileCache(cache_path) if cache_path else MemoryCache()
    controller = PlayController(
        store,
        config["game_code"],
        config["player_id"],
        HistoryNavigator(),
        cache=cache,
        config=config,
        on_render=log_render,
    )
    try:
        controller.run(max_ticks=args.ticks)
    finally:
        store.close()
    return 0
