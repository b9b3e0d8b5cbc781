# Area: Shared
"""
party_rounds._config — Runner Configuration
===========================================

Defaults, validation and loading for PlayController configuration.

Configuration is a plain dict. ``load_config`` reads an optional JSON
file, then overlays environment variables (a ``.env`` file in the
working directory is loaded first).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ._engine.lifecycle import FALLBACK_PROMPT, FALLBACK_THEME, REDIRECT_TEMPLATE
from ._engine.stages import parse_stage
from .errors import ConfigError

logger = logging.getLogger("party_rounds")

DEFAULT_CONFIG: Dict[str, Any] = {
    "db_path": "party_rounds.db",
    "log_file": "party_rounds.log",
    "tick_interval_seconds": 1.0,
    "fallback_theme": FALLBACK_THEME,
    "fallback_prompt": FALLBACK_PROMPT,
    "redirect_template": REDIRECT_TEMPLATE,
    "stage_durations": {},
    "answer_cache_path": None,
}

# Required config keys for running a client
REQUIRED_CONFIG_KEYS = [
    "game_code",
    "player_id",
]

# {ENV_VAR: (config_key, converter)}
ENV_MAPPINGS = {
    "PARTY_GAME_CODE": ("game_code", str),
    "PARTY_PLAYER_ID": ("player_id", str),
    "PARTY_DB_PATH": ("db_path", str),
    "PARTY_LOG_FILE": ("log_file", str),
    "PARTY_TICK_INTERVAL": ("tick_interval_seconds", float),
    "PARTY_FALLBACK_THEME": ("fallback_theme", str),
    "PARTY_FALLBACK_PROMPT": ("fallback_prompt", str),
    "PARTY_ANSWER_CACHE": ("answer_cache_path", str),
}


def with_defaults(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return a copy of ``config`` with every missing key defaulted."""
    merged = dict(DEFAULT_CONFIG)
    merged.update(config or {})
    return merged


def validate_config(config: dict, require_identity: bool = True) -> None:
    """
    Validate configuration.

    Args:
        config: Configuration dict
        require_identity: Also require game_code and player_id

    Raises:
        ConfigError: If required keys are missing or values are malformed
    """
    if require_identity:
        missing = [k for k in REQUIRED_CONFIG_KEYS if not config.get(k)]
        if missing:
            raise ConfigError(f"Missing required config keys: {missing}")

    interval = config.get("tick_interval_seconds", 1.0)
    if not isinstance(interval, (int, float)) or interval <= 0:
        raise ConfigError(f"tick_interval_seconds must be positive, got {interval!r}")

    durations = config.get("stage_durations") or {}
    if not isinstance(durations, dict):
        raise ConfigError("stage_durations must be a mapping of stage to seconds")
    for stage, seconds in durations.items():
        if parse_stage(stage) is None:
            raise ConfigError(f"Unknown stage in stage_durations: {stage!r}")
        if not isinstance(seconds, int) or isinstance(seconds, bool) or seconds <= 0:
            raise ConfigError(f"Duration for {stage} must be a positive integer")

    template = config.get("redirect_template", REDIRECT_TEMPLATE)
    if "{round_id}" not in template:
        raise ConfigError("redirect_template must contain {round_id}")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load config from file and environment, with defaults applied."""
    load_dotenv()
    config: Dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, encoding="utf-8") as f:
                config = json.load(f)
        else:
            logger.warning(f"Config file not found: {config_path}")

    for env_key, (config_key, convert) in ENV_MAPPINGS.items():
        if env_key in os.environ:
            try:
                config[config_key] = convert(os.environ[env_key])
            except ValueError as e:
                raise ConfigError(f"Bad value for {env_key}: {e}") from e

    return with_defaults(config)
