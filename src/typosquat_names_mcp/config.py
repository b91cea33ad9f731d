"""
Configuration for Typosquat Names MCP.

Settings lookup order:
1. Environment variable (TYPOSQUAT_CONCURRENCY, TYPOSQUAT_BATCH_SIZE, ...)
2. Config file (~/.config/typosquat-names-mcp/config.json)
3. Built-in default

Invalid values are ignored and the next source is used.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .concurrency import DEFAULT_CONCURRENCY
from .pipeline import DEFAULT_BATCH_SIZE
from .rdap_client import USER_AGENT

logger = logging.getLogger(__name__)

APP_NAME = "typosquat-names-mcp"

# Upper bounds so a typo in the config can't open thousands of sockets
MAX_CONCURRENCY = 200
MAX_BATCH_SIZE = 1000

# Setting name -> (environment variable, config file key)
SETTINGS = {
    "concurrency": ("TYPOSQUAT_CONCURRENCY", "concurrency"),
    "batch_size": ("TYPOSQUAT_BATCH_SIZE", "batch_size"),
    "user_agent": ("TYPOSQUAT_USER_AGENT", "user_agent"),
}

DEBUG_ENV_VAR = "TYPOSQUAT_DEBUG"


def get_config_dir() -> Path:
    """Get the config directory for this app."""
    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', Path.home()))
    else:  # macOS, Linux
        base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))

    return base / APP_NAME


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / 'config.json'


def load_config() -> dict[str, Any]:
    """Load the config file, returning {} if it is missing or unreadable."""
    config_file = get_config_file()
    try:
        if config_file.exists():
            config = json.loads(config_file.read_text())
            if isinstance(config, dict):
                return config
            logger.warning("Ignoring %s: top level is not an object", config_file)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not read %s: %s", config_file, e)
    return {}


def save_config(config: dict[str, Any]) -> bool:
    """Write the config file. Returns True on success."""
    try:
        config_dir = get_config_dir()
        config_dir.mkdir(parents=True, exist_ok=True)
        get_config_file().write_text(json.dumps(config, indent=2))
        return True
    except OSError:
        return False


def _raw_setting(name: str, config: dict[str, Any] | None) -> list[tuple[str, Any]]:
    """Candidate values for a setting, highest priority first, with their source."""
    env_var, key = SETTINGS[name]
    candidates = []
    if (value := os.environ.get(env_var)) is not None:
        candidates.append(("environment variable", value))
    config = load_config() if config is None else config
    if key in config:
        candidates.append(("config file", config[key]))
    return candidates


def _int_setting(name: str, default: int, maximum: int, config: dict[str, Any] | None) -> int:
    for source, value in _raw_setting(name, config):
        try:
            number = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring %s from %s: %r is not an integer", name, source, value)
            continue
        if 1 <= number <= maximum:
            return number
        logger.warning("Ignoring %s from %s: %d is outside 1..%d", name, source, number, maximum)
    return default


def get_concurrency(config: dict[str, Any] | None = None) -> int:
    """Maximum number of domains resolved at once."""
    return _int_setting("concurrency", DEFAULT_CONCURRENCY, MAX_CONCURRENCY, config)


def get_batch_size(config: dict[str, Any] | None = None) -> int:
    """Number of candidates dispatched per pipeline group."""
    return _int_setting("batch_size", DEFAULT_BATCH_SIZE, MAX_BATCH_SIZE, config)


def get_user_agent(config: dict[str, Any] | None = None) -> str:
    for _source, value in _raw_setting("user_agent", config):
        if isinstance(value, str) and value.strip():
            return value.strip()
    return USER_AGENT


def get_setting_source(name: str) -> str:
    """Where a setting currently comes from (for display purposes)."""
    candidates = _raw_setting(name, None)
    return candidates[0][0] if candidates else "default"


def is_debug() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, "").strip().lower() in ("1", "true", "yes", "on")


def configure_logging() -> None:
    """Log to stderr; stdout belongs to the MCP stdio transport."""
    logging.basicConfig(
        level=logging.DEBUG if is_debug() else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
