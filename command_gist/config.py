"""Hook settings from a TOML file."""

from pathlib import Path

import logging
import os
import sys
import tomllib

HOME = Path.home()
DEFAULT_CONFIG = HOME / ".config" / "command-gist" / "config.toml"
DEFAULT_LOG_FILE = HOME / ".claude" / "command-gist.log"

CONFIG_ENV_VAR = "COMMAND_GIST_CONFIG"

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG


def _load_config_file(path: Path) -> dict:
    """Load a config file. Returns parsed config or empty dict."""
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        print(f"Warning: Failed to load {path}: {e}", file=sys.stderr)
        return {}


def load_settings(path: Path | None = None) -> dict:
    """Return {"log_file": Path, "log_level": int} with defaults filled in."""
    if path is None:
        path = config_path()
    config = _load_config_file(path)
    section = config.get("logging", {})
    if not isinstance(section, dict):
        section = {}

    log_file = section.get("file")
    if isinstance(log_file, str) and log_file:
        log_file = Path(log_file).expanduser()
    else:
        log_file = DEFAULT_LOG_FILE

    level = section.get("level", "INFO")
    if not isinstance(level, str):
        level = "INFO"
    return {"log_file": log_file, "log_level": LEVELS.get(level.upper(), logging.INFO)}
