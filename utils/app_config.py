"""Runtime configuration. Zero imports from the rest of the app except constants.

Config lives in ~/.recurring/config.json. Environment variables override the
file, and command-line flags override both (see main.py).
"""
import json
import os
from pathlib import Path

from utils.constants import CLAIM_TTL_SECONDS, DB_FILE, DEFAULT_LOG_LEVEL

CONFIG_DIR = Path.home() / ".recurring"
CONFIG_FILE = CONFIG_DIR / "config.json"

ENV_DB_PATH = "RECURRING_DB_PATH"
ENV_LOG_LEVEL = "RECURRING_LOG_LEVEL"


def load_config(path: Path | None = None) -> dict:
    """Returns {} on missing or corrupt file — never raises."""
    try:
        with open(path or CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict, path: Path | None = None) -> None:
    """Creates the config dir if needed; atomic write via .tmp + os.replace()."""
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, target)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def get_db_path(config: dict | None = None) -> str:
    config = load_config() if config is None else config
    return os.environ.get(ENV_DB_PATH) or config.get("db_path") or DB_FILE


def get_log_level(config: dict | None = None) -> str:
    config = load_config() if config is None else config
    return (os.environ.get(ENV_LOG_LEVEL) or config.get("log_level") or DEFAULT_LOG_LEVEL).upper()


def get_claim_ttl(config: dict | None = None) -> int:
    config = load_config() if config is None else config
    try:
        return int(config.get("claim_ttl_seconds", CLAIM_TTL_SECONDS))
    except (TypeError, ValueError):
        return CLAIM_TTL_SECONDS
