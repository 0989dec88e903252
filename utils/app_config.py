"""Pre-DB bootstrap configuration. Zero imports from the rest of the app
except constants.

Two layers:
  * ~/.smartspend/config.json holds user preferences that must be known before
    the DB is opened (e.g. db_folder).
  * Process settings (admin secret, schedule time zone, run ceiling) come from
    the environment, with a local .env file loaded first.
"""
import json
import os
from pathlib import Path

from dotenv import load_dotenv

from utils.constants import DB_FILE, DEFAULT_TIMEZONE, DAILY_RUN_TIMEOUT_SECONDS

CONFIG_DIR = Path.home() / ".smartspend"
CONFIG_FILE = CONFIG_DIR / "config.json"

load_dotenv()


def load_config() -> dict:
    """Returns {} on missing or corrupt file; never raises."""
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return {}


def get_db_folder() -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config().get("db_folder")


def get_db_path() -> str:
    """SMARTSPEND_DB_PATH wins; otherwise DB_FILE inside the configured folder."""
    explicit = os.getenv("SMARTSPEND_DB_PATH")
    if explicit:
        return explicit
    folder = get_db_folder()
    return os.path.join(folder, DB_FILE) if folder else DB_FILE


def get_admin_secret() -> str | None:
    return os.getenv("ADMIN_SECRET") or None


def get_timezone() -> str:
    return os.getenv("SMARTSPEND_TIMEZONE", DEFAULT_TIMEZONE)


def get_run_timeout() -> float:
    raw = os.getenv("SMARTSPEND_RUN_TIMEOUT")
    if not raw:
        return float(DAILY_RUN_TIMEOUT_SECONDS)
    try:
        return float(raw)
    except ValueError:
        return float(DAILY_RUN_TIMEOUT_SECONDS)


def get_log_level() -> str:
    return os.getenv("SMARTSPEND_LOG_LEVEL", "INFO").upper()
