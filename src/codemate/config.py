"""Environment-driven settings and platform-aware data paths."""

import os
import sys
from pathlib import Path

DEFAULT_MODEL = "claude-3-7-sonnet-20250219"
DEFAULT_API_URL = "http://127.0.0.1:8080"


def get_api_key() -> str | None:
    """Return the Anthropic API key, if one is configured."""
    return os.environ.get("ANTHROPIC_API_KEY") or os.environ.get("CLAUDE_API_KEY")


def get_model() -> str:
    """Return the model name used for every vendor call."""
    return os.environ.get("CODEMATE_MODEL") or DEFAULT_MODEL


def get_api_url() -> str:
    """Return the base URL the assistant gateway talks to."""
    return (os.environ.get("CODEMATE_API_URL") or DEFAULT_API_URL).rstrip("/")


def get_data_dir() -> Path:
    """Return the directory holding codemate's local data."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "codemate"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "codemate"
    else:  # Linux
        return Path.home() / ".local" / "share" / "codemate"


def get_db_path() -> Path:
    """Return the path to the SQLite database."""
    env = os.environ.get("CODEMATE_DB_PATH")
    if env:
        return Path(env)

    return get_data_dir() / "codemate.db"
