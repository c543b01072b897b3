"""
Path utilities for the storefront client.

config.json and the persisted session file live in the project root,
next to app.py.
"""

from pathlib import Path


def get_app_dir() -> Path:
    """Get the application directory (the parent of storefront/)."""
    return Path(__file__).parent.parent


def get_config_path() -> Path:
    """Get the path to the config file (API URL, session store, etc.)."""
    return get_app_dir() / "config.json"


def get_session_path() -> Path:
    """Get the default path of the persisted session record."""
    return get_app_dir() / "session.json"
