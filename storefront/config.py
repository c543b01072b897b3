"""
Configuration management for the storefront client.

Handles persistent configuration including:
- Backend API base URL and request timeouts
- Which session store persists the login between restarts
- The role name that marks administrators

Config is stored in config.json next to the project root. Environment
variables (optionally loaded from a .env file) take priority over it.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from storefront.paths import get_config_path, get_session_path

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT = 30.0
LOGOUT_TIMEOUT = 10.0
DEFAULT_STORE = "nicegui"
DEFAULT_ADMIN_ROLE = "admin"

# config.json key -> environment variable
ENV_KEYS = {
    "api_url": "STOREFRONT_API_URL",
    "request_timeout": "STOREFRONT_REQUEST_TIMEOUT",
    "session_store": "STOREFRONT_SESSION_STORE",
    "session_path": "STOREFRONT_SESSION_PATH",
    "admin_role": "STOREFRONT_ADMIN_ROLE",
    "storage_secret": "STOREFRONT_STORAGE_SECRET",
}


@dataclass(frozen=True)
class Settings:
    """Resolved client settings."""
    api_url: str = DEFAULT_API_URL
    request_timeout: float = DEFAULT_TIMEOUT
    session_store: str = DEFAULT_STORE
    session_path: Path = None
    admin_role: str = DEFAULT_ADMIN_ROLE
    storage_secret: Optional[str] = None


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            return {}
    return {}


def get_value(key: str, config: Optional[dict] = None) -> Optional[str]:
    """
    Get a single configuration value.

    Priority:
    1. Environment variable (see ENV_KEYS)
    2. Stored in config.json
    """
    env_value = os.environ.get(ENV_KEYS[key])
    if env_value:
        return env_value

    if config is None:
        config = load_config()
    return config.get(key)


def load_settings(config_path: Optional[Path] = None, use_dotenv: bool = True) -> Settings:
    """
    Resolve Settings from .env, the environment and config.json.

    Args:
        config_path: Override the config.json location
        use_dotenv: Load a .env file into the environment first

    Returns:
        Frozen Settings instance
    """
    if use_dotenv:
        load_dotenv()

    config = load_config(config_path)

    timeout = get_value("request_timeout", config)
    try:
        timeout = float(timeout) if timeout is not None else DEFAULT_TIMEOUT
    except (TypeError, ValueError):
        logger.warning(f"Invalid request_timeout {timeout!r}, using {DEFAULT_TIMEOUT}")
        timeout = DEFAULT_TIMEOUT

    session_path = get_value("session_path", config)

    return Settings(
        api_url=(get_value("api_url", config) or DEFAULT_API_URL).rstrip("/"),
        request_timeout=timeout,
        session_store=(get_value("session_store", config) or DEFAULT_STORE).lower(),
        session_path=Path(session_path) if session_path else get_session_path(),
        admin_role=get_value("admin_role", config) or DEFAULT_ADMIN_ROLE,
        storage_secret=get_value("storage_secret", config),
    )
