#!/usr/bin/env python3
"""
Configuration Loading
Reads config.json, fills in defaults, and pulls secrets from the environment
(optionally from a .env file).
"""

import copy
import json
import os
from typing import Dict, Optional

from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "config.json"

DEFAULT_CONFIG = {
    "region": "DE",
    "tmdb": {
        "base_url": "https://api.themoviedb.org/3",
        "timeout_seconds": 10,
    },
    "telegram": {
        "api_base_url": "https://api.telegram.org",
        "poll_timeout_seconds": 30,
        "send_timeout_seconds": 30,
    },
    "notifier": {
        "interval_minutes": 60,
        "retention_days": 30,
    },
    "storage": {
        "db_path": "releases.db",
    },
    "logging": {
        "console_level": "INFO",
        "file_level": "DEBUG",
        "enable_file_logging": False,
        "logs_dir": "logs",
    },
}

# Environment variable names
TELEGRAM_TOKEN_ENV = "TELEGRAM_BOT_TOKEN"
TMDB_API_KEY_ENV = "THEMOVIEDB_API_KEY"


def load_config(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> Dict:
    """
    Load configuration from a JSON file on top of the defaults

    Args:
        config_path: Path to configuration file, or None for defaults only

    Returns:
        Merged configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        return config

    try:
        with open(config_path, "r") as f:
            overrides = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if not isinstance(overrides, dict):
        raise ValueError(f"Config file must contain a JSON object: {config_path}")

    return _merge(config, overrides)


def _merge(base: Dict, overrides: Dict) -> Dict:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_secrets(require_tmdb: bool = True) -> Dict[str, str]:
    """
    Read the bot token and TMDb API key from the environment

    A .env file in the working directory is loaded first if present; real
    environment variables take precedence.

    Args:
        require_tmdb: Fail if the TMDb API key is missing (the notifier
            alone does not need it)
    """
    load_dotenv()

    secrets = {
        "telegram_bot_token": os.getenv(TELEGRAM_TOKEN_ENV, "").strip(),
        "tmdb_api_key": os.getenv(TMDB_API_KEY_ENV, "").strip(),
    }

    missing = []
    if not secrets["telegram_bot_token"]:
        missing.append(TELEGRAM_TOKEN_ENV)
    if require_tmdb and not secrets["tmdb_api_key"]:
        missing.append(TMDB_API_KEY_ENV)
    if missing:
        raise ValueError(f"Missing environment variables: {', '.join(missing)}")

    return secrets
