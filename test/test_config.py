#!/usr/bin/env python3
"""
Test suite for configuration loading.
"""

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))

from release_alert_bot.config import DEFAULT_CONFIG, load_config, load_secrets


class TestLoadConfig(unittest.TestCase):
    """Test cases for load_config"""

    def setUp(self):
        """Set up a temporary directory for config files"""
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.config_path = Path(self.tmp_dir.name) / "config.json"

    def tearDown(self):
        """Clean up temporary files"""
        self.tmp_dir.cleanup()

    def test_defaults_without_file(self):
        """Test that None yields a copy of the defaults"""
        config = load_config(None)
        self.assertEqual(config, DEFAULT_CONFIG)
        config["notifier"]["interval_minutes"] = 1
        self.assertEqual(DEFAULT_CONFIG["notifier"]["interval_minutes"], 60)

    def test_nested_override_merged(self):
        """Test that file values override defaults section by section"""
        self.config_path.write_text(json.dumps({"region": "US", "notifier": {"interval_minutes": 15}}))
        config = load_config(str(self.config_path))
        self.assertEqual(config["region"], "US")
        self.assertEqual(config["notifier"]["interval_minutes"], 15)
        self.assertEqual(config["notifier"]["retention_days"], 30)

    def test_missing_file(self):
        """Test that a missing file raises FileNotFoundError"""
        with self.assertRaises(FileNotFoundError):
            load_config(str(self.config_path))

    def test_invalid_json(self):
        """Test that invalid JSON raises ValueError"""
        self.config_path.write_text("{not json")
        with self.assertRaises(ValueError):
            load_config(str(self.config_path))


class TestLoadSecrets(unittest.TestCase):
    """Test cases for load_secrets"""

    @patch("release_alert_bot.config.load_dotenv")
    def test_reads_environment(self, _load_dotenv):
        """Test that both secrets are read from the environment"""
        env = {"TELEGRAM_BOT_TOKEN": "tg", "THEMOVIEDB_API_KEY": "tmdb"}
        with patch.dict(os.environ, env, clear=True):
            secrets = load_secrets()
        self.assertEqual(secrets, {"telegram_bot_token": "tg", "tmdb_api_key": "tmdb"})

    @patch("release_alert_bot.config.load_dotenv")
    def test_missing_secret(self, _load_dotenv):
        """Test that a missing token is reported by name"""
        with patch.dict(os.environ, {"THEMOVIEDB_API_KEY": "tmdb"}, clear=True):
            with self.assertRaises(ValueError) as ctx:
                load_secrets()
        self.assertIn("TELEGRAM_BOT_TOKEN", str(ctx.exception))

    @patch("release_alert_bot.config.load_dotenv")
    def test_tmdb_optional_for_notifier(self, _load_dotenv):
        """Test that the notifier alone only needs the bot token"""
        with patch.dict(os.environ, {"TELEGRAM_BOT_TOKEN": "tg"}, clear=True):
            secrets = load_secrets(require_tmdb=False)
        self.assertEqual(secrets["tmdb_api_key"], "")


if __name__ == "__main__":
    unittest.main()
