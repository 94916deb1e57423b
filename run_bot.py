#!/usr/bin/env python3
"""
Movie Release Alert Bot
Answers release queries on Telegram and notifies subscribers when a movie
they follow is about to come out.

Usage:
    python run_bot.py                  # run the bot with scheduled notifications
    python run_bot.py --notify-once    # single notifier pass (e.g. from cron)
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from release_alert_bot.bot import ReleaseBot
from release_alert_bot.config import DEFAULT_CONFIG_PATH, load_config, load_secrets
from release_alert_bot.conversation import ConversationHandler
from release_alert_bot.errors import ReleaseBotError
from release_alert_bot.movie_client import MovieQueryClient
from release_alert_bot.notifier import ReleaseNotifier
from release_alert_bot.record_store import SqliteRecordStore
from release_alert_bot.subscription_store import SubscriptionStore
from release_alert_bot.telegram_client import TelegramClient


def setup_logging(config: Dict):
    """Configure the root logger from the logging section of the config"""
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Remove existing handlers
    logger.handlers = []

    # Console handler
    console_handler = logging.StreamHandler()
    console_level = getattr(logging, config["logging"]["console_level"])
    console_handler.setLevel(console_level)
    console_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler (optional based on config)
    if config["logging"].get("enable_file_logging", False):
        log_dir = Path(config["logging"]["logs_dir"])
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"bot_{timestamp}.log"

        file_handler = logging.FileHandler(log_file)
        file_level = getattr(logging, config["logging"]["file_level"])
        file_handler.setLevel(file_level)
        file_format = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "%(funcName)s:%(lineno)d - %(message)s"
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)
        logger.info(f"Logging to: {log_file}")

    # Keep request-level chatter out of the console
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_bot(config: Dict, secrets: Dict[str, str], db_path: Optional[str] = None) -> ReleaseBot:
    """Construct every component from configuration"""
    record_store = SqliteRecordStore(db_path or config["storage"]["db_path"])
    store = SubscriptionStore(record_store)

    telegram = TelegramClient(
        secrets["telegram_bot_token"],
        api_base_url=config["telegram"]["api_base_url"],
        send_timeout=config["telegram"]["send_timeout_seconds"],
    )
    movie_client = MovieQueryClient(
        secrets["tmdb_api_key"],
        base_url=config["tmdb"]["base_url"],
        timeout=config["tmdb"]["timeout_seconds"],
    )

    handler = ConversationHandler(movie_client, store, region=config["region"])
    notifier = ReleaseNotifier(store, telegram)

    return ReleaseBot(
        telegram,
        handler,
        notifier,
        store,
        interval_minutes=config["notifier"]["interval_minutes"],
        retention_days=config["notifier"]["retention_days"],
        poll_timeout=config["telegram"]["poll_timeout_seconds"],
    )


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Run the movie release alert Telegram bot"
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Path to the release database (overrides storage.db_path)",
    )
    parser.add_argument(
        "--notify-once",
        action="store_true",
        help="Run a single notifier pass and exit",
    )

    args = parser.parse_args()

    config_path = args.config if Path(args.config).exists() else None
    config = load_config(config_path)
    setup_logging(config)
    logger = logging.getLogger("run_bot")

    if config_path is None:
        logger.warning(f"Config file {args.config} not found, using defaults")

    try:
        secrets = load_secrets(require_tmdb=not args.notify_once)
        bot = build_bot(config, secrets, db_path=args.db)
    except (ValueError, ReleaseBotError) as e:
        logger.error(f"❌ Startup failed: {e}")
        sys.exit(1)

    if args.notify_once:
        stats = bot.run_notifier()
        sys.exit(0 if stats is not None else 1)

    try:
        bot.run_forever()
    except ReleaseBotError as e:
        logger.error(f"❌ Bot stopped: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
