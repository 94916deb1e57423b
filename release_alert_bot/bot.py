#!/usr/bin/env python3
"""
Release Bot Runner
Single-threaded loop that long-polls Telegram for messages, answers them one
at a time, and runs the release notifier on a fixed schedule.
"""

import logging
import signal
import time
from typing import Dict, Optional

import schedule

from .conversation import ConversationHandler
from .errors import ReleaseBotError
from .notifier import ReleaseNotifier
from .subscription_store import DEFAULT_RETENTION_DAYS, SubscriptionStore
from .telegram_client import POLL_TIMEOUT_SECONDS, TelegramClient

APOLOGY_TEXT = "Sorry, something went wrong 😕 Please try again later."

# Pause after a failed getUpdates call before polling again
POLL_ERROR_DELAY_SECONDS = 5

# Display constants
LOG_SEPARATOR_WIDTH = 60


class ReleaseBot:
    """Wires Telegram updates to the conversation handler and the notifier"""

    def __init__(
        self,
        telegram: TelegramClient,
        handler: ConversationHandler,
        notifier: ReleaseNotifier,
        store: SubscriptionStore,
        interval_minutes: int = 60,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        poll_timeout: int = POLL_TIMEOUT_SECONDS,
    ):
        self.telegram = telegram
        self.handler = handler
        self.notifier = notifier
        self.store = store
        self.interval_minutes = interval_minutes
        self.retention_days = retention_days
        self.poll_timeout = poll_timeout
        self.offset: Optional[int] = None
        self.shutdown_requested = False
        self.logger = logging.getLogger("ReleaseBot")

    def handle_update(self, update: Dict) -> bool:
        """
        Answer a single Telegram update

        Failures are contained to this update: the user gets an apology and
        the loop carries on.

        Returns:
            True if a reply was sent successfully
        """
        message = update.get("message") or {}
        text = str(message.get("text") or "").strip()
        chat_id = (message.get("chat") or {}).get("id")

        if not text or chat_id is None:
            return False

        try:
            reply = self.handler.handle(chat_id, text)
            self.telegram.send_message(chat_id, reply.text, parse_mode=reply.parse_mode)
            return True

        except ReleaseBotError as e:
            self.logger.error(
                f"Failed to handle message from chat {chat_id}: {e}", exc_info=True
            )
            try:
                self.telegram.send_message(chat_id, APOLOGY_TEXT)
            except ReleaseBotError as send_error:
                self.logger.error(f"Failed to send apology to chat {chat_id}: {send_error}")
            return False

    def poll_once(self) -> int:
        """
        Fetch and process one batch of updates

        Returns:
            Number of updates received
        """
        updates = self.telegram.get_updates(offset=self.offset, timeout=self.poll_timeout)

        for update in updates:
            # Acknowledge every update, failed ones included, so none is replayed
            self.offset = int(update["update_id"]) + 1
            self.handle_update(update)

        return len(updates)

    def run_notifier(self) -> Optional[Dict[str, int]]:
        """
        Run one notifier pass followed by retention cleanup

        Returns:
            Notifier statistics, or None if the pass failed
        """
        self.logger.info("🔔 Running release notifier...")
        try:
            now = self.notifier.clock()
            stats = self.notifier.run(now=now)
            self.store.cleanup_released(retention_days=self.retention_days, now=now)
            return stats
        except ReleaseBotError as e:
            self.logger.error(f"❌ Notifier pass failed: {e}", exc_info=True)
            return None

    def run_forever(self):
        """
        Run the bot until SIGINT/SIGTERM

        Notifications are scheduled with the schedule library and checked
        between long-poll requests.
        """

        def signal_handler(signum, frame):
            """Handle graceful shutdown on SIGINT/SIGTERM"""
            self.logger.info("\n🛑 Shutdown signal received, stopping after current poll...")
            self.shutdown_requested = True

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        me = self.telegram.get_me()
        self.telegram.delete_webhook()

        schedule.every(self.interval_minutes).minutes.do(self.run_notifier)

        self.logger.info("=" * LOG_SEPARATOR_WIDTH)
        self.logger.info(f"🚀 RELEASE BOT STARTED as @{me.get('username', '?')}")
        self.logger.info(f"⏰ Notifier interval: every {self.interval_minutes} minutes")
        self.logger.info(f"🧹 Retention: {self.retention_days} days after release")
        self.logger.info("=" * LOG_SEPARATOR_WIDTH)

        # Run immediately on startup
        self.run_notifier()

        while not self.shutdown_requested:
            schedule.run_pending()
            try:
                self.poll_once()
            except ReleaseBotError as e:
                self.logger.error(f"Polling failed: {e}")
                time.sleep(POLL_ERROR_DELAY_SECONDS)

        schedule.clear()
        self.logger.info("👋 Bot shutting down gracefully")
