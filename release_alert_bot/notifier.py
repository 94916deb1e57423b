#!/usr/bin/env python3
"""
Release Notifier
Scans stored releases and tells each subscriber, exactly once, that a
movie they follow comes out within the next week.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from .errors import ReleaseBotError, TransportError
from .schema import MovieRelease, release_datetime
from .subscription_store import SubscriptionStore
from .telegram_client import TelegramClient

# Notification window
NOTIFY_WINDOW_DAYS = 7
SECONDS_PER_DAY = 24 * 60 * 60


class ReleaseNotifier:
    """One notification pass per run() call, triggered by a scheduler"""

    def __init__(
        self,
        store: SubscriptionStore,
        telegram: TelegramClient,
        clock: Optional[Callable[[], datetime]] = None,
        window_days: int = NOTIFY_WINDOW_DAYS,
    ):
        self.store = store
        self.telegram = telegram
        self.clock = clock or datetime.now
        self.window = timedelta(days=window_days)
        self.logger = logging.getLogger("ReleaseNotifier")

    def run(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Notify unnotified subscribers of releases inside the window

        Args:
            now: Reference time (default: the notifier's clock)

        Returns:
            Dictionary with statistics: records, in_window, sent, failed,
            skipped, errors
        """
        now = now or self.clock()
        stats = {
            "records": 0,
            "in_window": 0,
            "sent": 0,
            "failed": 0,
            "skipped": 0,
            "errors": 0,
        }

        releases = self.store.list_all()
        stats["records"] = len(releases)

        for release in releases:
            if not self.in_window(release, now):
                continue

            stats["in_window"] += 1

            try:
                self._notify_release(release, now, stats)
            except ReleaseBotError as e:
                stats["errors"] += 1
                self.logger.error(
                    f"Failed to process release {release.key} ({release.title}): {e}",
                    exc_info=True,
                )

        self.logger.info(
            f"Notifier pass done: {stats['in_window']}/{stats['records']} releases in window, "
            f"sent {stats['sent']}, failed {stats['failed']}, skipped {stats['skipped']}"
        )
        return stats

    def in_window(self, release: MovieRelease, now: datetime) -> bool:
        released_at = release_datetime(release.release_date)
        return now < released_at < now + self.window

    def _notify_release(self, release: MovieRelease, now: datetime, stats: Dict[str, int]):
        notified: List[int] = []
        text = notification_text(release, now)

        for sub in release.subscribers:
            if sub.notified:
                stats["skipped"] += 1
                continue

            try:
                self.telegram.send_message(sub.chat_id, text)
            except TransportError as e:
                # Stays unnotified, the next run retries
                stats["failed"] += 1
                self.logger.error(f"Failed to notify chat {sub.chat_id}: {e}")
                continue

            sub.notified = True
            notified.append(sub.chat_id)
            stats["sent"] += 1

        if notified:
            self.store.mark_notified(release.catalog_id, notified)
            self.logger.info(
                f"Notified {len(notified)} subscribers about {release.title}"
            )


def days_until(release: MovieRelease, now: datetime) -> int:
    """Whole days until release, rounded up"""
    remaining = release_datetime(release.release_date) - now
    return math.ceil(remaining.total_seconds() / SECONDS_PER_DAY)


def notification_text(release: MovieRelease, now: datetime) -> str:
    return f"{release.title} will be released in {days_until(release, now)} days."
