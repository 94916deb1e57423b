#!/usr/bin/env python3
"""
Subscription Store
Maps a movie release to the chats subscribed to it. Subscribing and
notifier write-back are atomic read-modify-write transactions keyed by the
catalog identifier, so concurrent updates to one release are never lost.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from .errors import StoreError
from .record_store import RecordStore
from .schema import MovieRelease, record_key, release_datetime


# Retention configuration
DEFAULT_RETENTION_DAYS = 30


class SubscriptionStore:
    """Subscription operations on top of a RecordStore backend"""

    def __init__(self, record_store: RecordStore):
        """
        Initialize the subscription store

        Args:
            record_store: Backend providing get/put/scan and transactions
        """
        self.records = record_store
        self.logger = logging.getLogger("SubscriptionStore")

    def upsert_subscription(self, release: MovieRelease, chat_id: int) -> bool:
        """
        Subscribe a chat to a release in a single transaction

        Args:
            release: Freshly fetched release snapshot, used to seed the record
                when none is stored yet
            chat_id: Telegram chat ID of the subscriber

        Returns:
            True if a subscriber was added, False if the chat was already
            subscribed (nothing is written)

        Raises:
            StoreError: The transaction could not be completed
        """
        key = record_key(release.catalog_id)

        with self.records.transaction() as tx:
            record = tx.get(key)

            if record is None:
                stored = MovieRelease(
                    catalog_id=release.catalog_id,
                    title=release.title,
                    release_date=release.release_date,
                )
                self.logger.info(f"Creating release record: {key} ({release.title})")
            else:
                stored = _decode(record)

            if not stored.add_subscriber(chat_id):
                self.logger.info(f"Chat {chat_id} already subscribed to {key}")
                return False

            tx.put(key, stored.to_record())

        self.logger.info(f"Subscribed chat {chat_id} to {key} ({stored.title})")
        return True

    def get_release(self, catalog_id: int) -> Optional[MovieRelease]:
        record = self.records.get(record_key(catalog_id))
        return _decode(record) if record is not None else None

    def list_all(self) -> List[MovieRelease]:
        """
        Full unfiltered scan of every stored release

        Corrupt records are logged and skipped so they cannot hide the rest.
        """
        releases = []
        for key, record in self.records.scan_all():
            try:
                releases.append(_decode(record))
            except StoreError as e:
                self.logger.error(f"Skipping release record {key}: {e}")
        return releases

    def subscriptions_for(self, chat_id: int) -> List[MovieRelease]:
        """Releases the given chat is subscribed to"""
        return [
            release for release in self.list_all() if release.has_subscriber(chat_id)
        ]

    def mark_notified(
        self, catalog_id: int, chat_ids: Iterable[int]
    ) -> Optional[MovieRelease]:
        """
        Flag subscribers of a release as notified

        The record is re-read inside the transaction, so subscribers added
        since the notifier scanned it are kept.

        Args:
            catalog_id: Catalog identifier of the release
            chat_ids: Chats that have been sent their notification

        Returns:
            The updated release, or None if the record no longer exists
        """
        key = record_key(catalog_id)
        notified = set(chat_ids)

        with self.records.transaction() as tx:
            record = tx.get(key)
            if record is None:
                self.logger.warning(f"Release record disappeared: {key}")
                return None

            release = _decode(record)
            for sub in release.subscribers:
                if sub.chat_id in notified:
                    sub.notified = True

            tx.put(key, release.to_record())

        return release

    def cleanup_released(
        self, retention_days: int = DEFAULT_RETENTION_DAYS, now: Optional[datetime] = None
    ) -> int:
        """
        Remove releases that came out more than retention_days ago

        Args:
            retention_days: Number of days to keep a record after its release
            now: Reference time (default: current time)

        Returns:
            Number of records deleted
        """
        cutoff = (now or datetime.now()) - timedelta(days=retention_days)

        deleted_count = 0
        for release in self.list_all():
            if release_datetime(release.release_date) < cutoff:
                if self.records.delete(release.key):
                    deleted_count += 1
                    self.logger.debug(f"Deleted released record: {release.key}")

        if deleted_count > 0:
            self.logger.info(f"Cleaned up {deleted_count} released movie records")

        return deleted_count


def _decode(record: Dict) -> MovieRelease:
    try:
        return MovieRelease.from_record(record)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Corrupt release record: {record!r}") from e
