#!/usr/bin/env python3
"""
Schema Definitions
Centralized dataclasses and enums used across the Release Alert Bot.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Dict, List, Optional


RELEASE_DATE_FORMAT = "%Y-%m-%d"


# Enums
class CommandIntent(StrEnum):
    """String enum for recognized chat commands"""

    RELEASE_QUERY_WITH_YEAR = "release-query-with-year"
    RELEASE_QUERY = "release-query"
    SUBSCRIBE = "subscribe"
    LIST_SUBSCRIPTIONS = "list-subscriptions"


# Conversation-related dataclasses
@dataclass
class ParsedCommand:
    """A chat message matched against the command grammar"""
    intent: CommandIntent
    exact: bool = False
    title: str = ''
    year: Optional[str] = None


@dataclass
class Reply:
    """Text to send back to a chat"""
    text: str
    parse_mode: Optional[str] = None


# Catalog-related dataclasses
@dataclass
class MovieCandidate:
    """Represents a single movie search result from the catalog"""

    title: str
    catalog_id: int
    release_date: Optional[date] = None

    def is_upcoming(self, now: datetime) -> bool:
        """Check if the release date is strictly in the future"""
        if self.release_date is None:
            return False
        return release_datetime(self.release_date) > now


# Subscription-related dataclasses
@dataclass
class Subscriber:
    """A chat subscribed to a movie release"""
    chat_id: int
    notified: bool = False


@dataclass
class MovieRelease:
    """Represents a stored movie release with its subscribers"""

    catalog_id: int
    title: str
    release_date: date
    subscribers: List[Subscriber] = field(default_factory=list)

    @property
    def key(self) -> str:
        return record_key(self.catalog_id)

    def has_subscriber(self, chat_id: int) -> bool:
        return any(sub.chat_id == chat_id for sub in self.subscribers)

    def add_subscriber(self, chat_id: int) -> bool:
        """
        Append a new unnotified subscriber

        Args:
            chat_id: Telegram chat ID of the subscriber

        Returns:
            True if added, False if the chat was already subscribed
        """
        if self.has_subscriber(chat_id):
            return False
        self.subscribers.append(Subscriber(chat_id=chat_id, notified=False))
        return True

    def to_record(self) -> Dict:
        """Serialize into the persisted record layout"""
        return {
            "id": self.catalog_id,
            "title": self.title,
            "releaseDate": self.release_date.strftime(RELEASE_DATE_FORMAT),
            "subscribers": [
                {"chatID": sub.chat_id, "notified": sub.notified}
                for sub in self.subscribers
            ],
        }

    @classmethod
    def from_record(cls, record: Dict) -> "MovieRelease":
        """Build a release from its persisted record layout"""
        return cls(
            catalog_id=int(record["id"]),
            title=record["title"],
            release_date=datetime.strptime(
                record["releaseDate"], RELEASE_DATE_FORMAT
            ).date(),
            subscribers=[
                Subscriber(
                    chat_id=int(sub["chatID"]),
                    notified=bool(sub.get("notified", False)),
                )
                for sub in record.get("subscribers", [])
            ],
        )

    @classmethod
    def from_candidate(cls, candidate: MovieCandidate) -> "MovieRelease":
        """Seed a release (without subscribers) from a dated search result"""
        if candidate.release_date is None:
            raise ValueError(f"Candidate has no release date: {candidate.title}")
        return cls(
            catalog_id=candidate.catalog_id,
            title=candidate.title,
            release_date=candidate.release_date,
        )


def record_key(catalog_id: int) -> str:
    """Records are keyed by the stringified catalog identifier"""
    return str(catalog_id)


def release_datetime(release_date: date) -> datetime:
    """Midnight at the start of the release day"""
    return datetime(release_date.year, release_date.month, release_date.day)
