#!/usr/bin/env python3
"""
Conversation Handler
Routes parsed chat commands to the movie catalog and the subscription store
and renders the reply text.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from .command_parser import parse_command
from .movie_client import MovieQueryClient, filter_exact
from .schema import CommandIntent, MovieCandidate, MovieRelease, ParsedCommand, Reply
from .subscription_store import SubscriptionStore

# Reply templates
NO_ENTRY_FOUND = "No entry found 🤓"
ENTRIES_HEADER = "I found these entries 🍿:\n"
UNKNOWN_RELEASE_DATE = "unknown release date"
NO_RELEASES_FOUND = "No movie releases found :("
SUBSCRIBED = "Done!"
AMBIGUOUS_SUBSCRIPTION = "Found multiple movies, be more specific please."
NO_SUBSCRIPTIONS_FOUND = "No subscriptions found"
SUBSCRIPTIONS_HEADER = "Your subscriptions are \n"

HELP_PARSE_MODE = "Markdown"
HELP_TEXT = (
    "Looking for information about movie releases? I can help with the following questions 😌\n"
    "`releases [exact] <movie title>`\n"
    "`releases [exact] <movie title> year <year of release>` (the year of release can be region specific)\n"
    "`subscribe to <movie title>`\n"
    "`list subscriptions`\n"
    "\n"
    "Examples:\n"
    "`release climax year 2018`\n"
    "`release exact julia`\n"
    "`subscribe to Alita`\n"
    "\n"
)

REGION_TO_EMOJI = {
    "DE": "🇩🇪",
}


class ConversationHandler:
    """Answers a single chat message"""

    def __init__(
        self,
        movie_client: MovieQueryClient,
        store: SubscriptionStore,
        region: str = "DE",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the conversation handler

        Args:
            movie_client: Catalog search client
            store: Subscription store
            region: Region code shown in the help message
            clock: Callable returning the current time (default: datetime.now)
        """
        self.movie_client = movie_client
        self.store = store
        self.region = region
        self.clock = clock or datetime.now
        self.logger = logging.getLogger("ConversationHandler")

    def handle(self, chat_id: int, text: str) -> Reply:
        """
        Parse a message and produce the reply for it

        Catalog and store errors propagate to the caller.
        """
        command = parse_command(text)

        if command is None:
            self.logger.debug(f"No command matched for chat {chat_id}, sending help")
            return self.help_reply()

        self.logger.info(f"Chat {chat_id}: {command.intent} {command.title!r}")

        if command.intent in (
            CommandIntent.RELEASE_QUERY,
            CommandIntent.RELEASE_QUERY_WITH_YEAR,
        ):
            return self.handle_release_query(command)
        if command.intent == CommandIntent.SUBSCRIBE:
            return self.handle_subscribe(chat_id, command)
        return self.handle_list_subscriptions(chat_id)

    def handle_release_query(self, command: ParsedCommand) -> Reply:
        results = self.movie_client.search(command.title, command.year)
        if command.exact:
            results = filter_exact(results, command.title)
        return Reply(format_results(results))

    def handle_subscribe(self, chat_id: int, command: ParsedCommand) -> Reply:
        """
        Subscribe a chat to the single upcoming release matching a title

        Nothing is stored unless exactly one upcoming release matches, so an
        ambiguous title never subscribes the user to the wrong movie.
        """
        results = self.movie_client.search(command.title, None)

        now = self.clock()
        upcoming = [c for c in results if c.is_upcoming(now)]

        if not upcoming:
            return Reply(NO_RELEASES_FOUND)

        if len(upcoming) > 1:
            self.logger.info(
                f"{len(upcoming)} upcoming releases match {command.title!r}, "
                "asking chat to be more specific"
            )
            return Reply(AMBIGUOUS_SUBSCRIPTION)

        release = MovieRelease.from_candidate(upcoming[0])
        self.store.upsert_subscription(release, chat_id)
        return Reply(SUBSCRIBED)

    def handle_list_subscriptions(self, chat_id: int) -> Reply:
        return Reply(format_subscriptions(self.store.subscriptions_for(chat_id)))

    def help_reply(self) -> Reply:
        region_emoji = REGION_TO_EMOJI.get(self.region, self.region)
        return Reply(HELP_TEXT + f"Current region: {region_emoji}", HELP_PARSE_MODE)


def format_results(results: List[MovieCandidate]) -> str:
    """Render search results as a bulleted list"""
    if not results:
        return NO_ENTRY_FOUND

    text = ENTRIES_HEADER
    for movie in results:
        if movie.release_date is None:
            year = UNKNOWN_RELEASE_DATE
        else:
            year = str(movie.release_date.year)
        text += f"- {movie.title} ({year})\n"
    return text


def format_subscriptions(releases: List[MovieRelease]) -> str:
    """Render a chat's subscriptions with their release dates"""
    if not releases:
        return NO_SUBSCRIPTIONS_FOUND

    text = SUBSCRIPTIONS_HEADER
    for release in releases:
        text += f"- {release.title} {format_release_date(release)}\n"
    return text


def format_release_date(release: MovieRelease) -> str:
    """Day month year, e.g. '2 Jan 2006'"""
    release_date = release.release_date
    return f"{release_date.day} {release_date.strftime('%b %Y')}"
