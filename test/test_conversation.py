#!/usr/bin/env python3
"""
Test suite for the conversation handler.
Tests reply rendering for each command and the subscribe write rules.
"""

import sys
import unittest
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from release_alert_bot.conversation import ConversationHandler
from release_alert_bot.record_store import InMemoryRecordStore
from release_alert_bot.schema import MovieCandidate, MovieRelease
from release_alert_bot.subscription_store import SubscriptionStore

NOW = datetime(2024, 3, 1, 12, 0)


class FakeMovieClient:
    """Returns canned candidates and records every search"""

    def __init__(self, results=None):
        self.results = results or []
        self.searches = []

    def search(self, title, year=None):
        self.searches.append((title, year))
        return list(self.results)


class CountingRecordStore(InMemoryRecordStore):
    """In-memory record store that counts writes"""

    def __init__(self):
        super().__init__()
        self.writes = 0

    @contextmanager
    def transaction(self):
        with super().transaction() as tx:
            put = tx.put

            def counting_put(key, record):
                self.writes += 1
                put(key, record)

            tx.put = counting_put
            yield tx


class ConversationTestCase(unittest.TestCase):
    """Base fixture wiring a handler to fakes"""

    def setUp(self):
        """Set up handler with fake catalog and in-memory store"""
        self.movie_client = FakeMovieClient()
        self.record_store = CountingRecordStore()
        self.store = SubscriptionStore(self.record_store)
        self.handler = ConversationHandler(
            self.movie_client, self.store, region="DE", clock=lambda: NOW
        )


class TestReleaseQuery(ConversationTestCase):
    """Test cases for release queries"""

    def test_lists_results_with_year(self):
        """Test bulleted rendering with known and unknown dates"""
        self.movie_client.results = [
            MovieCandidate("Climax", 1, date(2018, 9, 19)),
            MovieCandidate("Climax 2", 2, None),
        ]
        reply = self.handler.handle(1, "release climax year 2018")
        self.assertEqual(self.movie_client.searches, [("climax", "2018")])
        self.assertEqual(
            reply.text,
            "I found these entries 🍿:\n"
            "- Climax (2018)\n"
            "- Climax 2 (unknown release date)\n",
        )
        self.assertIsNone(reply.parse_mode)

    def test_no_results(self):
        """Test the empty-result reply"""
        reply = self.handler.handle(1, "releases nothing at all")
        self.assertEqual(reply.text, "No entry found 🤓")

    def test_exact_filter_applied(self):
        """Test that exact queries drop non-matching titles"""
        self.movie_client.results = [
            MovieCandidate("Julia", 1, date(2008, 2, 8)),
            MovieCandidate("Julie & Julia", 2, date(2009, 8, 7)),
            MovieCandidate("The Other One", 3, date(2010, 1, 1)),
        ]
        reply = self.handler.handle(1, "release exact julia")
        self.assertEqual(self.movie_client.searches, [("julia", None)])
        self.assertEqual(
            reply.text,
            "I found these entries 🍿:\n- Julia (2008)\n- Julie & Julia (2009)\n",
        )

    def test_exact_filter_can_empty_results(self):
        """Test that filtering everything out yields the empty reply"""
        self.movie_client.results = [MovieCandidate("Other", 1, date(2008, 2, 8))]
        reply = self.handler.handle(1, "release exact julia")
        self.assertEqual(reply.text, "No entry found 🤓")


class TestSubscribe(ConversationTestCase):
    """Test cases for the subscribe command"""

    def test_alita_end_to_end(self):
        """Test that one upcoming match is stored once and acknowledged"""
        release_date = (NOW + timedelta(days=60)).date()
        self.movie_client.results = [
            MovieCandidate("Alita: Battle Angel", 399579, release_date)
        ]
        reply = self.handler.handle(42, "subscribe to Alita")
        self.assertEqual(reply.text, "Done!")
        self.assertEqual(self.movie_client.searches, [("alita", None)])
        self.assertEqual(self.record_store.writes, 1)
        stored = self.store.get_release(399579)
        self.assertEqual(stored.title, "Alita: Battle Angel")
        self.assertEqual(stored.release_date, release_date)
        self.assertEqual([s.chat_id for s in stored.subscribers], [42])
        self.assertFalse(stored.subscribers[0].notified)

    def test_past_releases_ignored(self):
        """Test that only future-dated candidates count"""
        self.movie_client.results = [
            MovieCandidate("Alita: Battle Angel", 1, date(2019, 2, 14)),
            MovieCandidate("Alita Undated", 2, None),
            MovieCandidate("Alita Today", 3, NOW.date()),
        ]
        reply = self.handler.handle(42, "subscribe to alita")
        self.assertEqual(reply.text, "No movie releases found :(")
        self.assertEqual(self.record_store.writes, 0)
        self.assertEqual(self.store.list_all(), [])

    def test_multiple_upcoming_is_not_stored(self):
        """Test that an ambiguous title creates no subscription"""
        self.movie_client.results = [
            MovieCandidate("Alita 2", 1, date(2024, 6, 1)),
            MovieCandidate("Alita 3", 2, date(2025, 6, 1)),
        ]
        reply = self.handler.handle(42, "subscribe to alita")
        self.assertEqual(reply.text, "Found multiple movies, be more specific please.")
        self.assertEqual(self.record_store.writes, 0)

    def test_repeat_subscribe_writes_once(self):
        """Test that subscribing twice stores one subscriber"""
        self.movie_client.results = [MovieCandidate("Alita 2", 1, date(2024, 6, 1))]
        self.handler.handle(42, "subscribe to alita")
        reply = self.handler.handle(42, "subscribe to alita")
        self.assertEqual(reply.text, "Done!")
        self.assertEqual(self.record_store.writes, 1)
        self.assertEqual(len(self.store.get_release(1).subscribers), 1)


class TestListSubscriptions(ConversationTestCase):
    """Test cases for listing subscriptions"""

    def test_no_subscriptions(self):
        """Test the empty reply"""
        reply = self.handler.handle(42, "list subscriptions")
        self.assertEqual(reply.text, "No subscriptions found")

    def test_round_trip_from_subscribe(self):
        """Test that a subscribed release is listed with its formatted date"""
        self.movie_client.results = [
            MovieCandidate("Alita: Battle Angel", 399579, date(2024, 4, 2))
        ]
        self.handler.handle(42, "subscribe to alita")
        self.store.upsert_subscription(MovieRelease(5, "Someone Else's", date(2024, 5, 1)), 7)

        reply = self.handler.handle(42, "list subscriptions")
        self.assertEqual(
            reply.text, "Your subscriptions are \n- Alita: Battle Angel 2 Apr 2024\n"
        )


class TestHelp(ConversationTestCase):
    """Test cases for the fallback help message"""

    def test_help_for_unknown_text(self):
        """Test that unknown text gets the Markdown help with region flag"""
        reply = self.handler.handle(42, "hello there")
        self.assertEqual(reply.parse_mode, "Markdown")
        self.assertIn("`subscribe to <movie title>`", reply.text)
        self.assertIn("`list subscriptions`", reply.text)
        self.assertIn("`release exact julia`", reply.text)
        self.assertTrue(reply.text.endswith("Current region: 🇩🇪"))
        self.assertEqual(self.movie_client.searches, [])

    def test_unknown_region_shown_as_code(self):
        """Test that a region without a flag falls back to its code"""
        handler = ConversationHandler(self.movie_client, self.store, region="FR")
        self.assertTrue(handler.handle(1, "?").text.endswith("Current region: FR"))


if __name__ == "__main__":
    unittest.main()
