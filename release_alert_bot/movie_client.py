#!/usr/bin/env python3
"""
Movie Query Client
Searches The Movie Database (TMDb) catalog and normalizes the results into
MovieCandidate objects ordered by release date.
"""

import logging
from datetime import date, datetime
from typing import List, Optional

import requests

from .errors import BadResponseStatus, MalformedResponse, TransportError
from .schema import RELEASE_DATE_FORMAT, MovieCandidate

# TMDb API constants
TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
TMDB_SEARCH_PATH = "/search/movie"

# Timeout constants (seconds)
SEARCH_TIMEOUT_SECONDS = 10

# Error bodies are cut to this length in logs
ERROR_BODY_LOG_CHARS = 200


class MovieQueryClient:
    """Client for the TMDb movie search endpoint"""

    def __init__(
        self,
        api_key: str,
        base_url: str = TMDB_API_BASE_URL,
        timeout: float = SEARCH_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the movie query client

        Args:
            api_key: TMDb API key
            base_url: TMDb API root
            timeout: Request timeout in seconds
            session: Optional requests session (defaults to a new one)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger("MovieQueryClient")

    def search(self, title: str, year: Optional[str] = None) -> List[MovieCandidate]:
        """
        Search the catalog for a movie title

        Args:
            title: Free-text movie title
            year: Optional 4-digit year of release

        Returns:
            Candidates sorted by release date, most recent first; entries with
            no known date come last

        Raises:
            TransportError: The request could not be sent or completed
            BadResponseStatus: The catalog did not answer with 200
            MalformedResponse: The body or any non-empty release date is invalid
        """
        url = f"{self.base_url}{TMDB_SEARCH_PATH}"
        params = {"api_key": self.api_key, "query": title, "year": year or ""}

        self.logger.debug(f"Searching catalog: query={title!r} year={year!r}")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to send search request: {e}") from e

        if response.status_code != 200:
            error = BadResponseStatus(response.status_code, response.text)
            self.logger.error(
                f"Search for {title!r} failed: {error} - "
                f"{(error.body or '')[:ERROR_BODY_LOG_CHARS]}"
            )
            raise error

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Failed to parse search response JSON: {e}") from e

        candidates = parse_results(data)
        self.logger.info(f"Search for {title!r} returned {len(candidates)} results")
        return sort_candidates(candidates)


def parse_results(data) -> List[MovieCandidate]:
    """
    Convert a decoded search response into candidates

    A single malformed release date fails the whole batch.
    """
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        raise MalformedResponse("Search response has no 'results' list")

    candidates = []
    for result in data["results"]:
        try:
            title = str(result["title"])
            catalog_id = int(result["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid search result entry: {result!r}") from e

        candidates.append(
            MovieCandidate(
                title=title,
                catalog_id=catalog_id,
                release_date=parse_release_date(result.get("release_date") or ""),
            )
        )
    return candidates


def parse_release_date(value: str) -> Optional[date]:
    """Parse a YYYY-MM-DD date; an empty string means unknown"""
    if not value:
        return None
    try:
        return datetime.strptime(value, RELEASE_DATE_FORMAT).date()
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Failed to parse release date: {value!r}") from e


def sort_candidates(candidates: List[MovieCandidate]) -> List[MovieCandidate]:
    """Order by release date descending, unknown dates treated as the earliest"""
    return sorted(
        candidates,
        key=lambda candidate: candidate.release_date or date.min,
        reverse=True,
    )


def filter_exact(candidates: List[MovieCandidate], title: str) -> List[MovieCandidate]:
    """Keep candidates whose title contains the query title, ignoring case"""
    needle = title.lower()
    return [c for c in candidates if needle in c.title.lower()]
