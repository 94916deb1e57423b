#!/usr/bin/env python3
"""
Error Definitions
Exceptions raised by the catalog client, chat transport and subscription store.
"""

from typing import Optional


class ReleaseBotError(Exception):
    """Base class for all release bot failures"""


class TransportError(ReleaseBotError):
    """An outbound HTTP call (catalog or Telegram) failed"""


class BadResponseStatus(ReleaseBotError):
    """The catalog answered with a non-success status"""

    def __init__(self, status_code: int, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Unexpected status code: {status_code}")


class MalformedResponse(ReleaseBotError):
    """The response body or one of its dates could not be parsed"""


class StoreError(ReleaseBotError):
    """Reading or writing a persisted release record failed"""
