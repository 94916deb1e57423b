#!/usr/bin/env python3
"""Telegram Bot API client used to receive chat messages and send replies"""

import logging
from typing import Dict, List, Optional

import requests

from .errors import TransportError

# Telegram API constants
TELEGRAM_API_BASE_URL = "https://api.telegram.org"
TELEGRAM_MESSAGE_CHAR_LIMIT = 4096
MESSAGE_TRUNCATION_SUFFIX = "... (message truncated)"

# Timeout constants (seconds)
BOT_CONNECTION_TIMEOUT_SECONDS = 10
SEND_MESSAGE_TIMEOUT_SECONDS = 30
POLL_TIMEOUT_SECONDS = 30


class TelegramClient:
    """Thin wrapper over the Telegram Bot HTTP API"""

    def __init__(
        self,
        bot_token: str,
        api_base_url: str = TELEGRAM_API_BASE_URL,
        send_timeout: float = SEND_MESSAGE_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not bot_token:
            raise ValueError("Telegram bot token is required")
        self.bot_token = bot_token
        self.api_base_url = api_base_url.rstrip("/")
        self.send_timeout = send_timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger("TelegramClient")

    def _call(self, method: str, payload: Optional[Dict] = None, timeout: float = BOT_CONNECTION_TIMEOUT_SECONDS):
        """Call a Bot API method and return its 'result' field"""
        url = f"{self.api_base_url}/bot{self.bot_token}/{method}"

        try:
            response = self.session.post(url, json=payload or {}, timeout=timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Telegram {method} request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                f"Telegram {method} returned non-JSON body "
                f"({response.status_code})"
            ) from e

        if not isinstance(data, dict):
            raise TransportError(
                f"Telegram {method} returned unexpected body "
                f"({response.status_code}): {type(data).__name__}"
            )

        if response.status_code != 200 or not data.get("ok", False):
            raise TransportError(
                f"Telegram {method} failed: {response.status_code} - "
                f"{data.get('description', response.text)}"
            )

        return data.get("result")

    def get_me(self) -> Dict:
        """Return the bot's own user record, validating the token"""
        return self._call("getMe")

    def delete_webhook(self) -> bool:
        """Remove any registered webhook so getUpdates can be used"""
        return bool(self._call("deleteWebhook"))

    def get_updates(self, offset: Optional[int] = None, timeout: int = POLL_TIMEOUT_SECONDS) -> List[Dict]:
        """
        Long-poll for new updates

        Args:
            offset: Identifier of the first update to return
            timeout: Seconds Telegram may hold the request open

        Returns:
            List of raw update dictionaries
        """
        payload = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        # Leave headroom over the server-side long-poll timeout
        return self._call("getUpdates", payload, timeout=timeout + BOT_CONNECTION_TIMEOUT_SECONDS) or []

    def send_message(self, chat_id: int, text: str, parse_mode: Optional[str] = None) -> Dict:
        """Send a text message to a chat"""
        if len(text) > TELEGRAM_MESSAGE_CHAR_LIMIT:
            text = text[: TELEGRAM_MESSAGE_CHAR_LIMIT - len(MESSAGE_TRUNCATION_SUFFIX) - 1]
            text += f"\n{MESSAGE_TRUNCATION_SUFFIX}"

        payload = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode

        result = self._call("sendMessage", payload, timeout=self.send_timeout)
        self.logger.debug(f"Message sent to chat {chat_id}")
        return result
