"""
Telegram Bot API client for sending messages.

Thin wrapper over the Bot API methods the bot needs. Every call returns a
CallResult; network errors, HTTP errors and `ok: false` responses are
logged and reported as failures, never raised.
"""

import httpx
from typing import Any, Dict, Optional

from .logging_config import bot_logger as logger
from .models import Keyboard, keyboard_markup
from .results import CallResult


class TelegramAPI:
    """
    Client for the Telegram Bot API.

    The httpx client is owned by the caller (created on app startup,
    closed on shutdown) and shared between requests.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        bot_token: str,
        base_url: str = "https://api.telegram.org",
        parse_mode: Optional[str] = "HTML"
    ):
        self.client = client
        self.base_url = f"{base_url.rstrip('/')}/bot{bot_token}"
        self.parse_mode = parse_mode

    async def _call(self, method: str, payload: Dict[str, Any]) -> CallResult:
        """POST a Bot API method and unwrap its `result` field."""
        try:
            response = await self.client.post(f"{self.base_url}/{method}", json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"{method} failed: {type(e).__name__}: {e}")
            return CallResult.failure(f"{type(e).__name__}: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error or not body.get("ok"):
            description = body.get("description") or f"HTTP {response.status_code}"
            logger.warning(f"{method} rejected: {description}")
            return CallResult.failure(description)

        return CallResult.success(body.get("result"))

    async def send_message(
        self,
        chat_id: int,
        text: str,
        keyboard: Optional[Keyboard] = None
    ) -> CallResult:
        """
        Send message to Telegram chat.

        Args:
            chat_id: Telegram chat ID
            text: Message text
            keyboard: Optional rows of inline buttons
        """
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text
        }

        if self.parse_mode:
            payload["parse_mode"] = self.parse_mode

        if keyboard:
            payload["reply_markup"] = keyboard_markup(keyboard)

        return await self._call("sendMessage", payload)

    async def send_message_with_buttons(
        self,
        chat_id: int,
        text: str,
        keyboard: Keyboard
    ) -> CallResult:
        """Send message with an inline keyboard."""
        return await self.send_message(chat_id, text, keyboard)

    async def send_document(
        self,
        chat_id: int,
        document: str,
        caption: Optional[str] = None
    ) -> CallResult:
        """
        Send a document by URL or file_id.

        Args:
            chat_id: Telegram chat ID
            document: HTTP URL of the file, or a Telegram file_id
            caption: Optional caption shown under the document
        """
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "document": document
        }

        if caption:
            payload["caption"] = caption
            if self.parse_mode:
                payload["parse_mode"] = self.parse_mode

        return await self._call("sendDocument", payload)

    async def answer_callback_query(self, callback_query_id: str) -> CallResult:
        """Remove the loading state from a pressed inline button."""
        return await self._call("answerCallbackQuery", {"callback_query_id": callback_query_id})

    async def get_chat_member(self, chat_ref: str, user_id: int) -> CallResult:
        """
        Look up a user's membership in a chat or channel.

        Returns the ChatMember object (a dict with `status`) on success.
        """
        return await self._call("getChatMember", {"chat_id": chat_ref, "user_id": user_id})
