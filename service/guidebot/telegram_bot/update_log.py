"""
Update log - audit copy of every incoming update in Supabase.

Fire-and-forget: a failed insert is logged and never affects handling.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from .logging_config import bot_logger as logger
from .models import Update
from .results import CallResult


def build_record(update: Optional[Update], raw: Any) -> Dict[str, Any]:
    """
    Flatten an update into the tg_updates row.

    Callbacks take chat and text from the pressed button's message and
    the user from the callback sender. Unknown updates log as zeros.
    """
    chat_id, user_id, text = 0, 0, ""

    if update is not None and update.message is not None:
        message = update.message
        chat_id = message.chat.id
        user_id = message.from_user.id if message.from_user else 0
        text = message.text or ""
    elif update is not None and update.callback_query is not None and update.callback_query.message is not None:
        callback = update.callback_query
        chat_id = callback.message.chat.id
        user_id = callback.from_user.id
        text = callback.message.text or ""

    return {
        "chat_id": chat_id,
        "user_id": user_id,
        "text": text,
        "raw": raw,
    }


class UpdateLog:
    """Writes update records into a Supabase table."""

    def __init__(self, supabase: Any, table: str = "tg_updates"):
        self.supabase = supabase
        self.table = table

    def _insert(self, record: Dict[str, Any]) -> None:
        self.supabase.table(self.table).insert(record).execute()

    async def record(self, update: Optional[Update], raw: Any) -> CallResult:
        record = build_record(update, raw)
        try:
            # supabase-py is synchronous; keep the event loop free
            await asyncio.to_thread(self._insert, record)
        except Exception as e:
            logger.warning(f"Failed to log update chat_id={record['chat_id']}: {e}")
            return CallResult.failure(str(e))
        return CallResult.success()


class DisabledUpdateLog:
    """Stand-in used when Supabase is not configured."""

    async def record(self, update: Optional[Update], raw: Any) -> CallResult:
        return CallResult.success()
