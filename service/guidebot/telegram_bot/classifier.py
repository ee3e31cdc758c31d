"""
Update classifier - decides what kind of update arrived.

Button presses become CallbackPress, plain messages become TextMessage,
everything else is Ignored. Text is passed through as received.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .models import Update


@dataclass(frozen=True)
class TextMessage:
    chat_id: int
    user_id: Optional[int]
    text: str


@dataclass(frozen=True)
class CallbackPress:
    callback_id: str
    chat_id: int
    user_id: int
    token: str


@dataclass(frozen=True)
class Ignored:
    reason: str


ClassifiedUpdate = Union[TextMessage, CallbackPress, Ignored]


def classify(update: Update) -> ClassifiedUpdate:
    callback = update.callback_query
    if callback is not None:
        # Ids come from the pressed button's message and sender
        if callback.message is None:
            return Ignored("callback without message")
        return CallbackPress(
            callback_id=callback.id,
            chat_id=callback.message.chat.id,
            user_id=callback.from_user.id,
            token=callback.data or "",
        )

    message = update.message
    if message is not None:
        return TextMessage(
            chat_id=message.chat.id,
            user_id=message.from_user.id if message.from_user else None,
            text=message.text or "",
        )

    return Ignored("unsupported update type")
