"""
Telegram Bot API wire models.

Only the subset of fields the bot reads is declared; everything else in
an incoming update is ignored.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TelegramModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Chat(TelegramModel):
    id: int


class User(TelegramModel):
    id: int
    username: Optional[str] = None


class Message(TelegramModel):
    message_id: int
    chat: Chat
    from_user: Optional[User] = Field(None, alias="from")
    text: Optional[str] = None

    @field_validator("text", mode="before")
    @classmethod
    def _text_or_none(cls, value):
        # Non-string text (captions, bad payloads) is treated as missing
        return value if isinstance(value, str) else None


class CallbackQuery(TelegramModel):
    id: str
    from_user: User = Field(..., alias="from")
    message: Optional[Message] = None
    data: Optional[str] = None


class Update(TelegramModel):
    update_id: int
    message: Optional[Message] = None
    callback_query: Optional[CallbackQuery] = None


class InlineButton(BaseModel):
    """Inline keyboard button: a label plus either callback data or a URL."""

    text: str
    callback_data: Optional[str] = None
    url: Optional[str] = None

    @model_validator(mode="after")
    def _one_target(self) -> "InlineButton":
        if (self.callback_data is None) == (self.url is None):
            raise ValueError("button needs exactly one of callback_data or url")
        return self


Keyboard = list[list[InlineButton]]


def keyboard_markup(keyboard: Keyboard) -> dict:
    """Serialize rows of buttons into a reply_markup payload."""
    return {
        "inline_keyboard": [
            [button.model_dump(exclude_none=True) for button in row]
            for row in keyboard
        ]
    }
