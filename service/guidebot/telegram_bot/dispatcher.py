"""
Update dispatcher - runs the guide conversation.

The conversation has no stored state. The callback token on a pressed
button says which step to run:

    /start            -> welcome + [Get the guide: start_get_guide]
    start_get_guide   -> subscribe link + [I'm subscribed: check_sub]
    check_sub         -> "checking..." then getChatMember, then
                         success + [Get the guide: send_guide]
                         or the subscribe prompt again
    send_guide        -> document + personal tour link

Any other text is echoed back. Unknown tokens and ignored updates produce
no outbound calls. Outbound failures are recorded in the DispatchResult
and never raised, so a redelivered update always replays the same steps.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from .classifier import CallbackPress, ClassifiedUpdate, Ignored, TextMessage
from .logging_config import bot_logger as logger
from .models import InlineButton, Keyboard
from .results import CallResult
from . import texts

START_COMMAND = "/start"


class CallbackToken(str, Enum):
    GET_GUIDE = "start_get_guide"
    CHECK_SUBSCRIPTION = "check_sub"
    SEND_GUIDE = "send_guide"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional[CallbackToken]:
        try:
            return cls(raw)
        except ValueError:
            return None


class ActionKind(str, Enum):
    ANSWER_CALLBACK = "answer_callback"
    MESSAGE = "message"
    MESSAGE_WITH_BUTTONS = "message_with_buttons"
    DOCUMENT = "document"


@dataclass(frozen=True)
class OutboundAction:
    kind: ActionKind
    chat_id: int
    result: CallResult


@dataclass
class DispatchResult:
    """Outbound calls made for one update, in the order they were made."""

    actions: list[OutboundAction] = field(default_factory=list)

    @property
    def kinds(self) -> list[ActionKind]:
        return [action.kind for action in self.actions]

    @property
    def failures(self) -> list[OutboundAction]:
        return [action for action in self.actions if not action.result.ok]


class Messenger(Protocol):
    async def send_message(self, chat_id: int, text: str, keyboard: Optional[Keyboard] = None) -> CallResult:
        ...

    async def send_message_with_buttons(self, chat_id: int, text: str, keyboard: Keyboard) -> CallResult:
        ...

    async def send_document(self, chat_id: int, document: str, caption: Optional[str] = None) -> CallResult:
        ...

    async def answer_callback_query(self, callback_query_id: str) -> CallResult:
        ...


class SubscriptionOracle(Protocol):
    async def is_subscribed(self, user_id: int) -> bool:
        ...


@dataclass(frozen=True)
class GuideLinks:
    guide_url: str
    channel_ref: str
    channel_link: str
    pick_tour_link: str


class Dispatcher:
    """Executes the conversation step for one classified update."""

    def __init__(self, messenger: Messenger, oracle: SubscriptionOracle, links: GuideLinks):
        self.messenger = messenger
        self.oracle = oracle
        self.links = links

        self._callback_handlers: dict[CallbackToken, Callable[[CallbackPress, DispatchResult], Awaitable[None]]] = {
            CallbackToken.GET_GUIDE: self._on_get_guide,
            CallbackToken.CHECK_SUBSCRIPTION: self._on_check_subscription,
            CallbackToken.SEND_GUIDE: self._on_send_guide,
        }
        missing = set(CallbackToken) - set(self._callback_handlers)
        if missing:
            raise RuntimeError(f"No handler for callback tokens: {sorted(t.value for t in missing)}")

    async def dispatch(self, update: ClassifiedUpdate) -> DispatchResult:
        result = DispatchResult()

        if isinstance(update, CallbackPress):
            await self._handle_callback(update, result)
        elif isinstance(update, TextMessage):
            await self._handle_text(update, result)
        elif isinstance(update, Ignored):
            logger.debug(f"Update ignored: {update.reason}")
        else:
            raise TypeError(f"Unexpected update type: {type(update).__name__}")

        if result.failures:
            logger.warning(f"{len(result.failures)} of {len(result.actions)} outbound calls failed")
        return result

    # ------------------------------------------------------------------
    # Keyboards
    # ------------------------------------------------------------------

    def _subscribe_keyboard(self) -> Keyboard:
        return [
            [InlineButton(text=texts.BUTTON_SUBSCRIBE, url=self.links.channel_link)],
            [InlineButton(text=texts.BUTTON_SUBSCRIBED, callback_data=CallbackToken.CHECK_SUBSCRIPTION.value)],
        ]

    # ------------------------------------------------------------------
    # Text messages
    # ------------------------------------------------------------------

    async def _handle_text(self, message: TextMessage, result: DispatchResult) -> None:
        logger.info(f"Message in chat_id={message.chat_id} from user_id={message.user_id}, text_len={len(message.text)}")

        if message.text.lstrip().startswith(START_COMMAND):
            keyboard = [[InlineButton(text=texts.BUTTON_GET_GUIDE, callback_data=CallbackToken.GET_GUIDE.value)]]
            await self._send_buttons(
                result, message.chat_id,
                texts.WELCOME.format(channel_ref=html.escape(self.links.channel_ref)),
                keyboard
            )
            return

        await self._send(result, message.chat_id, texts.ECHO.format(text=html.escape(message.text)))

    # ------------------------------------------------------------------
    # Button presses
    # ------------------------------------------------------------------

    async def _handle_callback(self, press: CallbackPress, result: DispatchResult) -> None:
        token = CallbackToken.parse(press.token)
        if token is None:
            logger.debug(f"Unknown callback token {press.token!r} from user_id={press.user_id}")
            return

        logger.info(f"Callback {token.value} from user_id={press.user_id} in chat_id={press.chat_id}")
        await self._perform(
            result, ActionKind.ANSWER_CALLBACK, press.chat_id,
            lambda: self.messenger.answer_callback_query(press.callback_id)
        )
        await self._callback_handlers[token](press, result)

    async def _on_get_guide(self, press: CallbackPress, result: DispatchResult) -> None:
        await self._send_buttons(
            result, press.chat_id,
            texts.SUBSCRIBE_FIRST.format(channel_link=html.escape(self.links.channel_link)),
            self._subscribe_keyboard()
        )

    async def _on_check_subscription(self, press: CallbackPress, result: DispatchResult) -> None:
        # "Checking" goes out before the lookup, the outcome after it
        await self._send(result, press.chat_id, texts.CHECKING)

        try:
            subscribed = await self.oracle.is_subscribed(press.user_id)
        except Exception as e:
            logger.error(f"Subscription check error for user_id={press.user_id}: {e}", exc_info=True)
            subscribed = False

        if subscribed:
            keyboard = [[InlineButton(text=texts.BUTTON_GET_GUIDE, callback_data=CallbackToken.SEND_GUIDE.value)]]
            await self._send_buttons(result, press.chat_id, texts.SUBSCRIBED, keyboard)
        else:
            await self._send_buttons(result, press.chat_id, texts.NOT_SUBSCRIBED, self._subscribe_keyboard())

    async def _on_send_guide(self, press: CallbackPress, result: DispatchResult) -> None:
        await self._perform(
            result, ActionKind.DOCUMENT, press.chat_id,
            lambda: self.messenger.send_document(press.chat_id, self.links.guide_url, texts.GUIDE_CAPTION)
        )
        keyboard = [[InlineButton(text=texts.BUTTON_PICK_TOUR, url=self.links.pick_tour_link)]]
        await self._send_buttons(result, press.chat_id, texts.AFTER_GUIDE, keyboard)

    # ------------------------------------------------------------------
    # Outbound helpers
    # ------------------------------------------------------------------

    async def _send(self, result: DispatchResult, chat_id: int, text: str) -> None:
        await self._perform(
            result, ActionKind.MESSAGE, chat_id,
            lambda: self.messenger.send_message(chat_id, text)
        )

    async def _send_buttons(self, result: DispatchResult, chat_id: int, text: str, keyboard: Keyboard) -> None:
        await self._perform(
            result, ActionKind.MESSAGE_WITH_BUTTONS, chat_id,
            lambda: self.messenger.send_message_with_buttons(chat_id, text, keyboard)
        )

    async def _perform(
        self,
        result: DispatchResult,
        kind: ActionKind,
        chat_id: int,
        call: Callable[[], Awaitable[CallResult]]
    ) -> None:
        """Run one outbound call and record its outcome. Never raises."""
        try:
            outcome = await call()
        except Exception as e:
            logger.error(f"{kind.value} to chat_id={chat_id} raised: {e}", exc_info=True)
            outcome = CallResult.failure(f"{type(e).__name__}: {e}")

        if not outcome.ok:
            logger.warning(f"{kind.value} to chat_id={chat_id} failed: {outcome.error}")
        result.actions.append(OutboundAction(kind=kind, chat_id=chat_id, result=outcome))
