"""
Tests for bot wiring: building from settings, handling updates, shutdown.

Run with: pytest tests/test_bot.py -v
"""

import asyncio
import logging

import httpx
import pytest
from fastapi.testclient import TestClient

import guidebot.main as main_module
import guidebot.supabase_client as supabase_client
from guidebot.config import Settings
from guidebot.telegram_bot.bot import GuideBot
from guidebot.telegram_bot.dispatcher import Dispatcher, GuideLinks
from guidebot.telegram_bot.logging_config import setup_logging
from guidebot.telegram_bot.results import CallResult
from guidebot.telegram_bot.subscription import SubscriptionChecker
from guidebot.telegram_bot.telegram_api import TelegramAPI
from guidebot.telegram_bot.update_log import DisabledUpdateLog, UpdateLog

LINKS = GuideLinks(
    guide_url="https://files.example.com/guide.pdf",
    channel_ref="@travel",
    channel_link="https://t.me/travel",
    pick_tour_link="https://t.me/travel",
)


def make_settings(**overrides):
    values = dict(
        telegram_bot_token="123:ABC",
        telegram_webhook_secret="s3cret",
        guide_url="https://files.example.com/guide.pdf",
        channel_username="travel",
        supabase_url="",
        supabase_service_role_key="",
    )
    values.update(overrides)
    return Settings(**values)


class RecordingMessenger:
    def __init__(self, on_call=None):
        self.calls = []
        self.on_call = on_call

    async def _record(self, *call):
        self.calls.append(call)
        if self.on_call:
            self.on_call()
        return CallResult.success()

    async def send_message(self, chat_id, text, keyboard=None):
        return await self._record("message", chat_id, text)

    async def send_message_with_buttons(self, chat_id, text, keyboard):
        return await self._record("buttons", chat_id, text)

    async def send_document(self, chat_id, document, caption=None):
        return await self._record("document", chat_id, document)

    async def answer_callback_query(self, callback_query_id):
        return await self._record("answer", callback_query_id)


class NotSubscribed:
    async def is_subscribed(self, user_id):
        return False


class BlockingUpdateLog:
    """Update log that only finishes once the reply has been sent."""

    def __init__(self):
        self.released = asyncio.Event()
        self.records = []

    async def record(self, update, raw):
        await self.released.wait()
        self.records.append(raw)
        return CallResult.success()


class RaisingUpdateLog:
    async def record(self, update, raw):
        raise RuntimeError("supabase down")


class TestHandleUpdate:

    @pytest.mark.asyncio
    async def test_non_string_text_is_echoed_as_empty(self):
        messenger = RecordingMessenger()
        bot = GuideBot(Dispatcher(messenger, NotSubscribed(), LINKS), DisabledUpdateLog())

        await bot.handle_update({
            "update_id": 1,
            "message": {"message_id": 1, "chat": {"id": 5}, "from": {"id": 2}, "text": 123},
        })

        assert messenger.calls == [("message", 5, "You wrote: ")]

    @pytest.mark.asyncio
    async def test_reply_does_not_wait_for_update_log(self):
        update_log = BlockingUpdateLog()
        messenger = RecordingMessenger(on_call=update_log.released.set)
        bot = GuideBot(Dispatcher(messenger, NotSubscribed(), LINKS), update_log)
        update = {
            "update_id": 1,
            "message": {"message_id": 1, "chat": {"id": 5}, "from": {"id": 2}, "text": "hi"},
        }

        result = await asyncio.wait_for(bot.handle_update(update), timeout=2)

        assert messenger.calls == [("message", 5, "You wrote: hi")]
        assert update_log.records == [update]
        assert len(result.actions) == 1

    @pytest.mark.asyncio
    async def test_update_log_error_does_not_stop_reply(self):
        messenger = RecordingMessenger()
        bot = GuideBot(Dispatcher(messenger, NotSubscribed(), LINKS), RaisingUpdateLog())

        await bot.handle_update({
            "update_id": 1,
            "message": {"message_id": 1, "chat": {"id": 5}, "text": "/start"},
        })

        assert [call[0] for call in messenger.calls] == ["buttons"]


class TestFromSettings:

    @pytest.mark.asyncio
    async def test_shares_one_http_client(self):
        bot = GuideBot.from_settings(make_settings(http_timeout_seconds=3))

        api = bot.dispatcher.messenger
        oracle = bot.dispatcher.oracle
        assert isinstance(bot.client, httpx.AsyncClient)
        assert isinstance(api, TelegramAPI)
        assert isinstance(oracle, SubscriptionChecker)
        assert api.client is bot.client
        assert oracle.api is api
        assert oracle.channel_ref == "@travel"
        assert bot.client.timeout.connect == 3

        await bot.close()

    @pytest.mark.asyncio
    async def test_update_log_disabled_without_supabase(self):
        bot = GuideBot.from_settings(make_settings())
        assert isinstance(bot.update_log, DisabledUpdateLog)
        await bot.close()

    @pytest.mark.asyncio
    async def test_update_log_uses_supabase_when_configured(self, monkeypatch):
        fake_client = object()
        monkeypatch.setattr(supabase_client, "get_supabase_admin", lambda settings: fake_client)

        bot = GuideBot.from_settings(make_settings(
            supabase_url="https://project.supabase.co",
            supabase_service_role_key="service-key",
            supabase_updates_table="audit_updates",
        ))

        assert isinstance(bot.update_log, UpdateLog)
        assert bot.update_log.supabase is fake_client
        assert bot.update_log.table == "audit_updates"
        await bot.close()

    @pytest.mark.asyncio
    async def test_close_closes_the_client(self):
        bot = GuideBot.from_settings(make_settings())
        assert bot.client.is_closed is False

        await bot.close()

        assert bot.client.is_closed is True


class TestAppLifecycle:

    def test_startup_creates_bot_and_shutdown_closes_it(self, monkeypatch):
        monkeypatch.setattr(main_module, "get_settings", lambda: make_settings())

        with TestClient(main_module.app):
            bot = main_module.app.state.bot
            assert isinstance(bot, GuideBot)
            assert bot.client.is_closed is False

        assert bot.client.is_closed is True
        del main_module.app.state.bot


class TestLogging:

    def test_default_level_is_info(self):
        logger = setup_logging()
        assert logger.level == logging.INFO

    def test_configured_level_is_applied(self):
        logger = setup_logging("warning")
        assert logger.level == logging.WARNING
        setup_logging()
