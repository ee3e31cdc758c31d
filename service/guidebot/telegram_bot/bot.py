"""
Bot wiring: builds the shared HTTP client and the dispatcher.

One GuideBot instance lives for the whole process; it is created on app
startup and closed on shutdown.
"""

import asyncio
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from guidebot.config import Settings
from .classifier import classify
from .dispatcher import Dispatcher, DispatchResult, GuideLinks
from .logging_config import bot_logger as logger
from .models import Update
from .subscription import SubscriptionChecker
from .telegram_api import TelegramAPI
from .update_log import DisabledUpdateLog, UpdateLog


class GuideBot:
    """Everything needed to handle one webhook update."""

    def __init__(self, dispatcher: Dispatcher, update_log: Any, client: Optional[httpx.AsyncClient] = None):
        self.dispatcher = dispatcher
        self.update_log = update_log
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "GuideBot":
        client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        api = TelegramAPI(client, settings.telegram_bot_token, base_url=settings.telegram_api)
        oracle = SubscriptionChecker(api, settings.channel_ref)
        links = GuideLinks(
            guide_url=settings.guide_url,
            channel_ref=settings.channel_ref,
            channel_link=settings.channel_link,
            pick_tour_link=settings.pick_tour_link,
        )

        if settings.update_log_enabled:
            from guidebot.supabase_client import get_supabase_admin
            update_log = UpdateLog(get_supabase_admin(settings), settings.supabase_updates_table)
        else:
            logger.info("Supabase not configured, update log disabled")
            update_log = DisabledUpdateLog()

        return cls(Dispatcher(api, oracle, links), update_log, client)

    async def handle_update(self, update_data: Any) -> Optional[DispatchResult]:
        """
        Process one incoming webhook update.

        Called from the FastAPI webhook as a background task. The raw update
        is logged concurrently with dispatch, so a slow update log never
        delays the reply. Never raises.
        """
        try:
            update = Update.model_validate(update_data)
        except ValidationError as e:
            logger.warning(f"Received invalid update data: {e.error_count()} validation error(s)")
            update = None

        log_outcome, result = await asyncio.gather(
            self.update_log.record(update, update_data),
            self._dispatch(update),
            return_exceptions=True
        )
        if isinstance(log_outcome, BaseException):
            logger.warning(f"Update log raised: {log_outcome}")
        if isinstance(result, BaseException):
            logger.error(f"Dispatch raised: {result}")
            return None
        return result

    async def _dispatch(self, update: Optional[Update]) -> Optional[DispatchResult]:
        if update is None:
            return None

        try:
            return await self.dispatcher.dispatch(classify(update))
        except Exception as e:
            logger.error(f"Failed to process update {update.update_id}: {e}", exc_info=True)
            return None

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            logger.info("Bot shut down")
