"""
Channel subscription check.

Reduces a getChatMember lookup to a single "is a member" boolean.
"""

from typing import Any, Protocol

from .logging_config import bot_logger as logger
from .results import CallResult

# Statuses that mean the user currently belongs to the channel.
# "left", "kicked", "restricted" and anything unknown count as not subscribed.
MEMBER_STATUSES = frozenset({"creator", "administrator", "member"})


class ChatMemberLookup(Protocol):
    async def get_chat_member(self, chat_ref: str, user_id: int) -> CallResult:
        ...


def is_member_status(status: Any) -> bool:
    """Total reduction of a ChatMember status to a boolean."""
    return isinstance(status, str) and status in MEMBER_STATUSES


class SubscriptionChecker:
    """Answers "is this user subscribed to the channel?"."""

    def __init__(self, api: ChatMemberLookup, channel_ref: str):
        self.api = api
        self.channel_ref = channel_ref

    async def is_subscribed(self, user_id: int) -> bool:
        result = await self.api.get_chat_member(self.channel_ref, user_id)
        if not result.ok:
            logger.warning(f"Subscription check failed for user_id={user_id}: {result.error}")
            return False

        member = result.value if isinstance(result.value, dict) else {}
        status = member.get("status")
        subscribed = is_member_status(status)
        logger.info(f"Subscription check user_id={user_id} channel={self.channel_ref} status={status} -> {subscribed}")
        return subscribed
