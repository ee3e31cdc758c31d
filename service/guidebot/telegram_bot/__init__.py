"""
Telegram bot module for the guide giveaway.

ARCHITECTURE: Stateless per-update handling.
- Receives webhook updates from Telegram
- Logs every raw update to Supabase (best effort)
- Classifies the update (text message / button press / ignored)
- Dispatches on the callback token; the token is the conversation step
- Gates the guide document behind a channel subscription check
"""

from .bot import GuideBot
from .classifier import classify
from .dispatcher import CallbackToken, Dispatcher, DispatchResult

__all__ = [
    "GuideBot",
    "classify",
    "CallbackToken",
    "Dispatcher",
    "DispatchResult",
]
