from __future__ import annotations

from .api_schemas import UPDATE_KINDS, Update, User, convert_update
from .client import BotClient, TelegramClient, TelegramRetryAfter

__all__ = [
    "BotClient",
    "TelegramClient",
    "TelegramRetryAfter",
    "UPDATE_KINDS",
    "Update",
    "User",
    "convert_update",
]
