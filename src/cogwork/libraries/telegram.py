"""Telegram Bot API updates bound to the internal taxonomy.

The Bot API has no event emitter, so this interface keeps its own table of
raw handlers keyed by update field and feeds it from ``getUpdates``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import anyio
import msgspec

from ..events import ChatMessage, ScopeId
from ..logging import get_logger
from ..telegram import (
    UPDATE_KINDS,
    BotClient,
    TelegramClient,
    TelegramRetryAfter,
    Update,
    convert_update,
)
from .base import UNSUPPORTED, EventBinding, Handler, LibraryInterface

logger = get_logger(__name__)

READY = "ready"

SCOPED_CHAT_TYPES = frozenset({"group", "supergroup", "channel"})
PRESENT_STATUSES = frozenset({"creator", "administrator", "member", "restricted"})
ABSENT_STATUSES = frozenset({"left", "kicked"})

# Seconds to wait before polling again after a failed getUpdates.
POLL_RETRY_S = 2.0


def chat_scope(chat: Any) -> ScopeId | None:
    if chat is None or getattr(chat, "type", None) not in SCOPED_CHAT_TYPES:
        return None
    return getattr(chat, "id", None)


def message_scope(message: Any) -> ScopeId | None:
    return chat_scope(getattr(message, "chat", None))


def callback_scope(query: Any) -> ScopeId | None:
    return message_scope(getattr(query, "message", None))


def to_chat_message(message: Any) -> ChatMessage:
    sender = message.from_
    return ChatMessage(
        id=str(message.message_id),
        channel_id=str(message.chat.id),
        scope=message_scope(message),
        author_id=str(sender.id) if sender is not None else None,
        author_is_bot=bool(sender.is_bot) if sender is not None else False,
        content=message.text or message.caption or "",
        raw=message,
    )


def _single_message(message: Any) -> tuple[ChatMessage | None, ChatMessage | None]:
    return to_chat_message(message), None


def _joined(update: Any) -> bool:
    return (
        update.old_chat_member.status in ABSENT_STATUSES
        and update.new_chat_member.status in PRESENT_STATUSES
    )


def _left(update: Any) -> bool:
    return (
        update.old_chat_member.status in PRESENT_STATUSES
        and update.new_chat_member.status in ABSENT_STATUSES
    )


def _changed(update: Any) -> bool:
    return not _joined(update) and not _left(update)


def _banned(update: Any) -> bool:
    return (
        update.old_chat_member.status != "kicked"
        and update.new_chat_member.status == "kicked"
    )


def _unbanned(update: Any) -> bool:
    return (
        update.old_chat_member.status == "kicked"
        and update.new_chat_member.status != "kicked"
    )


def _reaction_added(update: Any) -> bool:
    return len(update.new_reaction) > len(update.old_reaction)


def _reaction_removed(update: Any) -> bool:
    return 0 < len(update.new_reaction) < len(update.old_reaction)


def _reactions_cleared(update: Any) -> bool:
    return bool(update.old_reaction) and not update.new_reaction


TELEGRAM_BINDINGS: dict[str, EventBinding] = {
    "ready": EventBinding((READY,)),
    "message_create": EventBinding(
        ("message", "channel_post"), message_scope, messages=_single_message
    ),
    "message_update": EventBinding(
        ("edited_message", "edited_channel_post"),
        message_scope,
        messages=_single_message,
    ),
    "message_delete": UNSUPPORTED,
    "message_delete_bulk": UNSUPPORTED,
    "reaction_add": EventBinding(
        ("message_reaction",), message_scope, accepts=_reaction_added
    ),
    "reaction_remove": EventBinding(
        ("message_reaction",), message_scope, accepts=_reaction_removed
    ),
    "reaction_remove_all": EventBinding(
        ("message_reaction",), message_scope, accepts=_reactions_cleared
    ),
    "channel_create": UNSUPPORTED,
    "channel_update": UNSUPPORTED,
    "channel_delete": UNSUPPORTED,
    "guild_join": EventBinding(("my_chat_member",), message_scope, accepts=_joined),
    "guild_remove": EventBinding(("my_chat_member",), message_scope, accepts=_left),
    "guild_update": UNSUPPORTED,
    "member_join": EventBinding(("chat_member",), message_scope, accepts=_joined),
    "member_remove": EventBinding(("chat_member",), message_scope, accepts=_left),
    "member_update": EventBinding(("chat_member",), message_scope, accepts=_changed),
    "member_ban": EventBinding(("chat_member",), message_scope, accepts=_banned),
    "member_unban": EventBinding(("chat_member",), message_scope, accepts=_unbanned),
    "role_create": UNSUPPORTED,
    "role_update": UNSUPPORTED,
    "role_delete": UNSUPPORTED,
    "typing_start": UNSUPPORTED,
    "interaction_create": EventBinding(("callback_query",), callback_scope),
}


class TelegramInterface(LibraryInterface):
    id = "telegram"

    def __init__(
        self,
        token: str | None = None,
        *,
        client: BotClient | None = None,
        poll_timeout_s: int = 50,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        super().__init__(TELEGRAM_BINDINGS)
        if client is None:
            if not token:
                raise ValueError("Telegram token is empty")
            client = TelegramClient(token)
        self._client = client
        self._poll_timeout_s = poll_timeout_s
        self._sleep = sleep
        self._handlers: dict[str, list[Handler]] = {}
        self._offset: int | None = None
        self._self_id: str | None = None
        self._running = False

    @property
    def self_id(self) -> str | None:
        return self._self_id

    def handlers_for(self, raw_event: str) -> tuple[Handler, ...]:
        return tuple(self._handlers.get(raw_event, ()))

    def _subscribe_raw(self, raw_event: str, handler: Handler) -> None:
        handlers = self._handlers.setdefault(raw_event, [])
        if handler not in handlers:
            handlers.append(handler)

    def _unsubscribe_raw(self, raw_event: str, handler: Handler) -> None:
        handlers = self._handlers.get(raw_event)
        if not handlers or handler not in handlers:
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[raw_event]

    async def _emit(self, raw_event: str, *payload: Any) -> None:
        for handler in self.handlers_for(raw_event):
            await handler(*payload)

    async def deliver(self, update: Update) -> None:
        """Hand every populated field of ``update`` to its raw handlers."""
        for kind in UPDATE_KINDS:
            value = getattr(update, kind, None)
            if value is not None:
                await self._emit(kind, value)

    async def poll_once(self) -> int | None:
        """Fetch and deliver one batch; None when the request failed."""
        raw_updates = await self._client.get_updates(
            self._offset,
            timeout_s=self._poll_timeout_s,
            allowed_updates=list(UPDATE_KINDS),
        )
        if raw_updates is None:
            return None
        delivered = 0
        for item in raw_updates:
            update_id = item.get("update_id") if isinstance(item, dict) else None
            if isinstance(update_id, int):
                self._offset = update_id + 1
            try:
                update = convert_update(item)
            except msgspec.ValidationError as exc:
                logger.warning(
                    "telegram.update_invalid", update_id=update_id, error=str(exc)
                )
                continue
            await self.deliver(update)
            delivered += 1
        return delivered

    async def start(self) -> None:
        me = await self._client.get_me()
        if me is not None:
            self._self_id = str(me.id)
        logger.info("library.starting", library=self.id, self_id=self._self_id)
        self._running = True
        await self._emit(READY)
        while self._running:
            try:
                delivered = await self.poll_once()
            except TelegramRetryAfter as exc:
                logger.warning("telegram.rate_limited", retry_after=exc.retry_after)
                await self._sleep(exc.retry_after)
                continue
            if delivered is None:
                await self._sleep(POLL_RETRY_S)

    async def close(self) -> None:
        self._running = False
        await self._client.close()
