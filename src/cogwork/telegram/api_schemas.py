"""Msgspec models for Telegram Bot API updates (subset used by cogwork)."""

from __future__ import annotations

from typing import Any

import msgspec

__all__ = [
    "CallbackQuery",
    "CallbackQueryMessage",
    "Chat",
    "ChatMember",
    "ChatMemberUpdated",
    "Message",
    "MessageReactionUpdated",
    "UPDATE_KINDS",
    "Update",
    "User",
    "convert_update",
]


class User(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    is_bot: bool | None = None
    username: str | None = None
    first_name: str | None = None


class Chat(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    type: str
    title: str | None = None
    username: str | None = None
    is_forum: bool | None = None


class Message(msgspec.Struct, forbid_unknown_fields=False):
    message_id: int
    chat: Chat
    date: int | None = None
    message_thread_id: int | None = None
    from_: User | None = msgspec.field(default=None, name="from")
    sender_chat: Chat | None = None
    text: str | None = None
    caption: str | None = None
    edit_date: int | None = None


class CallbackQueryMessage(msgspec.Struct, forbid_unknown_fields=False):
    message_id: int
    chat: Chat


class CallbackQuery(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    from_: User = msgspec.field(name="from")
    message: CallbackQueryMessage | None = None
    data: str | None = None


class ChatMember(msgspec.Struct, forbid_unknown_fields=False):
    status: str
    user: User | None = None


class ChatMemberUpdated(msgspec.Struct, forbid_unknown_fields=False):
    chat: Chat
    from_: User = msgspec.field(name="from")
    date: int
    old_chat_member: ChatMember
    new_chat_member: ChatMember


class ReactionType(msgspec.Struct, forbid_unknown_fields=False):
    type: str
    emoji: str | None = None
    custom_emoji_id: str | None = None


class MessageReactionUpdated(msgspec.Struct, forbid_unknown_fields=False):
    chat: Chat
    message_id: int
    date: int
    user: User | None = None
    old_reaction: list[ReactionType] = msgspec.field(default_factory=list)
    new_reaction: list[ReactionType] = msgspec.field(default_factory=list)


class Update(msgspec.Struct, forbid_unknown_fields=False):
    update_id: int
    message: Message | None = None
    edited_message: Message | None = None
    channel_post: Message | None = None
    edited_channel_post: Message | None = None
    callback_query: CallbackQuery | None = None
    my_chat_member: ChatMemberUpdated | None = None
    chat_member: ChatMemberUpdated | None = None
    message_reaction: MessageReactionUpdated | None = None


# Update fields cogwork subscribes to; also sent as `allowed_updates`.
UPDATE_KINDS: tuple[str, ...] = (
    "message",
    "edited_message",
    "channel_post",
    "edited_channel_post",
    "callback_query",
    "my_chat_member",
    "chat_member",
    "message_reaction",
)


def convert_update(payload: dict[str, Any]) -> Update:
    return msgspec.convert(payload, Update)
