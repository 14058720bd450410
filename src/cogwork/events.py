"""Internal event taxonomy and the normalized event shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, get_args

type ScopeId = int | str

type EventName = Literal[
    "ready",
    "message_create",
    "message_update",
    "message_delete",
    "message_delete_bulk",
    "reaction_add",
    "reaction_remove",
    "reaction_remove_all",
    "channel_create",
    "channel_update",
    "channel_delete",
    "guild_join",
    "guild_remove",
    "guild_update",
    "member_join",
    "member_remove",
    "member_update",
    "member_ban",
    "member_unban",
    "role_create",
    "role_update",
    "role_delete",
    "typing_start",
    "interaction_create",
]

EVENT_NAMES: tuple[str, ...] = get_args(EventName.__value__)


def is_event_name(value: str) -> bool:
    return value in EVENT_NAMES


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """Library independent view of a chat message."""

    id: str
    channel_id: str
    scope: ScopeId | None
    author_id: str | None
    author_is_bot: bool
    content: str
    raw: Any | None = field(default=None, compare=False, hash=False, repr=False)


@dataclass(frozen=True, slots=True)
class Event:
    name: str
    scope: ScopeId | None
    payload: tuple[Any, ...] = ()
    message: ChatMessage | None = None
    previous: ChatMessage | None = None
