"""py-cord gateway events bound to the internal taxonomy."""

from __future__ import annotations

from typing import Any

import discord

from ..events import ChatMessage, ScopeId
from ..logging import get_logger
from .base import EventBinding, Handler, LibraryInterface

logger = get_logger(__name__)


def _guild_scope(obj: Any) -> ScopeId | None:
    guild = getattr(obj, "guild", None)
    if guild is None:
        return None
    return getattr(guild, "id", None)


def message_scope(message: Any) -> ScopeId | None:
    return _guild_scope(message)


def message_edit_scope(before: Any, after: Any) -> ScopeId | None:
    return _guild_scope(after)


def bulk_delete_scope(messages: Any) -> ScopeId | None:
    if not messages:
        return None
    return _guild_scope(messages[0])


def reaction_scope(reaction: Any, user: Any) -> ScopeId | None:
    return _guild_scope(getattr(reaction, "message", None))


def reaction_clear_scope(message: Any, reactions: Any) -> ScopeId | None:
    return _guild_scope(message)


def guild_scope(guild: Any) -> ScopeId | None:
    return getattr(guild, "id", None)


def guild_update_scope(before: Any, after: Any) -> ScopeId | None:
    return getattr(after, "id", None)


def ban_scope(guild: Any, user: Any) -> ScopeId | None:
    return getattr(guild, "id", None)


def entity_scope(entity: Any) -> ScopeId | None:
    """Channels, members and roles all carry their guild."""
    return _guild_scope(entity)


def entity_update_scope(before: Any, after: Any) -> ScopeId | None:
    return _guild_scope(after)


def typing_scope(channel: Any, user: Any, when: Any) -> ScopeId | None:
    return _guild_scope(channel)


def interaction_scope(interaction: Any) -> ScopeId | None:
    return getattr(interaction, "guild_id", None)


def to_chat_message(message: Any) -> ChatMessage:
    author = message.author
    return ChatMessage(
        id=str(message.id),
        channel_id=str(message.channel.id),
        scope=_guild_scope(message),
        author_id=str(author.id) if author is not None else None,
        author_is_bot=bool(getattr(author, "bot", False)),
        content=message.content or "",
        raw=message,
    )


def _single_message(message: Any) -> tuple[ChatMessage | None, ChatMessage | None]:
    return to_chat_message(message), None


def _edited_message(
    before: Any, after: Any
) -> tuple[ChatMessage | None, ChatMessage | None]:
    previous = to_chat_message(before) if before is not None else None
    return to_chat_message(after), previous


DISCORD_BINDINGS: dict[str, EventBinding] = {
    "ready": EventBinding(("ready",)),
    "message_create": EventBinding(
        ("message",), message_scope, messages=_single_message
    ),
    "message_update": EventBinding(
        ("message_edit",), message_edit_scope, messages=_edited_message
    ),
    "message_delete": EventBinding(
        ("message_delete",), message_scope, messages=_single_message
    ),
    "message_delete_bulk": EventBinding(("bulk_message_delete",), bulk_delete_scope),
    "reaction_add": EventBinding(("reaction_add",), reaction_scope),
    "reaction_remove": EventBinding(("reaction_remove",), reaction_scope),
    "reaction_remove_all": EventBinding(("reaction_clear",), reaction_clear_scope),
    "channel_create": EventBinding(("guild_channel_create",), entity_scope),
    "channel_update": EventBinding(("guild_channel_update",), entity_update_scope),
    "channel_delete": EventBinding(("guild_channel_delete",), entity_scope),
    "guild_join": EventBinding(("guild_join",), guild_scope),
    "guild_remove": EventBinding(("guild_remove",), guild_scope),
    "guild_update": EventBinding(("guild_update",), guild_update_scope),
    "member_join": EventBinding(("member_join",), entity_scope),
    "member_remove": EventBinding(("member_remove",), entity_scope),
    "member_update": EventBinding(("member_update",), entity_update_scope),
    "member_ban": EventBinding(("member_ban",), ban_scope),
    "member_unban": EventBinding(("member_unban",), ban_scope),
    "role_create": EventBinding(("guild_role_create",), entity_scope),
    "role_update": EventBinding(("guild_role_update",), entity_update_scope),
    "role_delete": EventBinding(("guild_role_delete",), entity_scope),
    "typing_start": EventBinding(("typing",), typing_scope),
    "interaction_create": EventBinding(("interaction",), interaction_scope),
}


class DiscordInterface(LibraryInterface):
    """Binds internal events to ``bot.add_listener`` / ``bot.remove_listener``."""

    id = "discord"

    def __init__(
        self,
        token: str | None = None,
        *,
        guild_id: int | None = None,
        bot: discord.Bot | None = None,
    ) -> None:
        super().__init__(DISCORD_BINDINGS)
        self._token = token
        self._guild_id = guild_id
        # Defer bot creation until first use
        self._bot = bot

    def _ensure_bot(self) -> discord.Bot:
        if self._bot is not None:
            return self._bot

        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True
        # Privileged; needed for member_* events
        intents.members = True

        debug_guilds = [self._guild_id] if self._guild_id else None
        self._bot = discord.Bot(intents=intents, debug_guilds=debug_guilds)
        return self._bot

    @property
    def bot(self) -> discord.Bot:
        return self._ensure_bot()

    @property
    def self_id(self) -> str | None:
        if self._bot is None or self._bot.user is None:
            return None
        return str(self._bot.user.id)

    def _subscribe_raw(self, raw_event: str, handler: Handler) -> None:
        self.bot.add_listener(handler, f"on_{raw_event}")
        logger.debug("discord.listener_added", raw_event=raw_event)

    def _unsubscribe_raw(self, raw_event: str, handler: Handler) -> None:
        self.bot.remove_listener(handler, f"on_{raw_event}")
        logger.debug("discord.listener_removed", raw_event=raw_event)

    async def start(self) -> None:
        if not self._token:
            raise ValueError("Discord token is empty")
        bot = self._ensure_bot()
        logger.info("library.starting", library=self.id, guild_id=self._guild_id)
        try:
            await bot.start(self._token)
        except RuntimeError as e:
            # Suppress "Session is closed" error during shutdown
            if "Session is closed" not in str(e):
                raise

    async def close(self) -> None:
        if self._bot is not None and not self._bot.is_closed():
            await self._bot.close()
