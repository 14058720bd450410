"""Library selection: resolved once at startup from configuration."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from ..config import ConfigError
from ..logging import get_logger
from .base import EventBinding, Handler, LibraryInterface, ScopeResolver

if TYPE_CHECKING:
    from ..settings import CogworkSettings

logger = get_logger(__name__)

LIBRARY_IDS: tuple[str, ...] = ("discord", "telegram")

__all__ = [
    "EventBinding",
    "Handler",
    "LIBRARY_IDS",
    "LibraryInterface",
    "ScopeResolver",
    "library_bindings",
    "pick_library",
]


def _unknown(library_id: str) -> ConfigError:
    available = ", ".join(LIBRARY_IDS)
    return ConfigError(f"Unknown library {library_id!r}. Available: {available}.")


def library_bindings(library_id: str) -> Mapping[str, EventBinding]:
    if library_id == "discord":
        from .discord import DISCORD_BINDINGS

        return DISCORD_BINDINGS
    if library_id == "telegram":
        from .telegram import TELEGRAM_BINDINGS

        return TELEGRAM_BINDINGS
    raise _unknown(library_id)


def pick_library(settings: CogworkSettings) -> LibraryInterface:
    """Build the library interface named by ``settings.library``."""
    library_id = settings.library
    library: LibraryInterface
    if library_id == "discord":
        from .discord import DiscordInterface

        library = DiscordInterface(
            settings.bot_token(), guild_id=settings.discord.guild_id
        )
    elif library_id == "telegram":
        from .telegram import TelegramInterface

        library = TelegramInterface(
            settings.bot_token(), poll_timeout_s=settings.telegram.poll_timeout_s
        )
    else:
        raise _unknown(library_id)
    logger.info("library.selected", library=library.id)
    return library
