from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .module import Module


@dataclass(slots=True)
class CommandPermissions:
    """Permission requirements; evaluated by the command parser, not here."""

    bot: tuple[str, ...] = ()
    author: tuple[str, ...] = ()
    allowed_users: tuple[str, ...] = ()
    allowed_roles: tuple[str, ...] = ()
    staff_only: bool = False


@dataclass(slots=True)
class CommandOptions:
    guild_only: bool = False
    hidden: bool = False
    cooldown_s: float = 3.0
    delete_invocation: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CommandInfo:
    description: str | None = None
    usage: str | None = None
    examples: tuple[str, ...] = ()


class Command:
    """A named unit of behavior owned by one Module.

    Subclasses set ``label`` (and optionally ``aliases``) and implement
    ``execute``. Permissions and options default to the owning Module's.
    """

    label: str = ""
    aliases: tuple[str, ...] = ()
    enabled: bool = True
    server_bypass: bool = False
    info: CommandInfo = CommandInfo()
    permissions: CommandPermissions | None = None
    options: CommandOptions | None = None

    def __init__(self, module: Module) -> None:
        if not self.label:
            raise ValueError(f"{type(self).__name__} has no label")
        self.module = module
        self.aliases = tuple(self.aliases)
        if self.permissions is None:
            self.permissions = module.permissions
        if self.options is None:
            self.options = module.options

    def __repr__(self) -> str:
        return f"<Command {self.label!r} module={self.module.label!r}>"

    async def execute(self, ctx: Any) -> None:
        raise NotImplementedError
