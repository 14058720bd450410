"""Modules bundle Commands and Listeners with shared defaults."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from .collection import KeyedContainer
from .command import Command, CommandOptions, CommandPermissions
from .listener import Listener
from .loaders import CommandLoader, EntityLike, ListenerLoader
from .logging import get_logger

if TYPE_CHECKING:
    from .registry import CommandRegistry, ListenerRegistry

logger = get_logger(__name__)


class ModuleHost(Protocol):
    @property
    def command_registry(self) -> CommandRegistry: ...

    @property
    def listener_registry(self) -> ListenerRegistry: ...


@dataclass(frozen=True, slots=True)
class ModuleInfo:
    name: str | None = None
    category: str | None = None
    description: str | None = None


class Module:
    """A deployable unit of Commands and Listeners.

    Subclasses set ``label`` and override ``setup`` to call ``init`` with
    their entity classes::

        class Fun(Module):
            label = "fun"

            def setup(self) -> None:
                self.init(commands=[Ping], listeners=[Greeter])

    ``enabled`` switches the module off everywhere; ``server_bypass``
    prevents it from being disabled per scope.
    """

    label: str = ""
    enabled: bool = True
    server_bypass: bool = False
    info: ModuleInfo | None = None

    def __init__(
        self,
        host: ModuleHost,
        *,
        label: str | None = None,
        enabled: bool | None = None,
        server_bypass: bool | None = None,
        info: ModuleInfo | None = None,
        permissions: CommandPermissions | None = None,
        options: CommandOptions | None = None,
    ) -> None:
        if label is not None:
            self.label = label
        if not self.label:
            raise ValueError(f"{type(self).__name__} has no label")
        if enabled is not None:
            self.enabled = enabled
        if server_bypass is not None:
            self.server_bypass = server_bypass
        self.info = info or self.info or ModuleInfo(name=self.label)

        self.host = host
        self.commands: KeyedContainer[Command] = KeyedContainer(
            base=Command, origin=f"MODULE({self.label})"
        )
        self.listeners: KeyedContainer[Listener] = KeyedContainer(
            base=Listener, origin=f"MODULE({self.label})"
        )
        self.permissions = permissions or CommandPermissions()
        self.options = options or CommandOptions()

        self.command_loader = CommandLoader(self)
        self.listener_loader = ListenerLoader(self)

    def __repr__(self) -> str:
        return (
            f"<Module {self.label!r} commands={self.commands.size} "
            f"listeners={self.listeners.size}>"
        )

    def setup(self) -> None:
        """Declare the module's entities; called once after registration."""

    def init(
        self,
        commands: Iterable[EntityLike[Command]] | None = None,
        listeners: Iterable[EntityLike[Listener]] | None = None,
    ) -> None:
        """Load commands and listeners.

        Both sets are attempted even if the first fails; nothing already
        loaded is rolled back. The first failure is raised afterwards.
        Calling this twice with the same labels raises
        DuplicateRegistrationError.
        """
        errors: list[Exception] = []
        if commands is not None:
            try:
                self.command_loader.load_all(commands)
            except Exception as exc:
                errors.append(exc)
        if listeners is not None:
            try:
                self.listener_loader.load_all(listeners)
            except Exception as exc:
                errors.append(exc)
        if errors:
            logger.error(
                "module.init_failed",
                module=self.label,
                commands=self.commands.size,
                listeners=self.listeners.size,
                error=str(errors[0]),
            )
            raise errors[0]
        logger.info(
            "module.initialized",
            module=self.label,
            commands=self.commands.size,
            listeners=self.listeners.size,
        )

    def teardown(self) -> None:
        """Unregister every command and listener this module still holds."""
        commands = self.command_loader.unload_all()
        listeners = self.listener_loader.unload_all()
        logger.info(
            "module.torn_down",
            module=self.label,
            commands=commands,
            listeners=listeners,
        )
