"""Registries of pluggable entities, each backed by a KeyedContainer."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, ClassVar

from .collection import KeyedContainer
from .command import Command
from .errors import DuplicateRegistrationError, NotRegisteredError
from .listener import Listener
from .logging import get_logger
from .module import Module

if TYPE_CHECKING:
    from .event_manager import EventManager

logger = get_logger(__name__)


def _module_label(entity: Any) -> str | None:
    if isinstance(entity, Module):
        return entity.label
    module = getattr(entity, "module", None)
    return module.label if module is not None else None


class Registry[T]:
    origin: ClassVar[str] = "REGISTRY"

    def __init__(self, base: type[T]) -> None:
        self.registry: KeyedContainer[T] = KeyedContainer(base=base, origin=self.origin)

    @property
    def size(self) -> int:
        return self.registry.size

    def __len__(self) -> int:
        return self.registry.size

    def __contains__(self, label: object) -> bool:
        return label in self.registry

    def __iter__(self) -> Iterator[T]:
        return iter(self.registry)

    def labels(self) -> list[str]:
        return self.registry.keys()

    def has(self, label: str) -> bool:
        return self.registry.has(label)

    def get(self, label: str) -> T | None:
        return self.registry.get(label)

    def register(self, label: str, entity: T) -> None:
        if self.registry.has(label):
            raise DuplicateRegistrationError(
                label, origin=self.origin, module=_module_label(entity)
            )
        self.registry.add(label, entity)

    def unregister(self, label: str) -> T:
        entity = self.registry.get(label)
        if entity is None:
            raise NotRegisteredError(label, origin=self.origin)
        self.registry.remove(label)
        return entity


class CommandRegistry(Registry[Command]):
    """Commands by label, with a secondary alias index."""

    origin = "COMMAND-REGISTRY"

    def __init__(self) -> None:
        super().__init__(Command)
        self._aliases: dict[str, str] = {}

    def register(self, label: str, entity: Command) -> None:
        module = _module_label(entity)
        if self.registry.has(label) or label in self._aliases:
            raise DuplicateRegistrationError(label, origin=self.origin, module=module)
        for alias in entity.aliases:
            if alias == label:
                continue
            if alias in self._aliases or self.registry.has(alias):
                raise DuplicateRegistrationError(
                    alias, origin=self.origin, module=module
                )
        self.registry.add(label, entity)
        for alias in entity.aliases:
            if alias != label:
                self._aliases[alias] = label
        logger.debug("command.registered", label=label, module=module)

    def unregister(self, label: str) -> Command:
        command = super().unregister(label)
        for alias in command.aliases:
            if self._aliases.get(alias) == label:
                del self._aliases[alias]
        logger.debug("command.unregistered", label=label, module=_module_label(command))
        return command

    def resolve(self, name: str) -> Command | None:
        """Look up by label first, then by alias."""
        command = self.registry.get(name)
        if command is not None:
            return command
        label = self._aliases.get(name)
        return self.registry.get(label) if label is not None else None


class ListenerRegistry(Registry[Listener]):
    """Listeners by label; registration also binds them in the EventManager."""

    origin = "LISTENER-REGISTRY"

    def __init__(self, event_manager: EventManager) -> None:
        super().__init__(Listener)
        self._event_manager = event_manager

    @property
    def event_manager(self) -> EventManager:
        return self._event_manager

    def register(self, label: str, entity: Listener) -> None:
        super().register(label, entity)
        try:
            self._event_manager.register_listener(entity)
        except Exception:
            self.registry.remove(label)
            raise
        logger.info(
            "listener.registered",
            label=label,
            event=entity.event_name,
            module=entity.module_label,
        )

    def unregister(self, label: str) -> Listener:
        listener = self.registry.get(label)
        if listener is None:
            raise NotRegisteredError(label, origin=self.origin)
        self._event_manager.unregister_listener(listener.event_name, listener.label)
        self.registry.remove(label)
        logger.info(
            "listener.unregistered",
            label=label,
            event=listener.event_name,
            module=listener.module_label,
        )
        return listener


class ModuleRegistry(Registry[Module]):
    origin = "MODULE-REGISTRY"

    def __init__(self) -> None:
        super().__init__(Module)

    def register(self, label: str, entity: Module) -> None:
        super().register(label, entity)
        logger.info("module.registered", module=label)

    def unregister(self, label: str) -> Module:
        """Tear the module down, then forget it."""
        module = self.registry.get(label)
        if module is None:
            raise NotRegisteredError(label, origin=self.origin)
        module.teardown()
        self.registry.remove(label)
        logger.info("module.unregistered", module=label)
        return module
