"""Apply or revert a batch of entities for one Module."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, ClassVar

from .command import Command
from .errors import DuplicateKeyError, DuplicateRegistrationError, NotRegisteredError
from .listener import Listener
from .logging import get_logger

if TYPE_CHECKING:
    from .collection import KeyedContainer
    from .module import Module
    from .registry import Registry

logger = get_logger(__name__)

type EntityLike[T] = T | type[T]


class Loader[T: (Command, Listener)](ABC):
    """Moves entities between a Module's container and a registry.

    ``load`` adds to the module container first and rolls that back when the
    registry refuses, so a failed load leaves nothing behind.
    """

    kind: ClassVar[str]
    base: ClassVar[type]
    origin: ClassVar[str]

    def __init__(self, module: Module) -> None:
        self._module = module

    @property
    def module(self) -> Module:
        return self._module

    @abstractmethod
    def _container(self) -> KeyedContainer[T]: ...

    @abstractmethod
    def _registry(self) -> Registry[T]: ...

    def _build(self, item: EntityLike[T]) -> T:
        entity: Any = item(self._module) if isinstance(item, type) else item
        if not isinstance(entity, self.base):
            raise TypeError(
                f"{self.origin}: expected a {self.base.__name__}, "
                f"got {type(entity).__name__}"
            )
        if entity.module is not self._module:
            raise ValueError(
                f"{self.origin}: {self.kind} {entity.label!r} belongs to another module"
            )
        return entity

    def load(self, item: EntityLike[T]) -> T:
        entity = self._build(item)
        label = entity.label
        container = self._container()
        try:
            container.add(label, entity)
        except DuplicateKeyError:
            raise DuplicateRegistrationError(
                label, origin=self.origin, module=self._module.label
            ) from None
        try:
            self._registry().register(label, entity)
        except Exception:
            container.remove(label)
            raise
        logger.info(
            f"{self.kind}.initialized", label=label, module=self._module.label
        )
        return entity

    def load_all(self, items: Iterable[EntityLike[T]]) -> list[T]:
        """Load in order; the first failure stops the batch and propagates."""
        return [self.load(item) for item in items]

    def unload(self, label: str) -> T:
        entity = self._container().get(label)
        if entity is None:
            raise NotRegisteredError(label, origin=self.origin, module=self._module.label)
        registry = self._registry()
        if registry.get(label) is entity:
            registry.unregister(label)
        self._container().remove(label)
        return entity

    def unload_all(self) -> int:
        """Unload every entity of the module; already-gone ones are skipped."""
        count = 0
        for label in self._container().keys():
            try:
                self.unload(label)
            except NotRegisteredError:
                logger.debug(
                    f"{self.kind}.already_unloaded",
                    label=label,
                    module=self._module.label,
                )
                continue
            count += 1
        return count


class CommandLoader(Loader[Command]):
    kind = "command"
    base = Command
    origin = "COMMAND-LOADER"

    def _container(self) -> KeyedContainer[Command]:
        return self._module.commands

    def _registry(self) -> Registry[Command]:
        return self._module.host.command_registry


class ListenerLoader(Loader[Listener]):
    kind = "listener"
    base = Listener
    origin = "LISTENER-LOADER"

    def _container(self) -> KeyedContainer[Listener]:
        return self._module.listeners

    def _registry(self) -> Registry[Listener]:
        return self._module.host.listener_registry
