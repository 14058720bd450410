"""Wires one library, the EventManager and the registries together."""

from __future__ import annotations

from collections.abc import Callable
from importlib.metadata import EntryPoint
from typing import Any

import anyio

from .collector import MessageCollector
from .config import ConfigError
from .event_manager import EventManager
from .guard import EnablementGuard
from .libraries import LibraryInterface, pick_library
from .logging import get_logger
from .module import Module
from .registry import CommandRegistry, ListenerRegistry, ModuleRegistry
from .settings import CogworkSettings

logger = get_logger(__name__)

type ModuleFactory = Callable[[Cogwork], Module]

MODULE_GROUP = "cogwork.modules"


def resolve_module_factory(path: str) -> ModuleFactory:
    """Import ``package.module:factory``; the factory is usually a Module subclass."""
    name = path.rpartition(":")[2]
    try:
        factory = EntryPoint(name=name, value=path, group=MODULE_GROUP).load()
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"Failed to import module {path!r}: {exc}") from exc
    if not callable(factory):
        raise ConfigError(f"Module {path!r} is not callable.")
    return factory


class Cogwork:
    """Application host handed to every Module.

    Owns the single EventManager; registries and collectors receive it
    explicitly.
    """

    def __init__(
        self,
        settings: CogworkSettings,
        *,
        library: LibraryInterface | None = None,
        guard: EnablementGuard | None = None,
    ) -> None:
        self.settings = settings
        self.library = library if library is not None else pick_library(settings)
        self.event_manager = EventManager(self.library, guard=guard)
        self.command_registry = CommandRegistry()
        self.listener_registry = ListenerRegistry(self.event_manager)
        self.module_registry = ModuleRegistry()

    def load_module(self, factory: ModuleFactory) -> Module:
        """Build, register and set up one module.

        A failing ``setup`` propagates; the module stays registered with
        whatever it managed to load, so ``unload_module`` can clean it up.
        """
        module = factory(self)
        if not isinstance(module, Module):
            raise TypeError(
                f"module factory returned {type(module).__name__}, expected Module"
            )
        self.module_registry.register(module.label, module)
        module.setup()
        return module

    def unload_module(self, label: str) -> Module:
        return self.module_registry.unregister(label)

    def load_modules_from_settings(self) -> list[Module]:
        return [
            self.load_module(resolve_module_factory(path))
            for path in self.settings.modules
        ]

    def collector(self, **overrides: Any) -> MessageCollector:
        return MessageCollector(
            self.event_manager, settings=self.settings.collector, **overrides
        )

    async def run(self) -> None:
        async with anyio.create_task_group() as tg:
            self.event_manager.bind_task_group(tg)
            logger.info(
                "cogwork.starting",
                library=self.library.id,
                modules=self.module_registry.labels(),
                events=list(self.event_manager.events),
            )
            try:
                await self.library.start()
            finally:
                self.event_manager.bind_task_group(None)
                await self.library.close()
                tg.cancel_scope.cancel()
        logger.info("cogwork.stopped", library=self.library.id)
