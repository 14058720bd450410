"""Process-wide subscription table between listeners and the library.

EventManager is the only writer of the table and the only caller of the
library's subscribe/unsubscribe. Registries and collectors go through
``register_listener`` / ``unregister_listener``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from anyio.abc import TaskGroup

from .errors import DuplicateRegistrationError
from .events import Event
from .guard import EnablementGuard, ScopeToggles
from .logging import bind_scope, clear_context, get_logger

if TYPE_CHECKING:
    from .libraries.base import Handler, LibraryInterface
    from .listener import Listener

logger = get_logger(__name__)


@dataclass(slots=True)
class Subscription:
    event_name: str
    # Passed verbatim to unsubscribe
    handler: Handler
    listeners: list[Listener] = field(default_factory=list)


class EventManager:
    def __init__(
        self,
        library: LibraryInterface,
        *,
        guard: EnablementGuard | None = None,
        task_group: TaskGroup | None = None,
    ) -> None:
        self._library = library
        self._guard: EnablementGuard = guard if guard is not None else ScopeToggles()
        self._task_group = task_group
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def library(self) -> LibraryInterface:
        return self._library

    @property
    def events(self) -> tuple[str, ...]:
        return tuple(self._subscriptions)

    def bind_task_group(self, task_group: TaskGroup | None) -> None:
        self._task_group = task_group

    def is_subscribed(self, event_name: str) -> bool:
        return event_name in self._subscriptions

    def listeners_for(self, event_name: str) -> tuple[Listener, ...]:
        sub = self._subscriptions.get(event_name)
        return tuple(sub.listeners) if sub is not None else ()

    def register_listener(self, listener: Listener) -> None:
        event_name = listener.event_name
        sub = self._subscriptions.get(event_name)
        if sub is None:
            handler = self._make_handler(event_name)
            self._library.subscribe(event_name, handler)
            sub = Subscription(event_name=event_name, handler=handler)
            self._subscriptions[event_name] = sub
            logger.info("event.bound", event=event_name, library=self._library.id)
        elif any(item.label == listener.label for item in sub.listeners):
            raise DuplicateRegistrationError(
                listener.label, origin="EVENT-MANAGER", module=listener.module_label
            )
        sub.listeners.append(listener)
        logger.info(
            "listener.bound",
            label=listener.label,
            event=event_name,
            listeners=len(sub.listeners),
        )

    def unregister_listener(self, event_name: str, label: str) -> bool:
        """Drop ``label`` from ``event_name``; False when it was not there."""
        sub = self._subscriptions.get(event_name)
        if sub is None:
            return False
        for index, listener in enumerate(sub.listeners):
            if listener.label == label:
                del sub.listeners[index]
                break
        else:
            return False
        logger.info("listener.unbound", label=label, event=event_name)
        if not sub.listeners:
            del self._subscriptions[event_name]
            self._library.unsubscribe(event_name, sub.handler)
            logger.info("event.unbound", event=event_name, library=self._library.id)
        return True

    def _make_handler(self, event_name: str) -> Handler:
        async def handler(*payload: Any) -> None:
            self.dispatch(event_name, *payload)

        handler.__name__ = f"dispatch_{event_name}"
        return handler

    def dispatch(self, event_name: str, *payload: Any) -> int:
        """Schedule every enabled listener for one upstream occurrence.

        Listeners start in registration order; none is awaited here.
        Returns the number of listeners scheduled.
        Scheduling needs a task group from ``bind_task_group``.
        """
        sub = self._subscriptions.get(event_name)
        if sub is None:
            return 0
        event = self._library.normalize(event_name, *payload)
        if event is None:
            return 0
        scheduled = 0
        for listener in tuple(sub.listeners):
            if not self._guard.is_enabled(event.scope, listener):
                logger.debug(
                    "listener.skipped",
                    label=listener.label,
                    event=event_name,
                    scope=event.scope,
                )
                continue
            self._spawn(self._run_listener, listener, event)
            scheduled += 1
        return scheduled

    def _spawn(
        self, func: Callable[[Listener, Event], Awaitable[None]], *args: Any
    ) -> None:
        if self._task_group is None:
            raise RuntimeError(
                "EventManager has no task group; call bind_task_group first"
            )
        self._task_group.start_soon(func, *args)

    async def _run_listener(self, listener: Listener, event: Event) -> None:
        bind_scope(event=event.name, listener=listener.label, scope=event.scope)
        try:
            await listener.execute(event)
        except Exception as exc:
            logger.error(
                "listener.failed",
                label=listener.label,
                module=listener.module_label,
                error=str(exc),
                error_type=exc.__class__.__name__,
                exc_info=True,
            )
        finally:
            clear_context()
