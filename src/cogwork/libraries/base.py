"""Library interface: one internal event taxonomy over different upstreams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from ..events import ChatMessage, Event, ScopeId, is_event_name
from ..logging import get_logger

logger = get_logger(__name__)

type ScopeResolver = Callable[..., ScopeId | None]
type MessageNormalizer = Callable[..., tuple[ChatMessage | None, ChatMessage | None]]
type EventFilter = Callable[..., bool]
type Handler = Callable[..., Awaitable[None]]


def _no_scope(*_payload: Any) -> None:
    return None


@dataclass(frozen=True, slots=True)
class EventBinding:
    """How one internal event maps onto an upstream library.

    ``raw_events`` lists the upstream event names; an empty tuple means the
    upstream never emits this event. ``accepts`` narrows a raw event shared
    by several internal events (Telegram's ``chat_member``).
    """

    raw_events: tuple[str, ...]
    resolver: ScopeResolver = _no_scope
    messages: MessageNormalizer | None = None
    accepts: EventFilter | None = None


UNSUPPORTED = EventBinding(raw_events=())


class LibraryInterface(ABC):
    id: ClassVar[str]

    def __init__(self, bindings: Mapping[str, EventBinding]) -> None:
        for name in bindings:
            if not is_event_name(name):
                raise ValueError(f"{type(self).__name__}: unknown event name {name!r}")
        self._bindings = dict(bindings)

    @property
    def bindings(self) -> Mapping[str, EventBinding]:
        return self._bindings

    def binding(self, event_name: str) -> EventBinding | None:
        return self._bindings.get(event_name)

    def raw_events(self, event_name: str) -> tuple[str, ...]:
        binding = self._bindings.get(event_name)
        return binding.raw_events if binding is not None else ()

    def supports(self, event_name: str) -> bool:
        return bool(self.raw_events(event_name))

    def resolve_scope(self, event_name: str, *payload: Any) -> ScopeId | None:
        """Scope the payload occurred in, or None.

        Never raises: scope is advisory, an unexpected payload shape simply
        has no scope.
        """
        binding = self._bindings.get(event_name)
        if binding is None:
            return None
        try:
            return binding.resolver(*payload)
        except Exception as exc:
            logger.debug(
                "scope.unresolved",
                library=self.id,
                event=event_name,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return None

    def normalize(self, event_name: str, *payload: Any) -> Event | None:
        """Build the internal Event, or None when the payload belongs elsewhere."""
        binding = self._bindings.get(event_name)
        if binding is None:
            return None
        if binding.accepts is not None:
            try:
                accepted = binding.accepts(*payload)
            except Exception as exc:
                logger.debug(
                    "event.filter_failed",
                    library=self.id,
                    event=event_name,
                    error=str(exc),
                )
                accepted = False
            if not accepted:
                return None
        message: ChatMessage | None = None
        previous: ChatMessage | None = None
        if binding.messages is not None:
            try:
                message, previous = binding.messages(*payload)
            except Exception as exc:
                logger.debug(
                    "message.unparsed",
                    library=self.id,
                    event=event_name,
                    error=str(exc),
                )
        return Event(
            name=event_name,
            scope=self.resolve_scope(event_name, *payload),
            payload=payload,
            message=message,
            previous=previous,
        )

    def subscribe(self, event_name: str, handler: Handler) -> None:
        raw_events = self.raw_events(event_name)
        if not raw_events:
            logger.warning("event.unsupported", library=self.id, event=event_name)
            return
        for raw in raw_events:
            self._subscribe_raw(raw, handler)

    def unsubscribe(self, event_name: str, handler: Handler) -> None:
        for raw in self.raw_events(event_name):
            self._unsubscribe_raw(raw, handler)

    @property
    @abstractmethod
    def self_id(self) -> str | None:
        """Upstream user id of the bot itself, once connected."""

    @abstractmethod
    def _subscribe_raw(self, raw_event: str, handler: Handler) -> None: ...

    @abstractmethod
    def _unsubscribe_raw(self, raw_event: str, handler: Handler) -> None: ...

    @abstractmethod
    async def start(self) -> None:
        """Connect and deliver events until closed."""

    @abstractmethod
    async def close(self) -> None: ...
