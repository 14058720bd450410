from __future__ import annotations

from collections.abc import Callable
from typing import Any

import anyio

from cogwork.events import EVENT_NAMES, ChatMessage, Event
from cogwork.libraries.base import EventBinding, Handler, LibraryInterface
from cogwork.listener import Listener
from cogwork.module import Module

MESSAGE_EVENTS = ("message_create", "message_update", "message_delete")


def _scope_of(payload: Any) -> Any:
    return payload.scope


def _message_of(payload: ChatMessage) -> tuple[ChatMessage | None, ChatMessage | None]:
    return payload, None


def _bindings() -> dict[str, EventBinding]:
    bindings: dict[str, EventBinding] = {}
    for name in EVENT_NAMES:
        messages = _message_of if name in MESSAGE_EVENTS else None
        bindings[name] = EventBinding((name,), _scope_of, messages=messages)
    return bindings


class FakeLibrary(LibraryInterface):
    """Upstream where every internal event has a raw event of the same name.

    Message events take a ChatMessage payload; any other payload only needs
    a ``scope`` attribute.
    """

    id = "fake"

    def __init__(
        self,
        bindings: dict[str, EventBinding] | None = None,
        *,
        self_id: str | None = None,
    ) -> None:
        super().__init__(bindings if bindings is not None else _bindings())
        self._self_id = self_id
        self.handlers: dict[str, list[Handler]] = {}
        self.subscribe_calls: list[tuple[str, Handler]] = []
        self.unsubscribe_calls: list[tuple[str, Handler]] = []
        self.started = False
        self.closed = False

    @property
    def self_id(self) -> str | None:
        return self._self_id

    def _subscribe_raw(self, raw_event: str, handler: Handler) -> None:
        self.subscribe_calls.append((raw_event, handler))
        self.handlers.setdefault(raw_event, []).append(handler)

    def _unsubscribe_raw(self, raw_event: str, handler: Handler) -> None:
        self.unsubscribe_calls.append((raw_event, handler))
        handlers = self.handlers.get(raw_event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self.handlers.pop(raw_event, None)

    @property
    def active(self) -> dict[str, int]:
        return {name: len(items) for name, items in self.handlers.items() if items}

    async def fire(self, raw_event: str, *payload: Any) -> None:
        for handler in tuple(self.handlers.get(raw_event, ())):
            await handler(*payload)

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True


class RecordingListener(Listener):
    def __init__(
        self,
        label: str,
        event_name: str = "message_create",
        *,
        calls: list[tuple[str, Event]],
        module: Module | None = None,
        error: Exception | None = None,
    ) -> None:
        self.label = label
        self.event_name = event_name
        super().__init__(module)
        self.calls = calls
        self.error = error

    async def execute(self, event: Event) -> None:
        self.calls.append((self.label, event))
        if self.error is not None:
            raise self.error


class Occurrence:
    def __init__(self, scope: Any = None) -> None:
        self.scope = scope


def chat_message(
    message_id: str | int,
    content: str = "hello",
    *,
    channel_id: str = "c1",
    author_id: str = "u1",
    author_is_bot: bool = False,
    scope: Any = None,
    raw: Any = None,
) -> ChatMessage:
    return ChatMessage(
        id=str(message_id),
        channel_id=channel_id,
        scope=scope,
        author_id=author_id,
        author_is_bot=author_is_bot,
        content=content,
        raw=raw,
    )


async def wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0.001)


class EchoListener(Listener):
    label = "echo"
    event_name = "message_create"

    async def execute(self, event: Event) -> None:
        self.module.seen.append(event)


class EchoModule(Module):
    """Importable module factory for configuration tests."""

    label = "echo"

    def __init__(self, host, **kwargs: Any) -> None:
        super().__init__(host, **kwargs)
        self.seen: list[Event] = []

    def setup(self) -> None:
        self.init(listeners=[EchoListener])
