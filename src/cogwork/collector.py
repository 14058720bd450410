"""Collect the messages a channel receives for one bounded session."""

from __future__ import annotations

import dataclasses
import itertools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Literal

import anyio

from .collection import KeyedContainer
from .errors import CollectionTimedOutError, NotRegisteredError
from .events import ChatMessage, Event
from .listener import Listener
from .logging import get_logger
from .settings import CollectorSettings

if TYPE_CHECKING:
    from .event_manager import EventManager

logger = get_logger(__name__)

type CollectorState = Literal["idle", "running", "ended", "timed_out"]
type Signal = Literal["collect", "edit", "delete"]

SIGNALS: tuple[Signal, ...] = ("collect", "edit", "delete")


@dataclass(frozen=True, slots=True)
class SessionOptions:
    channel_id: str
    timeout: float
    count: int
    ignore_bots: bool
    user_id: str | None
    case_sensitive: bool


class _SessionListener(Listener):
    # Framework-owned: no module, never disabled per scope.
    server_bypass = True

    def __init__(
        self,
        label: str,
        event_name: str,
        handler: Callable[[Event], Awaitable[None]],
    ) -> None:
        self.label = label
        self.event_name = event_name
        super().__init__(None)
        self._handler = handler

    async def execute(self, event: Event) -> None:
        await self._handler(event)


class MessageCollector:
    """Gathers messages from one channel until a count or a deadline.

    ``run`` subscribes to message creation, update and deletion through the
    EventManager and releases all three subscriptions on every exit path,
    including cancellation of the caller. Reaching ``count`` (or calling
    ``end``) returns the collected messages; hitting the deadline raises
    CollectionTimedOutError and discards what was collected.

    Signal callbacks registered with ``on`` are plain callables:
    ``collect(message)``, ``edit(old, new)`` and ``delete(message)``.
    """

    _sessions: ClassVar[itertools.count[int]] = itertools.count(1)

    def __init__(
        self,
        event_manager: EventManager,
        *,
        settings: CollectorSettings | None = None,
        timeout: float | None = None,
        count: int | None = None,
        ignore_bots: bool | None = None,
        user_id: str | int | None = None,
        case_sensitive: bool | None = None,
        settle: float | None = None,
    ) -> None:
        cfg = settings or CollectorSettings()
        self._event_manager = event_manager
        self.timeout = timeout if timeout is not None else cfg.timeout_s
        self.count = count if count is not None else cfg.count
        self.ignore_bots = ignore_bots if ignore_bots is not None else cfg.ignore_bots
        self.user_id = str(user_id) if user_id is not None else None
        self.case_sensitive = (
            case_sensitive if case_sensitive is not None else cfg.case_sensitive
        )
        self.settle = settle if settle is not None else cfg.settle_s

        self.state: CollectorState = "idle"
        self.messages: KeyedContainer[ChatMessage] = self._new_container()
        self._signals: dict[str, list[Callable[..., Any]]] = {
            name: [] for name in SIGNALS
        }
        self._options: SessionOptions | None = None
        self._done: anyio.Event | None = None
        self._listeners: list[Listener] = []

    @property
    def event_manager(self) -> EventManager:
        return self._event_manager

    @property
    def running(self) -> bool:
        """True while the session still accepts messages."""
        return (
            self.state == "running"
            and self._done is not None
            and not self._done.is_set()
        )

    @property
    def subscriptions(self) -> tuple[Listener, ...]:
        """Listeners the current session holds in the EventManager."""
        return tuple(self._listeners)

    @staticmethod
    def _new_container() -> KeyedContainer[ChatMessage]:
        return KeyedContainer(base=ChatMessage, origin="COLLECTOR")

    def on(self, signal: Signal, callback: Callable[..., Any]) -> None:
        if signal not in self._signals:
            raise ValueError(f"unknown collector signal {signal!r}")
        self._signals[signal].append(callback)

    def off(self, signal: Signal, callback: Callable[..., Any]) -> None:
        callbacks = self._signals.get(signal)
        if callbacks is None:
            raise ValueError(f"unknown collector signal {signal!r}")
        if callback in callbacks:
            callbacks.remove(callback)

    def _emit(self, signal: Signal, *args: Any) -> None:
        for callback in tuple(self._signals[signal]):
            callback(*args)

    async def run(
        self,
        channel_id: str | int,
        *,
        timeout: float | None = None,
        count: int | None = None,
        ignore_bots: bool | None = None,
        user_id: str | int | None = None,
        case_sensitive: bool | None = None,
    ) -> KeyedContainer[ChatMessage]:
        if self.state == "running":
            raise RuntimeError("collector is already running")
        if user_id is None:
            user_id = self.user_id
        options = SessionOptions(
            channel_id=str(channel_id),
            timeout=timeout if timeout is not None else self.timeout,
            count=count if count is not None else self.count,
            ignore_bots=ignore_bots if ignore_bots is not None else self.ignore_bots,
            user_id=str(user_id) if user_id is not None else None,
            case_sensitive=(
                case_sensitive if case_sensitive is not None else self.case_sensitive
            ),
        )
        self._options = options
        self.messages = self._new_container()
        self._done = anyio.Event()
        self.state = "running"
        self.on("collect", self._check_count)
        logger.debug(
            "collector.started",
            channel_id=options.channel_id,
            timeout=options.timeout,
            count=options.count,
        )
        try:
            self._bind(next(self._sessions))
            with anyio.move_on_after(options.timeout) as scope:
                await self._done.wait()
            if scope.cancelled_caught and self.state == "running":
                self.state = "timed_out"
                collected = self.messages.size
                self.messages = self._new_container()
                logger.info(
                    "collector.timed_out",
                    channel_id=options.channel_id,
                    collected=collected,
                )
                raise CollectionTimedOutError(
                    options.timeout, channel_id=options.channel_id
                )
            self.state = "ended"
            logger.info(
                "collector.ended",
                channel_id=options.channel_id,
                collected=self.messages.size,
            )
            return self.messages
        finally:
            self._release()
            self.off("collect", self._check_count)
            if self.state == "running":
                self.state = "ended"

    def end(self) -> None:
        """Finish the running session; ``run`` returns what was collected."""
        if self._done is not None and self.state == "running":
            self._done.set()

    def delete(self, message_id: str | int) -> KeyedContainer[ChatMessage]:
        key = str(message_id)
        if self.messages.remove(key) is None:
            raise NotRegisteredError(key, origin="COLLECTOR")
        return self.messages

    def _bind(self, session: int) -> None:
        handlers: tuple[tuple[str, Callable[[Event], Awaitable[None]]], ...] = (
            ("message_create", self._on_create),
            ("message_update", self._on_update),
            ("message_delete", self._on_delete),
        )
        for event_name, handler in handlers:
            kind = event_name.removeprefix("message_")
            listener = _SessionListener(
                f"collector:{session}:{kind}", event_name, handler
            )
            self._event_manager.register_listener(listener)
            self._listeners.append(listener)

    def _release(self) -> None:
        while self._listeners:
            listener = self._listeners.pop()
            self._event_manager.unregister_listener(
                listener.event_name, listener.label
            )

    def _check_count(self, _message: ChatMessage) -> None:
        if self._options is not None and self.messages.size >= self._options.count:
            self.end()

    def _in_channel(self, message: ChatMessage) -> bool:
        options = self._options
        return options is not None and message.channel_id == options.channel_id

    def _accepts(self, message: ChatMessage | None) -> bool:
        options = self._options
        if message is None or options is None:
            return False
        if not self._in_channel(message):
            return False
        self_id = self._event_manager.library.self_id
        if self_id is not None and message.author_id == self_id:
            return False
        if options.ignore_bots and message.author_is_bot:
            return False
        if options.user_id is not None and message.author_id != options.user_id:
            return False
        return True

    def _fold(self, message: ChatMessage) -> ChatMessage:
        if self._options is None or self._options.case_sensitive:
            return message
        return dataclasses.replace(message, content=message.content.lower())

    async def _on_create(self, event: Event) -> None:
        message = event.message
        if not self.running or message is None or not self._accepts(message):
            return
        if self.messages.has(message.id):
            return
        stored = self._fold(message)
        self.messages.add(stored.id, stored)
        self._emit("collect", stored)

    async def _on_update(self, event: Event) -> None:
        message = event.message
        if not self.running or message is None or not self._accepts(message):
            return
        old = self.messages.get(message.id)
        if old is None:
            return
        new = self._fold(message)
        self._emit("edit", old, new)
        await anyio.sleep(self.settle)
        if self.running and self.messages.has(new.id):
            self.messages.update(new.id, new)

    async def _on_delete(self, event: Event) -> None:
        message = event.message
        # Deletions may arrive without author data; match on channel only.
        if not self.running or message is None or not self._in_channel(message):
            return
        removed = self.messages.remove(message.id)
        if removed is not None:
            self._emit("delete", removed)
