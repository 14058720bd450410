from __future__ import annotations

from typing import TYPE_CHECKING

from .events import Event, is_event_name

if TYPE_CHECKING:
    from .module import Module


class Listener:
    """Reacts to one internal event name.

    ``module`` is ``None`` only for framework-owned listeners such as the
    ones a MessageCollector registers for the duration of a session.
    """

    label: str = ""
    event_name: str = ""
    description: str | None = None
    enabled: bool = True
    server_bypass: bool = False

    def __init__(self, module: Module | None = None) -> None:
        if not self.label:
            raise ValueError(f"{type(self).__name__} has no label")
        if not is_event_name(self.event_name):
            raise ValueError(
                f"listener {self.label!r} has unknown event name {self.event_name!r}"
            )
        self.module = module

    @property
    def module_label(self) -> str | None:
        return self.module.label if self.module is not None else None

    def __repr__(self) -> str:
        return (
            f"<Listener {self.label!r} event={self.event_name!r} "
            f"module={self.module_label!r}>"
        )

    async def execute(self, event: Event) -> None:
        raise NotImplementedError
