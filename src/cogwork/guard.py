"""Per-scope enablement checks consulted before a Listener runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .events import ScopeId

if TYPE_CHECKING:
    from .listener import Listener


class EnablementGuard(Protocol):
    def is_enabled(self, scope: ScopeId | None, listener: Listener) -> bool: ...


class ScopeToggles:
    """In-memory module/listener toggles per scope.

    Global ``enabled`` flags always apply. ``server_bypass`` on the listener
    or its module makes it immune to per-scope toggles. Scope-less events
    only see the global flags.
    """

    def __init__(self) -> None:
        self._disabled_modules: dict[ScopeId, set[str]] = {}
        self._disabled_listeners: dict[ScopeId, set[str]] = {}

    def disable_module(self, scope: ScopeId, label: str) -> None:
        self._disabled_modules.setdefault(scope, set()).add(label)

    def enable_module(self, scope: ScopeId, label: str) -> None:
        self._disabled_modules.get(scope, set()).discard(label)

    def disable_listener(self, scope: ScopeId, label: str) -> None:
        self._disabled_listeners.setdefault(scope, set()).add(label)

    def enable_listener(self, scope: ScopeId, label: str) -> None:
        self._disabled_listeners.get(scope, set()).discard(label)

    def is_module_disabled(self, scope: ScopeId, label: str) -> bool:
        return label in self._disabled_modules.get(scope, ())

    def is_listener_disabled(self, scope: ScopeId, label: str) -> bool:
        return label in self._disabled_listeners.get(scope, ())

    def is_enabled(self, scope: ScopeId | None, listener: Listener) -> bool:
        module = listener.module
        if not listener.enabled:
            return False
        if module is not None and not module.enabled:
            return False
        if scope is None:
            return True
        if listener.server_bypass or (module is not None and module.server_bypass):
            return True
        if module is not None and self.is_module_disabled(scope, module.label):
            return False
        return not self.is_listener_disabled(scope, listener.label)
