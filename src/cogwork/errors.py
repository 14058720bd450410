from __future__ import annotations


class CogworkError(RuntimeError):
    """Base error carrying where it was raised and which Module caused it."""

    def __init__(
        self,
        message: str,
        *,
        origin: str | None = None,
        module: str | None = None,
    ) -> None:
        self.message = message
        self.origin = origin
        self.module = module
        super().__init__(self._render())

    def _render(self) -> str:
        parts: list[str] = []
        if self.origin:
            parts.append(f"[{self.origin}]")
        if self.module:
            parts.append(f"[Module({self.module})]")
        parts.append(self.message)
        return " ".join(parts)


class DuplicateKeyError(CogworkError):
    def __init__(
        self,
        key: str,
        *,
        origin: str | None = None,
        module: str | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message or f"key {key!r} is already present", origin=origin, module=module
        )
        self.key = key


class DuplicateRegistrationError(DuplicateKeyError):
    def __init__(
        self, label: str, *, origin: str | None = None, module: str | None = None
    ) -> None:
        super().__init__(
            label,
            origin=origin,
            module=module,
            message=f"Register [{label}]: already registered",
        )

    @property
    def label(self) -> str:
        return self.key


class NotRegisteredError(CogworkError):
    def __init__(
        self, label: str, *, origin: str | None = None, module: str | None = None
    ) -> None:
        super().__init__(
            f"Unregister [{label}]: not registered", origin=origin, module=module
        )
        self.label = label


class CollectionTimedOutError(CogworkError):
    def __init__(self, timeout: float, *, channel_id: str | None = None) -> None:
        message = f"collector timed out after {timeout:g}s"
        if channel_id is not None:
            message = f"{message} in channel {channel_id}"
        super().__init__(message, origin="COLLECTOR")
        self.timeout = timeout
        self.channel_id = channel_id
