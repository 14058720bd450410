"""Ordered, uniquely keyed container backing every registry."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from .errors import DuplicateKeyError, NotRegisteredError


class KeyedContainer[T]:
    """Mapping of label -> value with unique keys and insertion order.

    When ``base`` is given every value must be an instance of it.
    ``get`` and ``remove`` return ``None`` on a miss instead of raising.
    """

    __slots__ = ("_base", "_items", "_origin")

    def __init__(
        self,
        *,
        base: type[T] | None = None,
        origin: str | None = None,
    ) -> None:
        self._base = base
        self._origin = origin
        self._items: dict[str, T] = {}

    @property
    def base(self) -> type[T] | None:
        return self._base

    @property
    def size(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, label: object) -> bool:
        return label in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def __repr__(self) -> str:
        base = self._base.__name__ if self._base is not None else "Any"
        return f"KeyedContainer[{base}]({list(self._items)!r})"

    def _check(self, value: T) -> None:
        if self._base is not None and not isinstance(value, self._base):
            raise TypeError(
                f"expected {self._base.__name__}, got {type(value).__name__}"
            )

    def has(self, label: str) -> bool:
        return label in self._items

    def add(self, label: str, value: T) -> T:
        if label in self._items:
            raise DuplicateKeyError(label, origin=self._origin)
        self._check(value)
        self._items[label] = value
        return value

    def get(self, label: str) -> T | None:
        return self._items.get(label)

    def update(self, label: str, value: T) -> T:
        """Replace the value stored under an existing label."""
        if label not in self._items:
            raise NotRegisteredError(label, origin=self._origin)
        self._check(value)
        self._items[label] = value
        return value

    def remove(self, label: str) -> T | None:
        return self._items.pop(label, None)

    def clear(self) -> None:
        self._items.clear()

    def keys(self) -> list[str]:
        return list(self._items)

    def values(self) -> list[T]:
        return list(self._items.values())

    def items(self) -> list[tuple[str, T]]:
        return list(self._items.items())

    def find(self, predicate: Callable[[T], bool]) -> T | None:
        for value in self._items.values():
            if predicate(value):
                return value
        return None

    def filter(self, predicate: Callable[[T], bool]) -> list[T]:
        return [value for value in self._items.values() if predicate(value)]

    def map[R](self, func: Callable[[T], R]) -> list[R]:
        return [func(value) for value in self._items.values()]
