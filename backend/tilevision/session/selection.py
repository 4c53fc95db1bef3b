"""Toggle-style selection sets over catalog items and detected objects."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class SelectionRegistry(Generic[T]):
    """Insertion-ordered set of items keyed by id.

    Items are never copied; the registry holds references to the static
    catalog objects (or detected-object names) it is given.
    """

    def __init__(self, key: Callable[[T], str]) -> None:
        self._key = key
        self._items: dict[str, T] = {}

    def toggle(self, item: T) -> bool:
        """Add ``item`` if absent, remove it if present. Returns whether it is now selected."""
        item_id = self._key(item)
        if item_id in self._items:
            del self._items[item_id]
            return False
        self._items[item_id] = item
        return True

    def get(self, item_id: str) -> T | None:
        return self._items.get(item_id)

    def is_selected(self, item_id: str) -> bool:
        return item_id in self._items

    def items(self) -> list[T]:
        return list(self._items.values())

    def ids(self) -> list[str]:
        return list(self._items)

    def replace(self, items: list[T]) -> None:
        self._items = {self._key(item): item for item in items}

    def clear(self) -> None:
        self._items.clear()

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)
