"""Undo/redo history of image states for one edit session."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class HistoryStack(Generic[T]):
    """Linear sequence of entries with a cursor.

    Pushing after an undo discards everything past the cursor. Discarded
    entries are handed to ``release`` so their image buffers can be freed.
    With ``max_entries`` set, the oldest entry is dropped once the stack
    grows past the bound.
    """

    def __init__(
        self,
        release: Callable[[T], None] | None = None,
        max_entries: int | None = None,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: list[T] = []
        self._cursor = -1
        self._release = release
        self.max_entries = max_entries

    @property
    def entries(self) -> list[T]:
        return list(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    def current(self) -> T | None:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    def push(self, entry: T) -> None:
        discarded = self._entries[self._cursor + 1 :]
        del self._entries[self._cursor + 1 :]
        self._entries.append(entry)
        self._cursor = len(self._entries) - 1

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                discarded.append(self._entries.pop(0))
                self._cursor -= 1

        for old in discarded:
            self._drop(old)

    def undo(self) -> bool:
        if self._cursor <= 0:
            return False
        self._cursor -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._cursor += 1
        return True

    def jump(self, index: int) -> bool:
        """Move the cursor to ``index`` without discarding anything."""
        if not 0 <= index < len(self._entries):
            raise IndexError(f"history index {index} out of range")
        moved = index != self._cursor
        self._cursor = index
        return moved

    def clear(self) -> None:
        entries, self._entries = self._entries, []
        self._cursor = -1
        for old in entries:
            self._drop(old)

    def _drop(self, entry: T) -> None:
        if self._release is not None:
            self._release(entry)

    def __len__(self) -> int:
        return len(self._entries)
