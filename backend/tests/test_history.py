"""Tests for the undo/redo history stack."""

import pytest

from tilevision.session.history import HistoryStack


def _stack(*entries, **kwargs):
    released = []
    stack = HistoryStack(release=released.append, **kwargs)
    for entry in entries:
        stack.push(entry)
    return stack, released


class TestPush:
    def test_empty_stack(self):
        stack = HistoryStack()
        assert len(stack) == 0
        assert stack.cursor == -1
        assert stack.current() is None
        assert not stack.can_undo
        assert not stack.can_redo

    def test_push_moves_cursor_to_end(self):
        stack, _ = _stack("a", "b", "c")
        assert stack.entries == ["a", "b", "c"]
        assert stack.cursor == 2
        assert stack.current() == "c"

    def test_push_after_undo_truncates_redo_branch(self):
        """push a, push b, undo, push c -> [a, c] with cursor 1; b is released."""
        stack, released = _stack("a", "b")
        stack.undo()
        stack.push("c")
        assert stack.entries == ["a", "c"]
        assert stack.cursor == 1
        assert released == ["b"]

    def test_max_entries_drops_oldest(self):
        stack, released = _stack(*range(12), max_entries=10)
        assert stack.entries == list(range(2, 12))
        assert stack.cursor == 9
        assert released == [0, 1]

    def test_max_entries_must_be_positive(self):
        with pytest.raises(ValueError):
            HistoryStack(max_entries=0)


class TestNavigation:
    def test_undo_at_start_is_noop(self):
        stack, _ = _stack("a")
        assert stack.undo() is False
        assert stack.cursor == 0

    def test_redo_at_end_is_noop(self):
        stack, _ = _stack("a", "b")
        assert stack.redo() is False
        assert stack.cursor == 1

    def test_undo_then_redo(self):
        stack, released = _stack("a", "b", "c")
        assert stack.undo() is True
        assert stack.undo() is True
        assert stack.current() == "a"
        assert stack.can_redo
        assert stack.redo() is True
        assert stack.current() == "b"
        assert stack.entries == ["a", "b", "c"]
        assert released == []

    def test_jump_keeps_entries(self):
        stack, released = _stack("a", "b", "c")
        assert stack.jump(0) is True
        assert stack.current() == "a"
        assert stack.jump(0) is False
        assert len(stack) == 3
        assert released == []

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_jump_out_of_range(self, index):
        stack, _ = _stack("a", "b", "c")
        with pytest.raises(IndexError):
            stack.jump(index)
        assert stack.cursor == 2


class TestClear:
    def test_clear_releases_everything(self):
        stack, released = _stack("a", "b")
        stack.clear()
        assert len(stack) == 0
        assert stack.cursor == -1
        assert released == ["a", "b"]

    def test_entries_is_a_copy(self):
        stack, _ = _stack("a")
        stack.entries.append("x")
        assert stack.entries == ["a"]
