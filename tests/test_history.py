"""Tests for the Command/History system (undo/redo)."""

from __future__ import annotations

import pytest

from pynano.core.commands import Command, SetValueCommand
from pynano.core.errors import (
    ExecutionError,
    HistoryError,
    NothingToRedoError,
    NothingToUndoError,
    UndoError,
)
from pynano.core.history import CommandHistory
from pynano.core.models import CommandState
from pynano.core.workspace import ValueStore


def _executed_set(store, key, value):
    cmd = SetValueCommand(store, key, value)
    cmd.execute()
    return cmd


class _FailingUndo(Command):
    description = "fails on undo"

    def _do(self) -> None:
        pass

    def _undo(self) -> None:
        raise RuntimeError("disk on fire")


class _FailingRedo(Command):
    """Succeeds the first time, fails on every later execute."""

    description = "fails on redo"

    def __init__(self) -> None:
        super().__init__()
        self.runs = 0

    def _do(self) -> None:
        self.runs += 1
        if self.runs > 1:
            raise RuntimeError("source is gone")

    def _undo(self) -> None:
        pass


class TestCommandHistory:
    def test_push_records_command(self):
        store = ValueStore()
        history = CommandHistory()
        history.push(_executed_set(store, "a", 1))
        assert history.can_undo
        assert not history.can_redo
        assert history.undo_count == 1

    def test_push_rejects_unexecuted_command(self):
        history = CommandHistory()
        with pytest.raises(HistoryError):
            history.push(SetValueCommand(ValueStore(), "a", 1))
        assert history.undo_count == 0

    def test_undo(self):
        store = ValueStore({"a": "original"})
        history = CommandHistory()
        history.push(_executed_set(store, "a", "modified"))
        history.undo()
        assert store.get("a") == "original"
        assert not history.can_undo
        assert history.can_redo

    def test_redo(self):
        store = ValueStore({"a": "start"})
        history = CommandHistory()
        history.push(_executed_set(store, "a", "end"))
        history.undo()
        history.redo()
        assert store.get("a") == "end"
        assert history.undo_count == 1
        assert history.redo_count == 0

    def test_new_push_clears_redo_stack(self):
        store = ValueStore()
        history = CommandHistory()
        history.push(_executed_set(store, "a", "x"))
        history.undo()
        assert history.can_redo
        history.push(_executed_set(store, "b", "y"))
        assert not history.can_redo
        with pytest.raises(NothingToRedoError):
            history.redo()

    def test_undo_on_empty_history_raises(self):
        with pytest.raises(NothingToUndoError):
            CommandHistory().undo()

    def test_redo_on_empty_history_raises(self):
        with pytest.raises(NothingToRedoError):
            CommandHistory().redo()

    def test_n_undos_restore_initial_state(self):
        store = ValueStore({"a": 0})
        history = CommandHistory()
        for i in range(1, 6):
            history.push(_executed_set(store, "a", i))
        for _ in range(5):
            history.undo()
        assert store.get("a") == 0
        assert history.redo_count == 5

    def test_failed_undo_leaves_stacks_unchanged(self):
        history = CommandHistory()
        cmd = _FailingUndo()
        cmd.execute()
        history.push(cmd)
        with pytest.raises(UndoError):
            history.undo()
        assert history.undo_count == 1
        assert history.redo_count == 0

    def test_failed_redo_leaves_stacks_unchanged(self):
        history = CommandHistory()
        cmd = _FailingRedo()
        cmd.execute()
        history.push(cmd)
        history.undo()
        with pytest.raises(ExecutionError):
            history.redo()
        assert history.redo_count == 1
        assert history.undo_count == 0
        assert history.peek_redo() is cmd
        assert cmd.state is CommandState.UNDONE

    def test_max_depth_respected(self):
        store = ValueStore()
        history = CommandHistory(max_depth=10)
        for i in range(15):
            history.push(_executed_set(store, "a", i))
        assert history.undo_count == 10

    def test_invalid_max_depth(self):
        with pytest.raises(ValueError):
            CommandHistory(max_depth=0)

    def test_descriptions_most_recent_first(self):
        store = ValueStore()
        history = CommandHistory()
        history.push(_executed_set(store, "a", 1))
        history.push(_executed_set(store, "b", 2))
        assert history.undo_description == "Set b = 2"
        assert history.undo_descriptions() == ["Set b = 2", "Set a = 1"]
        history.undo()
        assert history.redo_description == "Set b = 2"
        assert history.redo_descriptions() == ["Set b = 2"]

    def test_peek_does_not_mutate(self):
        store = ValueStore()
        history = CommandHistory()
        cmd = _executed_set(store, "a", 1)
        history.push(cmd)
        assert history.peek_undo() is cmd
        assert history.peek_redo() is None
        assert history.undo_count == 1

    def test_clear(self):
        store = ValueStore()
        history = CommandHistory()
        history.push(_executed_set(store, "a", 1))
        history.push(_executed_set(store, "a", 2))
        history.undo()
        history.clear()
        assert history.undo_count == 0
        assert history.redo_count == 0
