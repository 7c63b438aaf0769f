"""CommandHistory: undo/redo stack."""

from __future__ import annotations

import logging
from collections import deque

from pynano.core.commands import Command
from pynano.core.errors import HistoryError, NothingToRedoError, NothingToUndoError
from pynano.core.models import CommandState

_log = logging.getLogger(__name__)


class CommandHistory:
    """Manages a bounded undo/redo stack.

    Only commands that have already been executed are accepted; the
    dispatcher executes, this class only records and traverses.
    """

    def __init__(self, max_depth: int = 500) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._max_depth = max_depth
        self._undo_stack: deque[Command] = deque(maxlen=max_depth)
        self._redo_stack: deque[Command] = deque(maxlen=max_depth)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def push(self, cmd: Command) -> None:
        """Record an executed command. Clears the redo stack."""
        if cmd.state is not CommandState.EXECUTED:
            raise HistoryError(
                f"Only executed commands can be recorded, {cmd.label} is {cmd.state.value}"
            )
        if len(self._undo_stack) == self._max_depth:
            _log.debug("History full, dropping %s", self._undo_stack[0].label)
        self._undo_stack.append(cmd)
        self._redo_stack.clear()

    def undo(self) -> Command:
        """Undo the most recent command and move it to the redo stack.

        If the command's own undo fails the error propagates and neither
        stack changes.
        """
        if not self._undo_stack:
            raise NothingToUndoError()
        cmd = self._undo_stack[-1]
        cmd.undo()
        self._undo_stack.pop()
        self._redo_stack.append(cmd)
        return cmd

    def redo(self) -> Command:
        """Re-execute the most recently undone command."""
        if not self._redo_stack:
            raise NothingToRedoError()
        cmd = self._redo_stack[-1]
        cmd.execute()
        self._redo_stack.pop()
        self._undo_stack.append(cmd)
        return cmd

    def peek_undo(self) -> Command | None:
        return self._undo_stack[-1] if self._undo_stack else None

    def peek_redo(self) -> Command | None:
        return self._redo_stack[-1] if self._redo_stack else None

    @property
    def undo_count(self) -> int:
        """Number of commands currently on the undo stack."""
        return len(self._undo_stack)

    @property
    def redo_count(self) -> int:
        """Number of commands currently on the redo stack."""
        return len(self._redo_stack)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def undo_description(self) -> str | None:
        return self._undo_stack[-1].description if self._undo_stack else None

    @property
    def redo_description(self) -> str | None:
        return self._redo_stack[-1].description if self._redo_stack else None

    def undo_descriptions(self) -> list[str]:
        """Descriptions on the undo stack, most recent first."""
        return [cmd.description for cmd in reversed(self._undo_stack)]

    def redo_descriptions(self) -> list[str]:
        """Descriptions on the redo stack, next to redo first."""
        return [cmd.description for cmd in reversed(self._redo_stack)]

    def clear(self) -> None:
        self._undo_stack.clear()
        self._redo_stack.clear()
