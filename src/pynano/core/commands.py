"""Command pattern for undoable actions.

Every change a session makes to its workspace goes through a Command so that
the undo/redo history stays consistent. Subclasses implement ``_do`` and
``_undo``; the public ``execute``/``undo`` pair enforces the state machine::

    CREATED -> EXECUTED -> UNDONE -> EXECUTED (redo) -> ...
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Sequence

import pandas as pd

from pynano.core.errors import CommandError, ExecutionError, UndoError
from pynano.core.guards import BUFFER_WRITE, TABLE_WRITE, VALUES_WRITE, requires
from pynano.core.models import CommandState, new_action_id
from pynano.core.workspace import MISSING

if TYPE_CHECKING:
    from pynano.core.workspace import TextBuffer, ValueStore

_log = logging.getLogger(__name__)


class Command(ABC):
    """Abstract base for all undoable commands."""

    #: Name the registry created this command under ("" when built directly).
    name: str = ""

    #: Filled in by the ``@requires`` decorator.
    required_permissions: frozenset[str] = frozenset()

    def __init__(self) -> None:
        self._state = CommandState.CREATED
        self._action_id = new_action_id()

    @property
    def state(self) -> CommandState:
        return self._state

    @property
    def action_id(self) -> str:
        return self._action_id

    @property
    def label(self) -> str:
        return self.name or type(self).__name__

    @property
    def params(self) -> dict[str, Any]:
        """Parameters captured at construction, for logs and display."""
        return {}

    @property
    @abstractmethod
    def description(self) -> str: ...

    def execute(self) -> None:
        if self._state is CommandState.EXECUTED:
            raise ExecutionError(f"{self.label} has already been executed")
        try:
            self._do()
        except CommandError:
            raise
        except Exception as exc:
            raise ExecutionError(f"{self.label} failed: {exc}") from exc
        self._state = CommandState.EXECUTED

    def undo(self) -> None:
        if self._state is not CommandState.EXECUTED:
            raise UndoError(f"{self.label} cannot be undone: it is {self._state.value}")
        try:
            self._undo()
        except CommandError:
            raise
        except Exception as exc:
            raise UndoError(f"Undo of {self.label} failed: {exc}") from exc
        self._state = CommandState.UNDONE

    @abstractmethod
    def _do(self) -> None:
        """Perform the action and capture what ``_undo`` needs."""

    @abstractmethod
    def _undo(self) -> None:
        """Reverse exactly what the last ``_do`` did."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.label} {self._state.value}>"


# ---------------------------------------------------------------------------
# Named values
# ---------------------------------------------------------------------------


@requires(VALUES_WRITE)
class SetValueCommand(Command):
    """store[key] = value."""

    def __init__(self, store: "ValueStore", key: str, value: Any) -> None:
        super().__init__()
        self._store = store
        self._key = key
        self._value = value
        self._previous: Any = MISSING

    def _do(self) -> None:
        self._previous = self._store.lookup(self._key)
        self._store.set(self._key, self._value)

    def _undo(self) -> None:
        self._store.set(self._key, self._previous)

    @property
    def params(self) -> dict[str, Any]:
        return {"key": self._key, "value": self._value}

    @property
    def description(self) -> str:
        return f"Set {self._key} = {self._value!r}"


@requires(VALUES_WRITE)
class DeleteValueCommand(Command):
    """Remove a named value; fails if it does not exist."""

    def __init__(self, store: "ValueStore", key: str) -> None:
        super().__init__()
        self._store = store
        self._key = key
        self._previous: Any = MISSING

    def _do(self) -> None:
        if self._key not in self._store:
            raise ExecutionError(f"No value named {self._key!r}")
        self._previous = self._store.delete(self._key)

    def _undo(self) -> None:
        self._store.set(self._key, self._previous)

    @property
    def params(self) -> dict[str, Any]:
        return {"key": self._key}

    @property
    def description(self) -> str:
        return f"Unset {self._key}"


@requires(VALUES_WRITE)
class IncrementCommand(Command):
    """Add *amount* to a numeric value (a missing value counts as 0)."""

    def __init__(self, store: "ValueStore", key: str, amount: int | float = 1) -> None:
        super().__init__()
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise TypeError(f"amount must be a number, not {type(amount).__name__}")
        self._store = store
        self._key = key
        self._amount = amount
        self._previous: Any = MISSING

    def _do(self) -> None:
        current = self._store.lookup(self._key)
        start = 0 if current is MISSING else current
        if isinstance(start, bool) or not isinstance(start, (int, float)):
            raise ExecutionError(f"{self._key!r} holds a non-numeric value: {start!r}")
        self._previous = current
        self._store.set(self._key, start + self._amount)

    def _undo(self) -> None:
        self._store.set(self._key, self._previous)

    @property
    def params(self) -> dict[str, Any]:
        return {"key": self._key, "amount": self._amount}

    @property
    def description(self) -> str:
        sign = "+" if self._amount >= 0 else "-"
        return f"{self._key} {sign}= {abs(self._amount)!r}"


# ---------------------------------------------------------------------------
# Text buffer
# ---------------------------------------------------------------------------


@requires(BUFFER_WRITE)
class InsertTextCommand(Command):
    """Insert text at *position*, or at the end of the buffer when None."""

    def __init__(self, buffer: "TextBuffer", text: str, position: int | None = None) -> None:
        super().__init__()
        if not isinstance(text, str):
            raise TypeError("text must be a string")
        self._buffer = buffer
        self._text = text
        self._position = position
        self._inserted_at: int | None = None

    def _do(self) -> None:
        pos = len(self._buffer) if self._position is None else self._position
        self._buffer.insert(pos, self._text)
        self._inserted_at = pos

    def _undo(self) -> None:
        assert self._inserted_at is not None
        self._buffer.delete(self._inserted_at, self._inserted_at + len(self._text))

    @property
    def params(self) -> dict[str, Any]:
        return {"text": self._text, "position": self._position}

    @property
    def description(self) -> str:
        where = "end" if self._position is None else str(self._position)
        return f"Insert {self._text!r} at {where}"


@requires(BUFFER_WRITE)
class DeleteTextCommand(Command):
    """Delete buffer[start:end]."""

    def __init__(self, buffer: "TextBuffer", start: int, end: int) -> None:
        super().__init__()
        if start > end:
            raise ValueError(f"start ({start}) is after end ({end})")
        self._buffer = buffer
        self._start = start
        self._end = end
        self._removed: str | None = None

    def _do(self) -> None:
        self._removed = self._buffer.delete(self._start, self._end)

    def _undo(self) -> None:
        assert self._removed is not None
        self._buffer.insert(self._start, self._removed)

    @property
    def params(self) -> dict[str, Any]:
        return {"start": self._start, "end": self._end}

    @property
    def description(self) -> str:
        return f"Delete characters {self._start}-{self._end}"


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


@requires(TABLE_WRITE)
class SetCellCommand(Command):
    """Set a single cell: df.at[row, col] = value."""

    def __init__(self, df: pd.DataFrame, row: Any, col: str, value: Any) -> None:
        super().__init__()
        self._df = df
        self._row = row
        self._col = col
        self._value = value
        self._old_value: Any = None
        self._old_dtype: Any = None

    def _do(self) -> None:
        if self._col not in self._df.columns:
            raise ExecutionError(f"No column named {self._col!r}")
        if self._row not in self._df.index:
            raise ExecutionError(f"No row {self._row!r}")
        self._old_value = self._df.at[self._row, self._col]
        self._old_dtype = self._df[self._col].dtype
        self._df.at[self._row, self._col] = self._value

    def _undo(self) -> None:
        self._df.at[self._row, self._col] = self._old_value
        if self._df[self._col].dtype != self._old_dtype:
            # The new value may have upcast the column (int64 -> float64)
            self._df[self._col] = self._df[self._col].astype(self._old_dtype)

    @property
    def params(self) -> dict[str, Any]:
        return {"row": self._row, "col": self._col, "value": self._value}

    @property
    def description(self) -> str:
        return f"Set «{self._col}»[{_row_label(self._row)}] = {self._value!r}"


def _row_label(row: Any) -> str:
    """1-based number for positional rows, the label itself otherwise."""
    if isinstance(row, int) and not isinstance(row, bool):
        return str(row + 1)
    return str(row)


# ---------------------------------------------------------------------------
# Composite
# ---------------------------------------------------------------------------


class CompositeCommand(Command):
    """Run several commands as one undoable step.

    If a child fails, the children already executed are undone in reverse
    order before the error propagates, so the composite is all-or-nothing.
    """

    def __init__(self, commands: Sequence[Command], label: str = "Batch") -> None:
        super().__init__()
        if not commands:
            raise ValueError("a composite needs at least one command")
        self._commands = list(commands)
        self._label = label
        self.required_permissions = frozenset().union(
            *(cmd.required_permissions for cmd in self._commands)
        )

    @property
    def commands(self) -> list[Command]:
        return list(self._commands)

    def _do(self) -> None:
        done: list[Command] = []
        for cmd in self._commands:
            try:
                cmd.execute()
            except CommandError as exc:
                self._rollback(done, exc)
                raise
            done.append(cmd)

    def _rollback(self, done: list[Command], cause: CommandError) -> None:
        """Undo *done* in reverse, attempting every child even if some fail.

        The first rollback failure is chained onto *cause* unless it already
        has a cause of its own; all of them are logged.
        """
        failures: list[CommandError] = []
        for executed in reversed(done):
            try:
                executed.undo()
            except CommandError as undo_exc:
                _log.error("Rollback of %s failed: %s", executed.label, undo_exc)
                failures.append(undo_exc)
        if failures and cause.__cause__ is None:
            cause.__cause__ = failures[0]

    def _undo(self) -> None:
        for cmd in reversed(self._commands):
            cmd.undo()

    @property
    def params(self) -> dict[str, Any]:
        return {"steps": [{"command": c.label, **c.params} for c in self._commands]}

    @property
    def description(self) -> str:
        return f"{self._label} ({len(self._commands)} commands)"
