"""Exception hierarchy raised by commands, the registry and the history."""

from __future__ import annotations

from typing import Iterable


class CommandError(Exception):
    """Base class for every error raised by the command machinery."""


class UnknownCommandError(CommandError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown command: {name!r}")
        self.name = name


class DuplicateCommandError(CommandError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Command {name!r} is already registered")
        self.name = name


class RegistryFrozenError(CommandError):
    """Raised when a frozen registry is asked to change."""


class InvalidArgumentsError(CommandError):
    """The factory for a command rejected the arguments it was given."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid arguments for {name!r}: {reason}")
        self.name = name
        self.reason = reason


class ExecutionError(CommandError):
    """A command's action could not complete."""


class UndoError(CommandError):
    """undo() was called without a matching successful execute()."""


class HistoryError(CommandError):
    pass


class NothingToUndoError(HistoryError):
    def __init__(self) -> None:
        super().__init__("Nothing to undo")


class NothingToRedoError(HistoryError):
    def __init__(self) -> None:
        super().__init__("Nothing to redo")


class CommandPermissionError(CommandError, PermissionError):
    """The session lacks a permission the command requires."""

    def __init__(self, name: str, missing: Iterable[str]) -> None:
        self.name = name
        self.missing = sorted(missing)
        self.message = f"Command {name!r} requires permission(s): {', '.join(self.missing)}"
        super().__init__(self.message)

    def __str__(self) -> str:
        # Independent of how OSError stored the constructor args
        return self.message
