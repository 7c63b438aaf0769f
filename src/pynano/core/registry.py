"""CommandRegistry: maps command names to factories.

A factory is any callable ``factory(workspace, *args, **kwargs) -> Command``.
The registry is populated once at startup (see ``build_default_registry``),
frozen, and then shared read-only by every session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from pynano.core import file_commands as fc
from pynano.core.commands import (
    Command,
    DeleteTextCommand,
    DeleteValueCommand,
    IncrementCommand,
    InsertTextCommand,
    SetCellCommand,
    SetValueCommand,
)
from pynano.core.errors import (
    DuplicateCommandError,
    InvalidArgumentsError,
    RegistryFrozenError,
    UnknownCommandError,
)

if TYPE_CHECKING:
    from pynano.core.workspace import Workspace

_log = logging.getLogger(__name__)

CommandFactory = Callable[..., Command]

#: Key used by the ``set`` command when no key is given.
DEFAULT_VALUE_KEY = "value"


class CommandRegistry:
    """Name → factory mapping with fail-fast registration."""

    def __init__(self) -> None:
        self._factories: dict[str, CommandFactory] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def register(self, name: str, factory: CommandFactory | None = None) -> Any:
        """Register *factory* under *name*.

        Raises DuplicateCommandError if the name is taken; use ``replace`` to
        overwrite on purpose. Without *factory* this returns a decorator::

            @registry.register("shout")
            def _shout(workspace, text):
                return InsertTextCommand(workspace.buffer, text.upper())
        """
        if factory is None:
            def decorator(fn: CommandFactory) -> CommandFactory:
                self.register(name, fn)
                return fn

            return decorator

        self._check_mutable()
        if not name or not isinstance(name, str):
            raise ValueError("command name must be a non-empty string")
        if name in self._factories:
            raise DuplicateCommandError(name)
        self._factories[name] = factory
        return factory

    def replace(self, name: str, factory: CommandFactory) -> CommandFactory | None:
        """Register *factory* under *name*, returning the factory it replaced."""
        self._check_mutable()
        previous = self._factories.get(name)
        self._factories[name] = factory
        if previous is not None:
            _log.info("Command %r re-registered", name)
        return previous

    def unregister(self, name: str) -> None:
        self._check_mutable()
        if name not in self._factories:
            raise UnknownCommandError(name)
        del self._factories[name]

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("The command registry is frozen")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, name: str) -> CommandFactory | None:
        return self._factories.get(name)

    def names(self) -> list[str]:
        return sorted(self._factories)

    def create(
        self, name: str, workspace: "Workspace", /, *args: Any, **kwargs: Any
    ) -> Command:
        """Build a command instance; nothing is executed."""
        factory = self._factories.get(name)
        if factory is None:
            raise UnknownCommandError(name)
        try:
            command = factory(workspace, *args, **kwargs)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentsError(name, str(exc)) from exc
        if not isinstance(command, Command):
            raise TypeError(
                f"factory for {name!r} returned {type(command).__name__}, not a Command"
            )
        command.name = name
        return command

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)


# ---------------------------------------------------------------------------
# Built-in commands
# ---------------------------------------------------------------------------


def _builds(command_cls: type[Command]) -> Callable[[CommandFactory], CommandFactory]:
    """Copy the permissions and docstring of *command_cls* onto a factory."""

    def decorator(fn: CommandFactory) -> CommandFactory:
        fn.required_permissions = command_cls.required_permissions  # type: ignore[attr-defined]
        fn.__doc__ = fn.__doc__ or command_cls.__doc__
        return fn

    return decorator


@_builds(SetValueCommand)
def _set(workspace: "Workspace", value: Any, key: str = DEFAULT_VALUE_KEY) -> Command:
    return SetValueCommand(workspace.values, key, value)


@_builds(DeleteValueCommand)
def _unset(workspace: "Workspace", key: str = DEFAULT_VALUE_KEY) -> Command:
    return DeleteValueCommand(workspace.values, key)


@_builds(IncrementCommand)
def _increment(
    workspace: "Workspace", amount: int | float = 1, key: str = DEFAULT_VALUE_KEY
) -> Command:
    return IncrementCommand(workspace.values, key, amount)


@_builds(InsertTextCommand)
def _insert(workspace: "Workspace", text: str, position: int | None = None) -> Command:
    return InsertTextCommand(workspace.buffer, text, position)


@_builds(InsertTextCommand)
def _append(workspace: "Workspace", text: str) -> Command:
    return InsertTextCommand(workspace.buffer, text)


@_builds(DeleteTextCommand)
def _delete(workspace: "Workspace", start: int, end: int) -> Command:
    return DeleteTextCommand(workspace.buffer, start, end)


@_builds(SetCellCommand)
def _set_cell(workspace: "Workspace", row: Any, col: str, value: Any) -> Command:
    return SetCellCommand(workspace.table, row, col, value)


BUILTIN_COMMANDS: dict[str, CommandFactory] = {
    "set": _set,
    "unset": _unset,
    "increment": _increment,
    "insert": _insert,
    "append": _append,
    "delete": _delete,
    "set_cell": _set_cell,
    "create_file": fc.CreateFileCommand,
    "write_file": fc.WriteFileCommand,
    "delete_file": fc.DeleteFileCommand,
    "rename_file": fc.RenameFileCommand,
}


def register_builtin_commands(registry: CommandRegistry) -> CommandRegistry:
    for name, factory in BUILTIN_COMMANDS.items():
        registry.register(name, factory)
    return registry


def build_default_registry(freeze: bool = True) -> CommandRegistry:
    """Return a registry holding the built-in commands, frozen by default."""
    registry = register_builtin_commands(CommandRegistry())
    if freeze:
        registry.freeze()
    return registry
