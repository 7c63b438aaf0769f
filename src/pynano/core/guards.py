"""Permission checks run before a command executes.

Command classes declare what they need with the ``@requires`` class
decorator; a session's ``PermissionGuard`` compares that against what the
session was granted and refuses to let the command run otherwise.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, TypeVar

from pynano.core.errors import CommandPermissionError

if TYPE_CHECKING:
    from pynano.core.commands import Command

_log = logging.getLogger(__name__)

#: Granting this permission grants every permission.
ALL = "*"

VALUES_WRITE = "values.write"
BUFFER_WRITE = "buffer.write"
TABLE_WRITE = "table.write"
FILES_WRITE = "files.write"

#: Permissions a session gets when the configuration does not say otherwise.
DEFAULT_PERMISSIONS = (VALUES_WRITE, BUFFER_WRITE, TABLE_WRITE)

C = TypeVar("C", bound=type)


def requires(*permissions: str) -> Callable[[C], C]:
    """Class decorator adding *permissions* to ``cls.required_permissions``.

    Permissions accumulate through inheritance: a subclass decorated with
    ``@requires("b")`` of a base decorated with ``@requires("a")`` needs both.
    """

    def decorator(cls: C) -> C:
        inherited = frozenset(getattr(cls, "required_permissions", frozenset()))
        cls.required_permissions = inherited | frozenset(permissions)
        return cls

    return decorator


class PermissionGuard:
    """Holds the permissions granted to one session."""

    def __init__(self, granted: Iterable[str] | None = None) -> None:
        self._granted: set[str] = set(DEFAULT_PERMISSIONS if granted is None else granted)

    @property
    def granted(self) -> frozenset[str]:
        return frozenset(self._granted)

    def grant(self, *permissions: str) -> None:
        self._granted.update(permissions)

    def revoke(self, *permissions: str) -> None:
        self._granted.difference_update(permissions)

    def allows(self, permission: str) -> bool:
        return ALL in self._granted or permission in self._granted

    def missing(self, command: "Command") -> frozenset[str]:
        if ALL in self._granted:
            return frozenset()
        return frozenset(command.required_permissions) - self._granted

    def check(self, command: "Command") -> None:
        """Raise CommandPermissionError unless every requirement is granted."""
        missing = self.missing(command)
        if missing:
            _log.warning(
                "Refused %s: missing permission(s) %s", command.label, sorted(missing)
            )
            raise CommandPermissionError(command.label, missing)
