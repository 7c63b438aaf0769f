"""Dispatcher: name → command → execute → history.

The dispatcher is the only thing that mutates a session's history. If any
step before the push fails (unknown name, bad arguments, missing permission,
failed execution) the error propagates and the history is left as it was.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from pynano.core.action_log import ActionLog, NullActionLog
from pynano.core.commands import Command, CompositeCommand
from pynano.core.errors import InvalidArgumentsError
from pynano.core.guards import PermissionGuard
from pynano.core.history import CommandHistory
from pynano.core.models import ActionLogEntry, ActionType, DispatchResult, now_iso

if TYPE_CHECKING:
    from pynano.core.registry import CommandRegistry
    from pynano.core.workspace import Workspace

_log = logging.getLogger(__name__)


class Dispatcher:
    """Resolve, guard, execute and record commands for one workspace.

    Usage::

        dispatcher = Dispatcher(build_default_registry(), Workspace())
        dispatcher.dispatch("set", 5)
        dispatcher.undo()
    """

    def __init__(
        self,
        registry: "CommandRegistry",
        workspace: "Workspace",
        history: CommandHistory | None = None,
        guard: PermissionGuard | None = None,
        action_log: ActionLog | None = None,
    ) -> None:
        self._registry = registry
        self._workspace = workspace
        self._history = history if history is not None else CommandHistory()
        self._guard = guard if guard is not None else PermissionGuard()
        self._action_log = action_log if action_log is not None else NullActionLog()

    @property
    def registry(self) -> "CommandRegistry":
        return self._registry

    @property
    def workspace(self) -> "Workspace":
        return self._workspace

    @property
    def history(self) -> CommandHistory:
        return self._history

    @property
    def guard(self) -> PermissionGuard:
        return self._guard

    @property
    def action_log(self) -> ActionLog:
        return self._action_log

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def dispatch(self, name: str, /, *args: Any, **kwargs: Any) -> DispatchResult:
        cmd = self._registry.create(name, self._workspace, *args, **kwargs)
        return self._run(cmd)

    def dispatch_batch(
        self, steps: Iterable[Sequence[Any]], label: str = "Batch"
    ) -> DispatchResult:
        """Dispatch several commands as one undoable step.

        Each step is ``(name, *args)`` or ``(name, args, kwargs)`` where
        *args* is a list and *kwargs* a dict.
        """
        children = []
        try:
            for step in steps:
                name, args, kwargs = _split_step(step)
                children.append(self._registry.create(name, self._workspace, *args, **kwargs))
            cmd = CompositeCommand(children, label=label)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentsError("batch", str(exc)) from exc
        cmd.name = "batch"
        return self._run(cmd)

    def undo(self) -> DispatchResult:
        cmd = self._history.undo()
        _log.debug("Undid %s", cmd.description)
        return self._record(self._entry(ActionType.UNDO, cmd))

    def redo(self) -> DispatchResult:
        pending = self._history.peek_redo()
        if pending is not None:
            # Grants may have been revoked since the first execution
            self._guard.check(pending)
        cmd = self._history.redo()
        _log.debug("Redid %s", cmd.description)
        return self._record(self._entry(ActionType.REDO, cmd))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, cmd: Command) -> DispatchResult:
        self._guard.check(cmd)
        cmd.execute()
        try:
            entry = self._entry(ActionType.EXECUTE, cmd)
            self._action_log.append(entry)
        except Exception:
            # Nothing has reached the history yet; take the effect back out
            cmd.undo()
            raise
        self._history.push(cmd)
        _log.debug("Executed %s", entry.description)
        return self._result(entry)

    def _entry(self, action: ActionType, cmd: Command) -> ActionLogEntry:
        return ActionLogEntry(
            action_id=cmd.action_id,
            timestamp=now_iso(),
            action_type=action.value,
            command=cmd.label,
            params=cmd.params,
            description=cmd.description,
        )

    def _record(self, entry: ActionLogEntry) -> DispatchResult:
        self._action_log.append(entry)
        return self._result(entry)

    def _result(self, entry: ActionLogEntry) -> DispatchResult:
        return DispatchResult(
            action=ActionType(entry.action_type),
            command=entry.command,
            description=entry.description,
            action_id=entry.action_id,
            undo_count=self._history.undo_count,
            redo_count=self._history.redo_count,
        )


def _split_step(step: Sequence[Any]) -> tuple[str, list[Any], dict[str, Any]]:
    if isinstance(step, str):
        return step, [], {}
    if not step:
        raise ValueError("empty batch step")
    name, *rest = step
    if len(rest) == 2 and isinstance(rest[0], (list, tuple)) and isinstance(rest[1], dict):
        return name, list(rest[0]), dict(rest[1])
    return name, list(rest), {}
