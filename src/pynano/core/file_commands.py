"""Commands acting on files below a workspace root.

Deleted files are moved into ``<root>/.trash/`` rather than removed, so the
deletion can be undone.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pynano.core.commands import Command
from pynano.core.errors import ExecutionError
from pynano.core.guards import FILES_WRITE, requires

if TYPE_CHECKING:
    from pynano.core.workspace import Workspace

_log = logging.getLogger(__name__)

TRASH_DIR = ".trash"


@requires(FILES_WRITE)
class _FileCommand(Command):
    def __init__(self, workspace: "Workspace", path: str) -> None:
        super().__init__()
        if not isinstance(path, str) or not path:
            raise ValueError("path must be a non-empty string")
        self._workspace = workspace
        self._path = path

    def _target(self, relative: str | None = None) -> Path:
        target = self._workspace.resolve(relative or self._path)
        if TRASH_DIR in target.relative_to(self._workspace.root.resolve()).parts:
            raise ExecutionError(f"{relative or self._path!r} is inside the trash folder")
        return target

    @staticmethod
    def _require_parent(target: Path) -> None:
        if not target.parent.is_dir():
            raise ExecutionError(f"Directory {target.parent} does not exist")

    @property
    def params(self) -> dict[str, Any]:
        return {"path": self._path}


class CreateFileCommand(_FileCommand):
    """Create a new file; fails if something already exists at the path."""

    def __init__(self, workspace: "Workspace", path: str, content: str = "") -> None:
        super().__init__(workspace, path)
        self._content = content

    def _do(self) -> None:
        target = self._target()
        if target.exists():
            raise ExecutionError(f"{self._path!r} already exists")
        self._require_parent(target)
        target.write_text(self._content, encoding="utf-8")

    def _undo(self) -> None:
        self._target().unlink()

    @property
    def description(self) -> str:
        return f"Create {self._path}"


class WriteFileCommand(_FileCommand):
    """Replace a file's content, creating the file if it is absent."""

    def __init__(self, workspace: "Workspace", path: str, content: str) -> None:
        super().__init__(workspace, path)
        if not isinstance(content, str):
            raise TypeError("content must be a string")
        self._content = content
        self._previous: bytes | None = None

    def _do(self) -> None:
        target = self._target()
        if target.is_dir():
            raise ExecutionError(f"{self._path!r} is a directory")
        self._require_parent(target)
        self._previous = target.read_bytes() if target.exists() else None
        target.write_text(self._content, encoding="utf-8")

    def _undo(self) -> None:
        target = self._target()
        if self._previous is None:
            target.unlink()
        else:
            target.write_bytes(self._previous)

    @property
    def description(self) -> str:
        return f"Write {self._path} ({len(self._content)} chars)"


class DeleteFileCommand(_FileCommand):
    """Move a file to the trash folder."""

    def __init__(self, workspace: "Workspace", path: str) -> None:
        super().__init__(workspace, path)
        self._trashed: Path | None = None

    def _do(self) -> None:
        target = self._target()
        if not target.is_file():
            raise ExecutionError(f"No file at {self._path!r}")
        trash = self._workspace.resolve(TRASH_DIR)
        trash.mkdir(exist_ok=True)
        dest = trash / f"{self.action_id}_{target.name}"
        target.rename(dest)
        self._trashed = dest
        _log.debug("Moved %s to %s", target, dest)

    def _undo(self) -> None:
        assert self._trashed is not None
        target = self._target()
        if target.exists():
            raise ExecutionError(f"Cannot restore {self._path!r}: path is occupied")
        self._trashed.rename(target)
        self._trashed = None

    @property
    def description(self) -> str:
        return f"Delete {self._path}"


class RenameFileCommand(_FileCommand):
    """Rename or move a file inside the workspace."""

    def __init__(self, workspace: "Workspace", path: str, new_path: str) -> None:
        super().__init__(workspace, path)
        if not isinstance(new_path, str) or not new_path:
            raise ValueError("new_path must be a non-empty string")
        self._new_path = new_path

    def _do(self) -> None:
        source = self._target()
        dest = self._target(self._new_path)
        if not source.exists():
            raise ExecutionError(f"No file at {self._path!r}")
        if dest.exists():
            raise ExecutionError(f"{self._new_path!r} already exists")
        self._require_parent(dest)
        source.rename(dest)

    def _undo(self) -> None:
        self._target(self._new_path).rename(self._target())

    @property
    def params(self) -> dict[str, Any]:
        return {"path": self._path, "new_path": self._new_path}

    @property
    def description(self) -> str:
        return f"Rename {self._path} → {self._new_path}"
