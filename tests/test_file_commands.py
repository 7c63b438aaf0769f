"""Tests for commands acting on files under the workspace root."""

from __future__ import annotations

import pytest

from pynano.core.errors import ExecutionError
from pynano.core.file_commands import (
    TRASH_DIR,
    CreateFileCommand,
    DeleteFileCommand,
    RenameFileCommand,
    WriteFileCommand,
)
from pynano.core.workspace import Workspace


class TestCreateFile:
    def test_create_and_undo(self, workspace):
        cmd = CreateFileCommand(workspace, "a.txt", "hello")
        cmd.execute()
        assert (workspace.root / "a.txt").read_text(encoding="utf-8") == "hello"
        cmd.undo()
        assert not (workspace.root / "a.txt").exists()

    def test_existing_file_is_not_overwritten(self, workspace):
        (workspace.root / "a.txt").write_text("keep", encoding="utf-8")
        with pytest.raises(ExecutionError):
            CreateFileCommand(workspace, "a.txt", "new").execute()
        assert (workspace.root / "a.txt").read_text(encoding="utf-8") == "keep"

    def test_missing_parent_fails(self, workspace):
        with pytest.raises(ExecutionError):
            CreateFileCommand(workspace, "sub/a.txt").execute()

    def test_path_outside_root_fails(self, workspace):
        with pytest.raises(ExecutionError):
            CreateFileCommand(workspace, "../escape.txt").execute()
        assert not (workspace.root.parent / "escape.txt").exists()

    def test_no_root_fails(self):
        with pytest.raises(ExecutionError):
            CreateFileCommand(Workspace(), "a.txt").execute()

    def test_trash_is_off_limits(self, workspace):
        with pytest.raises(ExecutionError):
            CreateFileCommand(workspace, f"{TRASH_DIR}/x.txt").execute()


class TestWriteFile:
    def test_overwrite_and_undo(self, workspace):
        target = workspace.root / "a.txt"
        target.write_text("v1", encoding="utf-8")
        cmd = WriteFileCommand(workspace, "a.txt", "v2")
        cmd.execute()
        assert target.read_text(encoding="utf-8") == "v2"
        cmd.undo()
        assert target.read_text(encoding="utf-8") == "v1"

    def test_write_new_file_and_undo(self, workspace):
        cmd = WriteFileCommand(workspace, "new.txt", "content")
        cmd.execute()
        assert (workspace.root / "new.txt").exists()
        cmd.undo()
        assert not (workspace.root / "new.txt").exists()

    def test_directory_target_fails(self, workspace):
        (workspace.root / "dir").mkdir()
        with pytest.raises(ExecutionError):
            WriteFileCommand(workspace, "dir", "x").execute()


class TestDeleteFile:
    def test_delete_moves_to_trash_and_undo_restores(self, workspace):
        target = workspace.root / "a.txt"
        target.write_text("data", encoding="utf-8")
        cmd = DeleteFileCommand(workspace, "a.txt")
        cmd.execute()
        assert not target.exists()
        trashed = list((workspace.root / TRASH_DIR).iterdir())
        assert len(trashed) == 1
        assert trashed[0].name.endswith("a.txt")
        cmd.undo()
        assert target.read_text(encoding="utf-8") == "data"
        assert list((workspace.root / TRASH_DIR).iterdir()) == []

    def test_delete_missing_file_fails(self, workspace):
        with pytest.raises(ExecutionError):
            DeleteFileCommand(workspace, "missing.txt").execute()

    def test_redo_after_undo(self, workspace):
        target = workspace.root / "a.txt"
        target.write_text("data", encoding="utf-8")
        cmd = DeleteFileCommand(workspace, "a.txt")
        cmd.execute()
        cmd.undo()
        cmd.execute()
        assert not target.exists()


class TestRenameFile:
    def test_rename_and_undo(self, workspace):
        (workspace.root / "a.txt").write_text("data", encoding="utf-8")
        cmd = RenameFileCommand(workspace, "a.txt", "b.txt")
        cmd.execute()
        assert (workspace.root / "b.txt").exists()
        assert not (workspace.root / "a.txt").exists()
        cmd.undo()
        assert (workspace.root / "a.txt").exists()
        assert not (workspace.root / "b.txt").exists()

    def test_destination_taken_fails(self, workspace):
        (workspace.root / "a.txt").write_text("a", encoding="utf-8")
        (workspace.root / "b.txt").write_text("b", encoding="utf-8")
        with pytest.raises(ExecutionError):
            RenameFileCommand(workspace, "a.txt", "b.txt").execute()
        assert (workspace.root / "b.txt").read_text(encoding="utf-8") == "b"

    def test_description(self, workspace):
        cmd = RenameFileCommand(workspace, "a.txt", "b.txt")
        assert "a.txt" in cmd.description
        assert "b.txt" in cmd.description
        assert cmd.params == {"path": "a.txt", "new_path": "b.txt"}
