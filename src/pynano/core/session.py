"""Sessions: one workspace, one history and one dispatcher each.

Sessions are stored in memory and expire after ``Settings.session_ttl``
seconds of inactivity. The command registry is shared by all of them and is
never mutated once built.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from pynano.core.action_log import ActionLog, NullActionLog
from pynano.core.config import Settings
from pynano.core.dispatcher import Dispatcher
from pynano.core.guards import PermissionGuard
from pynano.core.history import CommandHistory
from pynano.core.registry import CommandRegistry, build_default_registry
from pynano.core.workspace import Workspace, table_from_dict

_log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Session:
    id: str
    dispatcher: Dispatcher
    created_at: float = field(default_factory=time.time)
    last_used: float = field(default_factory=time.time)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def workspace(self) -> Workspace:
        return self.dispatcher.workspace

    @property
    def history(self) -> CommandHistory:
        return self.dispatcher.history

    def run(self, fn: Callable[[Dispatcher], T]) -> T:
        """Call ``fn(dispatcher)`` with the session locked.

        Commands of one session are processed one at a time.
        """
        with self._lock:
            self.last_used = time.time()
            return fn(self.dispatcher)

    def summary(self) -> dict[str, Any]:
        history = self.history
        return {
            "session_id": self.id,
            "workspace": self.workspace.to_dict(),
            "undo_count": history.undo_count,
            "redo_count": history.redo_count,
            "can_undo": history.can_undo,
            "can_redo": history.can_redo,
            "undo_description": history.undo_description,
            "redo_description": history.redo_description,
            "permissions": sorted(self.dispatcher.guard.granted),
        }


class SessionManager:
    """Thread-safe in-memory session store with automatic expiry."""

    def __init__(
        self,
        settings: Settings | None = None,
        registry: CommandRegistry | None = None,
        start_cleanup: bool = True,
    ) -> None:
        self._settings = settings or Settings()
        self._registry = registry or build_default_registry()
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        if start_cleanup:
            self._start_cleanup_thread()

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    @property
    def settings(self) -> Settings:
        return self._settings

    def create(self, workspace: Workspace | None = None) -> Session:
        session_id = str(uuid.uuid4())
        if workspace is None:
            workspace = Workspace(
                table=table_from_dict(self._settings.table),
                root=self._settings.workspace_root,
            )
        dispatcher = Dispatcher(
            self._registry,
            workspace,
            history=CommandHistory(max_depth=self._settings.max_depth),
            guard=PermissionGuard(self._settings.permissions),
            action_log=self._make_action_log(session_id),
        )
        session = Session(id=session_id, dispatcher=dispatcher)
        with self._lock:
            self._sessions[session_id] = session
        _log.info("Session %s created", session_id)
        return session

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            _log.info("Session %s closed", session_id)
        return session is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _make_action_log(self, session_id: str) -> ActionLog:
        path = self._settings.action_log
        if path is None:
            return NullActionLog()
        # One file per session next to the configured path
        return ActionLog(path.with_name(f"{path.stem}_{session_id[:8]}{path.suffix}"))

    def cleanup_expired(self, now: float | None = None) -> list[str]:
        now = time.time() if now is None else now
        ttl = self._settings.session_ttl
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if now - s.last_used > ttl]
        for session_id in expired:
            self.delete(session_id)
        return expired

    def _start_cleanup_thread(self) -> None:
        def _loop() -> None:
            while True:
                time.sleep(300)  # check every 5 minutes
                self.cleanup_expired()

        t = threading.Thread(target=_loop, daemon=True)
        t.start()
