"""Core data model dataclasses and enums.

Kept free of side effects so every other module (and the tests) can import it
without pulling in pandas or the web stack.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="seconds")


def new_action_id() -> str:
    return str(uuid.uuid4())[:8]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CommandState(str, Enum):
    CREATED = "created"
    EXECUTED = "executed"
    UNDONE = "undone"


class ActionType(str, Enum):
    EXECUTE = "execute"
    UNDO = "undo"
    REDO = "redo"


# ---------------------------------------------------------------------------
# Dispatch result
# ---------------------------------------------------------------------------


@dataclass
class DispatchResult:
    """Outcome of Dispatcher.dispatch(), undo() or redo()."""

    action: ActionType
    command: str  # registered command name
    description: str
    action_id: str  # id of the command instance that was acted on
    undo_count: int
    redo_count: int

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "command": self.command,
            "description": self.description,
            "action_id": self.action_id,
            "undo_count": self.undo_count,
            "redo_count": self.redo_count,
        }


# ---------------------------------------------------------------------------
# Action log entry
# ---------------------------------------------------------------------------


@dataclass
class ActionLogEntry:
    """One line of the JSONL action log."""

    action_id: str
    timestamp: str
    action_type: str  # "execute", "undo", "redo"
    command: str
    params: dict[str, Any] = field(default_factory=dict)
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "action_id": self.action_id,
            "timestamp": self.timestamp,
            "action_type": self.action_type,
            "command": self.command,
            "params": self.params,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ActionLogEntry":
        return cls(
            action_id=d["action_id"],
            timestamp=d["timestamp"],
            action_type=d["action_type"],
            command=d.get("command", ""),
            params=d.get("params") or {},
            description=d.get("description", ""),
        )
