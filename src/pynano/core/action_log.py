"""Action log: one JSON line per execute/undo/redo."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pynano.core.models import ActionLogEntry

_log = logging.getLogger(__name__)


class ActionLog:
    """Append-only JSONL log of what a session did."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, entry: ActionLogEntry) -> None:
        line = json.dumps(entry.to_dict(), ensure_ascii=False, default=str)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def read(self) -> list[ActionLogEntry]:
        if not self._path.exists():
            return []
        entries = []
        for line in self._path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(ActionLogEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError) as exc:
                _log.debug("Skipping invalid line in action log: %s (%s)", line[:80], exc)
        return entries


class NullActionLog(ActionLog):
    """No-op log for sessions without a log file."""

    def __init__(self) -> None:
        # No file, no directory
        pass

    @property
    def path(self) -> None:  # type: ignore[override]
        return None

    def append(self, entry: ActionLogEntry) -> None:
        pass

    def read(self) -> list[ActionLogEntry]:
        return []
