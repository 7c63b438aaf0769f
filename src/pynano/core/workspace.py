"""Workspace: the resources a session's commands act on."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import pandas as pd


class _Missing:
    """Marker for "no value was stored under this key"."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class ValueStore:
    """Named values, the simplest target a command can change."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def lookup(self, key: str) -> Any:
        """Return the stored value or MISSING."""
        return self._values.get(key, MISSING)

    def set(self, key: str, value: Any) -> None:
        if value is MISSING:
            self._values.pop(key, None)
        else:
            self._values[key] = value

    def delete(self, key: str) -> Any:
        return self._values.pop(key)

    def snapshot(self) -> dict[str, Any]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


class TextBuffer:
    """In-memory text edited through insert/delete at character offsets."""

    def __init__(self, text: str = "") -> None:
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def insert(self, position: int, text: str) -> None:
        if not 0 <= position <= len(self._text):
            raise IndexError(
                f"position {position} outside buffer of length {len(self._text)}"
            )
        self._text = self._text[:position] + text + self._text[position:]

    def delete(self, start: int, end: int) -> str:
        """Remove text[start:end] and return the removed slice."""
        if not 0 <= start <= end <= len(self._text):
            raise IndexError(
                f"range {start}:{end} outside buffer of length {len(self._text)}"
            )
        removed = self._text[start:end]
        self._text = self._text[:start] + self._text[end:]
        return removed


@dataclass
class Workspace:
    """Everything one session's commands may touch.

    ``root`` is the directory file commands are confined to; file commands
    fail when it is None.
    """

    values: ValueStore = field(default_factory=ValueStore)
    buffer: TextBuffer = field(default_factory=TextBuffer)
    table: pd.DataFrame = field(default_factory=pd.DataFrame)
    root: Path | None = None

    def resolve(self, relative: str | Path) -> Path:
        """Resolve *relative* against root, refusing paths that leave it."""
        if self.root is None:
            raise ValueError("workspace has no root directory")
        root = self.root.resolve()
        path = (root / relative).resolve()
        if path != root and root not in path.parents:
            raise ValueError(f"path {str(relative)!r} escapes the workspace root")
        return path

    def to_dict(self) -> dict:
        return {
            "values": {k: _jsonable(v) for k, v in self.values.snapshot().items()},
            "buffer": self.buffer.text,
            "table": {
                "columns": [str(c) for c in self.table.columns],
                "rows": [
                    [("" if pd.isna(v) else _jsonable(v)) for v in row]
                    for row in self.table.itertuples(index=False, name=None)
                ],
            },
            "root": str(self.root) if self.root is not None else None,
        }


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if hasattr(value, "item"):
        # numpy scalars coming out of a DataFrame
        return value.item()
    return str(value)


def table_from_dict(data: dict[str, Any] | None) -> pd.DataFrame:
    """Build a table from ``{"columns": [...], "rows": [[...], ...]}``.

    Short rows are padded with empty strings. An empty or missing mapping
    gives an empty table.
    """
    if not data:
        return pd.DataFrame()
    columns = [str(c) for c in data.get("columns") or []]
    rows = data.get("rows") or []
    if len(set(columns)) != len(columns):
        raise ValueError(f"duplicate column names in {columns}")
    padded = []
    for i, row in enumerate(rows):
        if len(row) > len(columns):
            raise ValueError(f"row {i + 1} has {len(row)} cells for {len(columns)} columns")
        padded.append(list(row) + [""] * (len(columns) - len(row)))
    return pd.DataFrame(padded, columns=columns)
