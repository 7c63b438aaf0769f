"""Pytest fixtures shared across all tests."""

from __future__ import annotations

import pandas as pd
import pytest

from pynano.core.dispatcher import Dispatcher
from pynano.core.guards import ALL, PermissionGuard
from pynano.core.history import CommandHistory
from pynano.core.registry import build_default_registry
from pynano.core.workspace import Workspace


@pytest.fixture
def table_df() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Titre": ["Introduction", "Méthodes", "Analyse"],
            "Type": ["Article", "Rapport", "Thèse"],
        }
    )


@pytest.fixture
def workspace(tmp_path, table_df) -> Workspace:
    root = tmp_path / "root"
    root.mkdir()
    return Workspace(table=table_df, root=root)


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def history() -> CommandHistory:
    return CommandHistory()


@pytest.fixture
def dispatcher(registry, workspace, history) -> Dispatcher:
    return Dispatcher(registry, workspace, history=history, guard=PermissionGuard([ALL]))
