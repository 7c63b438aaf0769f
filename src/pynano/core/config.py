"""Settings: YAML configuration file plus ``PYNANO_*`` environment overrides.

Example ``pynano.yml``::

    max_depth: 200
    permissions: [values.write, buffer.write, files.write]
    workspace_root: ./sandbox
    action_log: ./work/actions_log.jsonl
    session_ttl: 3600
    log_level: INFO
    cors_origins: ["*"]
    host: 127.0.0.1
    port: 8000
    table:
      columns: [Titre, Type]
      rows:
        - [Dune, roman]
        - [Solaris, roman]

Precedence, lowest first: defaults, the YAML file, environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from pynano.core.guards import DEFAULT_PERMISSIONS
from pynano.core.workspace import table_from_dict

_log = logging.getLogger(__name__)

ENV_PREFIX = "PYNANO_"
CONFIG_ENV_VAR = "PYNANO_CONFIG"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(ValueError):
    """The configuration file or an environment override is invalid."""


@dataclass
class Settings:
    max_depth: int = 500
    permissions: list[str] = field(default_factory=lambda: list(DEFAULT_PERMISSIONS))
    workspace_root: Path | None = None
    action_log: Path | None = None
    session_ttl: int = 3600  # seconds
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    host: str = "127.0.0.1"
    port: int = 0  # 0 = pick a free port
    table: dict[str, Any] | None = None  # initial table of every session

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ConfigError(f"max_depth must be >= 1, got {self.max_depth}")
        if not 0 <= self.port < 65536:
            raise ConfigError(f"port must be between 0 and 65535, got {self.port}")
        if self.session_ttl < 1:
            raise ConfigError(f"session_ttl must be >= 1, got {self.session_ttl}")
        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"Unknown log_level {self.log_level!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                _log.warning("Ignoring unknown setting %r", key)
                continue
            kwargs[key] = _coerce(key, value)
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "max_depth": self.max_depth,
            "permissions": list(self.permissions),
            "workspace_root": str(self.workspace_root) if self.workspace_root else None,
            "action_log": str(self.action_log) if self.action_log else None,
            "session_ttl": self.session_ttl,
            "log_level": self.log_level,
            "cors_origins": list(self.cors_origins),
            "host": self.host,
            "port": self.port,
            "table": self.table,
        }


def _split_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ConfigError(f"Expected a list, got {value!r}")


def _coerce(key: str, value: Any) -> Any:
    if key in ("max_depth", "session_ttl", "port"):
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{key} must be an integer, got {value!r}") from exc
    if key in ("permissions", "cors_origins"):
        return _split_list(value)
    if key in ("workspace_root", "action_log"):
        return Path(value).expanduser() if value not in (None, "") else None
    if key in ("log_level", "host"):
        return str(value)
    if key == "table":
        return _coerce_table(value)
    return value


def _coerce_table(value: Any) -> dict[str, Any] | None:
    if value in (None, ""):
        return None
    if isinstance(value, str):
        # Environment overrides carry the table as inline YAML
        try:
            value = yaml.safe_load(value)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse table: {exc}") from exc
    if not isinstance(value, dict) or not isinstance(value.get("columns"), list):
        raise ConfigError("table must be a mapping with a 'columns' list")
    rows = value.get("rows") or []
    if not isinstance(rows, list) or not all(isinstance(r, list) for r in rows):
        raise ConfigError("table rows must be a list of lists")
    table = {"columns": value["columns"], "rows": rows}
    try:
        table_from_dict(table)
    except ValueError as exc:
        raise ConfigError(f"Invalid table: {exc}") from exc
    return table


def _env_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    overrides = {}
    for f in fields(Settings):
        env_key = ENV_PREFIX + f.name.upper()
        if env_key in environ:
            overrides[f.name] = environ[env_key]
    return overrides


def load_settings(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> Settings:
    """Build Settings from *path* (or ``$PYNANO_CONFIG``) and the environment."""
    env = os.environ if environ is None else environ
    if path is None and env.get(CONFIG_ENV_VAR):
        path = Path(env[CONFIG_ENV_VAR])

    data: dict[str, Any] = {}
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")
        data.update(loaded)

    data.update(_env_overrides(env))
    return Settings.from_mapping(data)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
