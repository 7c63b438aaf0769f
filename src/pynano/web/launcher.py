"""Standalone launcher for the pynano web API.

Reads the settings (``$PYNANO_CONFIG`` and ``PYNANO_*`` variables), picks a
free port when none is configured, and serves the app with uvicorn.

Usage:
    python -m pynano
"""

from __future__ import annotations

import logging
import socket

import uvicorn

from pynano.core.config import Settings, configure_logging, load_settings

_log = logging.getLogger(__name__)


def find_free_port(host: str = "127.0.0.1", start: int = 8400, end: int = 8500) -> int:
    """Return the first free TCP port in [start, end)."""
    for port in range(start, end):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind((host, port))
                return port
            except OSError:
                continue
    raise RuntimeError(f"No free port between {start} and {end}.")


def resolve_port(settings: Settings) -> int:
    return settings.port or find_free_port(settings.host)


def main() -> None:
    settings = load_settings()
    configure_logging(settings)
    port = resolve_port(settings)
    _log.info("Serving pynano on http://%s:%d", settings.host, port)
    uvicorn.run(
        "pynano.web.app:app",
        host=settings.host,
        port=port,
        log_level=settings.log_level.lower(),
    )
