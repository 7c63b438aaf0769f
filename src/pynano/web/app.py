"""pynano Web API: FastAPI backend.

Workflow:
  POST /api/sessions                 → create a session → session_id
  POST /api/sessions/{id}/dispatch   → run a command by name
  POST /api/sessions/{id}/batch      → run several commands as one step
  POST /api/sessions/{id}/undo       → undo the last command
  POST /api/sessions/{id}/redo       → redo the last undone command
  GET  /api/sessions/{id}            → workspace state and history summary
  GET  /api/sessions/{id}/history    → undo/redo stacks
  GET  /api/sessions/{id}/log        → action log entries
  GET  /api/commands                 → registered command names

Run with:
  uvicorn pynano.web.app:app --reload --port 8000
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pynano.core.config import load_settings
from pynano.core.errors import (
    CommandError,
    CommandPermissionError,
    DuplicateCommandError,
    ExecutionError,
    HistoryError,
    InvalidArgumentsError,
    UndoError,
    UnknownCommandError,
)
from pynano.core.session import Session, SessionManager

_logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

settings = load_settings()
session_manager = SessionManager(settings)

_CORS_ALLOW_CREDENTIALS = "*" not in settings.cors_origins

# First match wins, so subclasses come before their bases.
_ERROR_STATUS: list[tuple[type[CommandError], int]] = [
    (UnknownCommandError, 404),
    (InvalidArgumentsError, 422),
    (CommandPermissionError, 403),
    (HistoryError, 409),
    (ExecutionError, 409),
    (UndoError, 409),
    (DuplicateCommandError, 409),
]

# ---------------------------------------------------------------------------
# Application FastAPI
# ---------------------------------------------------------------------------

app = FastAPI(
    title="pynano API",
    description="Undoable commands over HTTP",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=_CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def _log_startup() -> None:
    _logger.info(
        "pynano started: commands=%d max_depth=%d permissions=%s",
        len(session_manager.registry),
        settings.max_depth,
        ",".join(settings.permissions),
    )


@app.exception_handler(CommandError)
async def _command_error(request: Request, exc: CommandError) -> JSONResponse:
    status = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 400)
    if status >= 409:
        _logger.info("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@app.get("/health")
async def health():
    from pynano import __version__
    return {"status": "ok", "version": __version__}


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.get("/api/commands")
async def list_commands():
    registry = session_manager.registry
    commands = []
    for name in registry.names():
        factory = registry.get(name)
        required = getattr(factory, "required_permissions", None)
        commands.append(
            {
                "name": name,
                "permissions": sorted(required) if required is not None else None,
                "doc": (getattr(factory, "__doc__", None) or "").strip().split("\n")[0],
            }
        )
    return {"commands": commands}


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@app.post("/api/sessions")
async def create_session():
    session = session_manager.create()
    return {"session_id": session.id}


@app.get("/api/sessions/{session_id}")
async def get_session(session_id: str):
    session = _get_session(session_id)
    return session.run(lambda _d: session.summary())


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    if not session_manager.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return {"deleted": session_id}


@app.post("/api/sessions/{session_id}/dispatch")
async def dispatch(session_id: str, request: Request):
    session = _get_session(session_id)
    body = await _json_body(request)
    name = body.get("name")
    if not isinstance(name, str) or not name:
        raise HTTPException(status_code=422, detail="'name' must be a non-empty string")
    args = body.get("args") or []
    kwargs = body.get("kwargs") or {}
    if not isinstance(args, list) or not isinstance(kwargs, dict):
        raise HTTPException(status_code=422, detail="'args' must be a list and 'kwargs' an object")

    result = session.run(lambda d: d.dispatch(name, *args, **kwargs))
    return {**result.to_dict(), "workspace": session.workspace.to_dict()}


@app.post("/api/sessions/{session_id}/batch")
async def dispatch_batch(session_id: str, request: Request):
    session = _get_session(session_id)
    body = await _json_body(request)
    steps = body.get("steps")
    if not isinstance(steps, list) or not steps:
        raise HTTPException(status_code=422, detail="'steps' must be a non-empty list")
    label = str(body.get("label") or "Batch")

    result = session.run(lambda d: d.dispatch_batch(steps, label=label))
    return {**result.to_dict(), "workspace": session.workspace.to_dict()}


@app.post("/api/sessions/{session_id}/undo")
async def undo(session_id: str):
    session = _get_session(session_id)
    result = session.run(lambda d: d.undo())
    return {**result.to_dict(), "workspace": session.workspace.to_dict()}


@app.post("/api/sessions/{session_id}/redo")
async def redo(session_id: str):
    session = _get_session(session_id)
    result = session.run(lambda d: d.redo())
    return {**result.to_dict(), "workspace": session.workspace.to_dict()}


@app.get("/api/sessions/{session_id}/history")
async def history(session_id: str):
    session = _get_session(session_id)

    def _read(d) -> dict[str, Any]:
        return {
            "undo": d.history.undo_descriptions(),
            "redo": d.history.redo_descriptions(),
            "max_depth": d.history.max_depth,
        }

    return session.run(_read)


@app.get("/api/sessions/{session_id}/log")
async def action_log(session_id: str):
    session = _get_session(session_id)
    entries = session.run(lambda d: d.action_log.read())
    return {"entries": [e.to_dict() for e in entries]}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_session(session_id: str) -> Session:
    session = session_manager.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return session


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON body: {exc}") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=422, detail="Request body must be a JSON object")
    return body
