"""Notes — per-visitor notes kept entirely in the session.

The route tree lives next to this file:

    routes/index.py   ->  /            (visit counter)
    routes/notes.py   ->  /notes/...   (list, show, create, clear)

Demonstrates filesystem routing, method-qualified handlers, positional
parameters, session data, and the request/not-found hooks.

Run with any ASGI server:
    cd examples/notes && uvicorn app:app
"""

import os
from pathlib import Path

from burrow import App, PathsConfig, ServerConfig, SessionConfig
from burrow.config import HTTPListener, ListenersConfig
from burrow.http import quick

HERE = Path(__file__).parent

app = App(
    ServerConfig(
        paths=PathsConfig(
            routes=HERE / "routes",
            uploads=os.environ.get("BURROW_UPLOADS", HERE / "uploads"),
        ),
        sessions=SessionConfig(secret_key=os.environ.get("BURROW_SECRET", "change-me"), minutes_expiration=60),
        listeners=ListenersConfig(http=HTTPListener(port=8000)),
    )
)


@app.on_request_received
def read_only_mode(request, session):
    """Refuse writes while ``NOTES_READ_ONLY`` is set."""
    if os.environ.get("NOTES_READ_ONLY") and request.method != "get":
        return quick.service_unavailable({"error": "Notes are read-only right now"})
    return None


@app.on_not_found
def not_found(kind, request, session):
    """JSON 404s for everything under /notes."""
    if request.path.startswith("notes"):
        return quick.not_found({"error": "Not found", "path": "/" + request.path})
    return None
