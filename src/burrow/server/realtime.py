"""Realtime event channel over ASGI websockets.

Clients connect to ``/<url_path>/`` and exchange JSON text frames::

    {"event": "chat:message", "data": ["hello", {"room": 3}]}

Each connection gets a session started from the handshake cookies.
Incoming frames are dispatched to the configured ``events`` handlers as
``RealtimeEvent(client, session, data)``; handlers reply through
``client.emit(event, *data)``. A failing handler is logged and the
connection stays open.
"""

from __future__ import annotations

import json as json_module
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from burrow._internal.asgi import Receive, Scope, Send
from burrow._internal.invoke import invoke
from burrow.config import RealtimeListener
from burrow.errors import SessionBackendError
from burrow.http.cookies import Cookie
from burrow.http.request import Request
from burrow.server.dispatcher import new_session
from burrow.sessions.manager import Session
from burrow.sessions.tokens import SESSION_COOKIE

if TYPE_CHECKING:
    from burrow.app import App

logger = logging.getLogger("burrow.server")


class RealtimeClient:
    """One connected websocket client."""

    __slots__ = ("_closed", "_send", "request")

    def __init__(self, send: Send, request: Request) -> None:
        self._send = send
        self._closed = False
        self.request = request

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: str, *data: Any) -> None:
        """Send *event* with *data* to this client."""
        frame = json_module.dumps({"event": event, "data": list(data)}, default=str)
        await self._send({"type": "websocket.send", "text": frame})

    async def close(self, code: int = 1000) -> None:
        if self._closed:
            return
        self._closed = True
        await self._send({"type": "websocket.close", "code": code})


@dataclass(frozen=True, slots=True)
class RealtimeEvent:
    """What an event handler receives."""

    client: RealtimeClient
    session: Session
    data: tuple[Any, ...]


def _channel_path(listener: RealtimeListener) -> str:
    return listener.url_path.strip("/")


def parse_frame(text: str) -> tuple[str, tuple[Any, ...]] | None:
    """Event name and data from a text frame, or ``None`` if malformed."""
    try:
        payload = json_module.loads(text)
    except ValueError:
        return None
    if not isinstance(payload, Mapping) or not isinstance(payload.get("event"), str):
        return None
    data = payload.get("data", [])
    if not isinstance(data, list):
        data = [data]
    return payload["event"], tuple(data)


async def handle_websocket(scope: Scope, receive: Receive, send: Send, *, app: App) -> None:
    """Serve one websocket connection on the realtime channel."""
    message = await receive()
    if message["type"] != "websocket.connect":
        return

    listener = app.config.listeners.realtime
    request = Request.from_asgi(scope)
    if listener is None or request.path.rstrip("/") != _channel_path(listener):
        await send({"type": "websocket.close", "code": 1000})
        return

    session = new_session(app, request)
    await session.start()

    headers: list[tuple[bytes, bytes]] = []
    if session.token is not None:
        cookie = Cookie(SESSION_COOKIE, session.token, same_site=app.config.sessions.same_site).to_header_value()
        headers.append((b"set-cookie", cookie.encode("latin-1")))
    await send({"type": "websocket.accept", "headers": headers})

    client = RealtimeClient(send, request)
    logger.debug("Realtime client connected from %s", request.ip)

    if listener.on_connect is not None:
        try:
            await invoke(listener.on_connect, client, session)
        except Exception:
            logger.exception("Realtime 'on_connect' failed for %s", request.ip)
        await _persist(session, request)

    while not client.closed:
        message = await receive()
        if message["type"] == "websocket.disconnect":
            break
        if message["type"] != "websocket.receive":
            continue

        text = message.get("text")
        if text is None and message.get("bytes") is not None:
            text = message["bytes"].decode("utf-8", errors="replace")
        parsed = parse_frame(text or "")
        if parsed is None:
            logger.warning("Ignoring malformed realtime frame from %s", request.ip)
            continue

        name, data = parsed
        handler = listener.events.get(name)
        if handler is None:
            logger.debug("No realtime handler for event '%s'", name)
            continue
        try:
            await invoke(handler, RealtimeEvent(client=client, session=session, data=data))
        except Exception:
            logger.exception("Realtime event '%s' failed for %s", name, request.ip)
        await _persist(session, request)

    logger.debug("Realtime client disconnected from %s", request.ip)


async def _persist(session: Session, request: Request) -> None:
    if not session.modified:
        return
    try:
        await session.save()
    except SessionBackendError:
        logger.exception("Could not persist session %s for %s", session.id, request.ip)
