"""ASGI handler — translates ASGI scope/messages to burrow types.

The only component that touches raw HTTP ASGI messages. Reads the raw
body (enforcing the size limit), builds the Request, dispatches it and
sends the Response back through ASGI send().
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from burrow._internal.asgi import Receive, Scope, Send
from burrow.errors import HTTPError
from burrow.http.request import Request
from burrow.http.response import Response
from burrow.server.errors import handle_http_error, handle_internal_error
from burrow.server.sender import drain_body, send_response

if TYPE_CHECKING:
    from burrow.app import App


class _BodyTooLarge(Exception):
    pass


async def handle_request(scope: Scope, receive: Receive, send: Send, *, app: App) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    config = app.config
    request = Request.from_asgi(scope)

    # Requests outside the base url never reach the dispatcher
    base = config.base_url.strip("/")
    if base and request.path != base and not request.path.startswith(base + "/"):
        response = Response(body="Not found", status=404, headers={"Content-Type": "text/plain; charset=utf-8"})
        await send_response(response, send)
        return

    too_large = HTTPError(413, "Request body too large")
    declared = request.content_length
    if declared is not None and declared > config.max_content_length:
        await send_response(handle_http_error(too_large, request, show_errors=config.show_errors), send)
        return

    try:
        body = await read_body(receive, limit=config.max_content_length)
    except _BodyTooLarge:
        await send_response(handle_http_error(too_large, request, show_errors=config.show_errors), send)
        return
    if body is None:
        # Client went away before the body arrived
        return

    request = replace(request, body=body)
    try:
        response = await app.handle(request)
        response = replace(response, body=await drain_body(response))
    except Exception as exc:
        response = handle_internal_error(exc, request, show_errors=config.show_errors)

    await send_response(response, send, head=request.method == "head")


async def read_body(receive: Receive, *, limit: int) -> bytes | None:
    """Read the full request body; ``None`` if the client disconnected.

    Raises:
        _BodyTooLarge: the body grew past *limit* bytes.
    """
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return None
        chunk = message.get("body", b"")
        size += len(chunk)
        if size > limit:
            raise _BodyTooLarge
        chunks.append(chunk)
        if not message.get("more_body", False):
            return b"".join(chunks)
