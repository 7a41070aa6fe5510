"""Quick responses — one-liners for the common status codes.

Each helper normalizes *body* the same way a handler return value is
normalized, then stamps the status::

    from burrow.http import quick

    async def get(self, note_id):
        note = await self.app.notes.find(note_id)
        if note is None:
            return quick.not_found({"error": "no such note"})
        return quick.ok(note)
"""

from dataclasses import replace
from typing import Any

from burrow.http.response import Redirect, Response
from burrow.server.negotiation import negotiate


def _with_status(body: Any, status: int, status_text: str | None) -> Response:
    response = negotiate(body, status=status)
    if response.status != status:
        response = response.with_status(status)
    if status_text is not None:
        response = replace(response, status_text=status_text)
    return response


def ok(body: Any = None, status_text: str | None = None) -> Response:
    return _with_status(body, 200, status_text)


def found(body: Any = None, status_text: str | None = None) -> Response:
    return _with_status(body, 302, status_text)


def forbidden(body: Any = None, status_text: str | None = None) -> Response:
    return _with_status(body, 403, status_text)


def not_found(body: Any = None, status_text: str | None = None) -> Response:
    return _with_status(body, 404, status_text)


def unprocessable_content(body: Any = None, status_text: str | None = None) -> Response:
    return _with_status(body, 422, status_text)


def service_unavailable(body: Any = None, status_text: str | None = None) -> Response:
    return _with_status(body, 503, status_text)


def internal_server_error(body: Any = None, status_text: str | None = None) -> Response:
    return _with_status(body, 500, status_text)


def redirect(url: str, status: int = 302) -> Response:
    """Redirect to *url* (``Location`` header, empty body)."""
    return negotiate(Redirect(url, status=status))
