"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: the ``Request`` being dispatched in this task.
- ``session_var``: the ``Session`` started for it.

Both are set by the dispatcher and reset after each request. Outside a
dispatch, ``get_request()`` and ``get_session()`` raise ``LookupError``.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

from burrow.http.request import Request

if TYPE_CHECKING:
    from burrow.sessions.manager import Session

request_var: ContextVar[Request] = ContextVar("burrow_request")
"""The current request. Set by the dispatcher before any hook runs."""

session_var: ContextVar[Session] = ContextVar("burrow_session")
"""The current session. Set by the dispatcher once the session started."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def get_session() -> Session:
    """Return the current session.

    Raises ``LookupError`` if called outside a request context.
    """
    return session_var.get()
