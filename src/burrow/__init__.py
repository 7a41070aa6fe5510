"""Burrow — filesystem-convention routing with managed sessions.

The route tree is a directory: ``routes/admin/users.py`` answers
``/admin/users/...``. Every request gets a signed, persisted session.

Basic usage::

    # routes/index.py
    from burrow import RouteUnit, handles

    class Home(RouteUnit):
        @handles()
        async def index(self, *params):
            visits = (self.session.get("visits") or 0) + 1
            self.session.set("visits", visits)
            return {"visits": visits}

    # app.py
    from burrow import App, ServerConfig, PathsConfig, SessionConfig
    from burrow.config import HTTPListener, ListenersConfig

    app = App(ServerConfig(
        paths=PathsConfig(routes="routes"),
        sessions=SessionConfig(secret_key="change-me"),
        listeners=ListenersConfig(http=HTTPListener(port=8000)),
    ))

Serve ``app`` with any ASGI server.
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "BurrowError",
    "ConfigurationError",
    "FileInfo",
    "FileStream",
    "HTTPError",
    "PathsConfig",
    "Redirect",
    "Request",
    "Response",
    "RouteUnit",
    "ServerConfig",
    "Session",
    "SessionConfig",
    "get_request",
    "get_session",
    "handles",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import burrow`` fast while providing a clean top-level API.
    """
    if name == "App":
        from burrow.app import App

        return App

    if name in ("ServerConfig", "PathsConfig", "SessionConfig"):
        from burrow import config as _config

        return getattr(_config, name)

    if name == "Request":
        from burrow.http.request import Request

        return Request

    if name in ("Response", "Redirect", "FileInfo", "FileStream"):
        from burrow.http import response as _resp

        return getattr(_resp, name)

    if name in ("RouteUnit", "handles"):
        from burrow.routing import unit as _unit

        return getattr(_unit, name)

    if name == "Session":
        from burrow.sessions.manager import Session

        return Session

    if name in ("get_request", "get_session"):
        from burrow import context as _ctx

        return getattr(_ctx, name)

    if name in ("BurrowError", "ConfigurationError", "HTTPError"):
        from burrow import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
