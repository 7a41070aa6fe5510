"""Burrow exception hierarchy.

Shared across the route walker, the session subsystem, the dispatcher
and the ASGI handler so every module raises and catches the same types.

Only ``ConfigurationError`` is fatal. Everything that can happen while
handling a request is an ``HTTPError`` (turned into a response envelope
by the dispatcher) or a ``SessionBackendError`` (recovered inside the
session subsystem).
"""

from dataclasses import dataclass


class BurrowError(Exception):
    """Base for all burrow-specific errors."""


class ConfigurationError(BurrowError):
    """Raised when server configuration is invalid.

    Raised synchronously by ``App(...)`` before anything is served.
    """


class SessionBackendError(BurrowError):
    """A stored session body could not be read, parsed, or written.

    Never reaches the client: the session manager discards the body and
    starts a fresh session instead.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(BurrowError):
    """An error that maps directly to an HTTP status code.

    Raised by the route walker and the dispatcher phases; the dispatcher
    converts it to a response envelope.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class RouteNotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route unit, or no handler on the unit, matches the path.

    ``kind`` is ``"script"`` when no unit file was found and
    ``"function"`` when the unit exists but has no matching handler.
    ``target`` names what was looked up (unit path or handler name).
    """

    kind: str
    target: str

    def __init__(self, kind: str, target: str, detail: str = "Route not found") -> None:
        super().__init__(status=404, detail=detail)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "target", target)


class AccessDenied(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """401 — the client IP is deny-listed or missing from the allow-list."""

    ip: str

    def __init__(self, ip: str) -> None:
        super().__init__(status=401, detail=f"Access denied for IP '{ip}'")
        object.__setattr__(self, "ip", ip)


class RouteLoadError(HTTPError):
    """500 — the unit module failed to import or did not define a unit."""

    def __init__(self, detail: str) -> None:
        super().__init__(status=500, detail=detail)


class HandlerError(HTTPError):
    """500 — the handler (or its ``finalize`` hook) is invalid or raised."""

    def __init__(self, detail: str) -> None:
        super().__init__(status=500, detail=detail)


class HookError(HTTPError):
    """500/503 — a lifecycle hook raised."""

    hook: str

    def __init__(self, hook: str, status: int = 500) -> None:
        super().__init__(status=status, detail=f"Error running the '{hook}' hook")
        object.__setattr__(self, "hook", hook)
