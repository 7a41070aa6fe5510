"""Route units — the per-request handler objects living in the route tree.

A route file defines one ``RouteUnit`` subclass. Its handlers are async
methods registered under conventional keys with ``@handles``::

    from burrow import RouteUnit, handles


    class Users(RouteUnit):
        deny_ips = ("10.0.0.13",)

        @handles()                      # $index
        async def listing(self, *params):
            ...

        @handles("7", method="get")     # get$7
        async def seventh(self):
            ...

Keys follow the ``<method>$<segment>`` / ``$<segment>`` convention; the
handler table is built once per class by ``__init_subclass__``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

if TYPE_CHECKING:
    from burrow.app import App
    from burrow.http.request import Request
    from burrow.sessions.manager import Session

F = TypeVar("F", bound=Callable[..., Any])

_HANDLES_ATTR = "__burrow_handles__"

INDEX = "index"


def handler_key(segment: str = INDEX, method: str | None = None) -> str:
    """The conventional lookup key for *segment*, optionally method-qualified."""
    if method:
        return f"{method.lower()}${segment}"
    return f"${segment}"


def handles(segment: str = INDEX, *, method: str | None = None) -> Callable[[F], F]:
    """Register the decorated method under ``[method]$segment``.

    Stackable: one method may answer several keys.
    """

    def decorator(func: F) -> F:
        keys = getattr(func, _HANDLES_ATTR, ())
        setattr(func, _HANDLES_ATTR, (*keys, handler_key(segment, method)))
        return func

    return decorator


class RouteUnit:
    """Base class for handler units.

    Instantiated once per request with the application, the request and
    the session. ``allow_ips`` and ``deny_ips`` may be overridden on the
    class or per instance (in ``__init__``).
    """

    allow_ips: tuple[str, ...] = ()
    deny_ips: tuple[str, ...] = ()

    # handler key -> attribute name, merged across the MRO
    handlers: ClassVar[Mapping[str, str]] = MappingProxyType({})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        table: dict[str, str] = {}
        for klass in reversed(cls.__mro__):
            for name, member in vars(klass).items():
                for key in getattr(member, _HANDLES_ATTR, ()):
                    table[key] = name
        cls.handlers = MappingProxyType(table)

    def __init__(self, app: App, request: Request, session: Session) -> None:
        self.app = app
        self.request = request
        self.session = session

    @staticmethod
    def candidates(method: str, part: str | None) -> list[tuple[str, bool]]:
        """Ordered lookup keys for *part*, each with whether it consumes *part*."""
        if part is None:
            return [(handler_key(INDEX, method), False), (handler_key(INDEX), False)]
        return [
            (handler_key(part, method), True),
            (handler_key(part), True),
            (handler_key(INDEX), False),
        ]

    def handler_for(self, key: str) -> Callable[..., Any] | None:
        """The bound handler registered under *key*, if any."""
        name = self.handlers.get(key)
        if name is None:
            return None
        return getattr(self, name)

    def is_ip_allowed(self, ip: str) -> bool:
        if self.allow_ips and ip not in self.allow_ips:
            return False
        return not (self.deny_ips and ip in self.deny_ips)

    async def finalize(self) -> None:
        """Runs after the handler, whatever its outcome."""
