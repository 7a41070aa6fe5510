"""Route tree walker over the compiled route table.

The table is built once by ``discover_routes``; resolution never touches
the filesystem. Resolution happens in two steps because the handler can
only be chosen on an instantiated unit:

1. ``Router.resolve(path)`` walks directories to a leaf unit.
2. ``resolve_handler(unit, method, segments)`` picks the handler and
   turns the remaining segments into positional parameters.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote

from burrow.errors import RouteNotFound
from burrow.routing.discovery import discover_routes, iter_units
from burrow.routing.route import HandlerMatch, RouteMatch, RouteNode, UnitEntry
from burrow.routing.unit import INDEX, RouteUnit


def split_path(path: str) -> list[str]:
    """Path segments, with empty, ``.`` and ``..`` segments discarded."""
    return [part for part in path.split("/") if part not in ("", ".", "..")]


class Router:
    """Resolves URL paths against a route table."""

    __slots__ = ("root",)

    def __init__(self, root: RouteNode) -> None:
        self.root = root

    @classmethod
    def from_directory(cls, routes_dir: str | Path) -> Router:
        return cls(discover_routes(routes_dir))

    @property
    def units(self) -> list[UnitEntry]:
        return iter_units(self.root)

    @property
    def load_errors(self) -> list[UnitEntry]:
        return [entry for entry in self.units if entry.error is not None]

    def resolve(self, path: str) -> RouteMatch:
        """Walk *path* down to a leaf unit.

        Raises:
            RouteNotFound: ``kind="script"`` when no unit matches.
        """
        segments = split_path(path)
        node = self.root
        i = 0
        part = segments[0] if segments else INDEX

        while True:
            target = f"{node.path}/{part}" if node.path else part
            # ``part`` is not consumed when it is the index fallback for a
            # segment that still has to be matched
            consumes = i < len(segments) and segments[i] == part

            child = node.directories.get(part)
            if child is not None:
                node = child
                if consumes:
                    i += 1
                part = segments[i] if i < len(segments) else INDEX
                continue

            if part in node.files:
                raise RouteNotFound("script", target)

            entry = node.units.get(part)
            if entry is not None:
                if consumes:
                    i += 1
                return RouteMatch(entry=entry, segments=tuple(segments[i:]))

            if part != INDEX:
                part = INDEX
                continue

            raise RouteNotFound("script", target)


def resolve_handler(unit: RouteUnit, method: str, segments: tuple[str, ...]) -> HandlerMatch:
    """Choose the handler on *unit* for the segments left after it.

    Raises:
        RouteNotFound: ``kind="function"`` when no candidate key exists.
    """
    part = segments[0] if segments else None
    for key, consumes in unit.candidates(method, part):
        handler = unit.handler_for(key)
        if handler is None:
            continue
        rest = segments[1:] if consumes else segments
        params = tuple(unquote(segment).strip() for segment in rest)
        return HandlerMatch(key=key, handler=handler, params=params)

    raise RouteNotFound("function", part or INDEX)
