"""Route table frozen dataclasses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from burrow._internal.types import Handler
from burrow.routing.unit import RouteUnit


@dataclass(frozen=True, slots=True)
class UnitEntry:
    """A leaf unit discovered in the route tree.

    Exactly one of ``unit`` and ``error`` is set: modules that fail to
    import, or that do not define exactly one unit, keep their error.
    """

    path: str
    source: Path
    unit: type[RouteUnit] | None = None
    error: BaseException | None = None


@dataclass(frozen=True, slots=True)
class RouteNode:
    """One directory of the route tree.

    ``files`` holds the names of every plain file in the directory, unit
    sources included.
    """

    path: str
    directories: Mapping[str, RouteNode] = field(default_factory=dict)
    units: Mapping[str, UnitEntry] = field(default_factory=dict)
    files: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """A resolved unit plus the segments left after it."""

    entry: UnitEntry
    segments: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class HandlerMatch:
    """A resolved handler on an instantiated unit."""

    key: str
    handler: Handler
    params: tuple[str, ...]
