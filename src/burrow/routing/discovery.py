"""Filesystem route discovery for the routes directory.

Walks the routes directory tree once and records, per directory:
- sub-directories, as child nodes
- ``.py`` files, as leaf units (imported eagerly)
- every plain file name, so requests naming a file directly are refused

``admin/users.py`` becomes the unit ``admin/users``. A unit module
either exposes its class as ``route`` or defines exactly one
``RouteUnit`` subclass.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path

from burrow.routing.route import RouteNode, UnitEntry
from burrow.routing.unit import RouteUnit

logger = logging.getLogger("burrow.routing")

# Unit source extensions, in preference order; the first match per stem wins
SOURCE_SUFFIXES: tuple[str, ...] = (".py",)

_SKIPPED_DIRS = frozenset({"__pycache__"})


class UnitDefinitionError(Exception):
    """A unit module did not define exactly one route unit."""


def discover_routes(routes_dir: str | Path) -> RouteNode:
    """Walk a routes directory and build the route table.

    Args:
        routes_dir: Path to the routes directory.

    Returns:
        The root :class:`RouteNode`.
    """
    root = Path(routes_dir).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Routes directory not found: {root}")
    return _walk_directory(root, rel_parts=())


def iter_units(node: RouteNode) -> list[UnitEntry]:
    """All units in the table, depth-first, sorted by path."""
    entries = list(node.units.values())
    for child in node.directories.values():
        entries.extend(iter_units(child))
    return sorted(entries, key=lambda entry: entry.path)


def _walk_directory(directory: Path, *, rel_parts: tuple[str, ...]) -> RouteNode:
    directories: dict[str, RouteNode] = {}
    units: dict[str, UnitEntry] = {}
    files: set[str] = set()

    for item in sorted(directory.iterdir()):
        if item.name.startswith("."):
            continue
        if item.is_dir():
            if item.name not in _SKIPPED_DIRS:
                directories[item.name] = _walk_directory(item, rel_parts=(*rel_parts, item.name))
            continue
        if not item.is_file():
            continue

        files.add(item.name)
        if item.suffix not in SOURCE_SUFFIXES or item.name.startswith("_"):
            continue
        existing = units.get(item.stem)
        if existing is not None and _preference(existing.source) <= _preference(item):
            continue
        units[item.stem] = _load_unit(item, "/".join((*rel_parts, item.stem)))

    return RouteNode(
        path="/".join(rel_parts),
        directories=directories,
        units=units,
        files=frozenset(files),
    )


def _preference(source: Path) -> int:
    return SOURCE_SUFFIXES.index(source.suffix)


def _load_unit(file: Path, unit_path: str) -> UnitEntry:
    """Import a unit file, keeping the failure when it cannot be used."""
    module_name = "burrow_routes." + unit_path.replace("/", ".")
    try:
        spec = importlib.util.spec_from_file_location(module_name, file)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load route file {file}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        unit = _unit_from_module(module)
    except Exception as exc:
        logger.exception("Failed to load route '%s' from %s", unit_path, file)
        return UnitEntry(path=unit_path, source=file, error=exc)

    return UnitEntry(path=unit_path, source=file, unit=unit)


def _unit_from_module(module: object) -> type[RouteUnit]:
    explicit = getattr(module, "route", None)
    if explicit is not None:
        if inspect.isclass(explicit) and issubclass(explicit, RouteUnit):
            return explicit
        raise UnitDefinitionError(f"'route' in {module.__name__} is not a RouteUnit subclass")  # type: ignore[attr-defined]

    found = [
        obj
        for obj in vars(module).values()
        if inspect.isclass(obj)
        and issubclass(obj, RouteUnit)
        and obj is not RouteUnit
        and obj.__module__ == module.__name__  # type: ignore[attr-defined]
    ]
    if len(found) != 1:
        msg = f"{module.__name__} defines {len(found)} RouteUnit subclasses, expected exactly one"  # type: ignore[attr-defined]
        raise UnitDefinitionError(msg)
    return found[0]
