"""Filesystem-convention routing: discovery, route units and the tree walker."""

from burrow.routing.discovery import discover_routes
from burrow.routing.route import HandlerMatch, RouteMatch, RouteNode, UnitEntry
from burrow.routing.router import Router, resolve_handler, split_path
from burrow.routing.unit import RouteUnit, handler_key, handles

__all__ = [
    "HandlerMatch",
    "RouteMatch",
    "RouteNode",
    "RouteUnit",
    "Router",
    "UnitEntry",
    "discover_routes",
    "handler_key",
    "handles",
    "resolve_handler",
    "split_path",
]
