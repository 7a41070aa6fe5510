"""Shared type aliases used across burrow modules."""

from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

# Lifecycle hook: returns a Response to short-circuit, or None to continue
Hook: TypeAlias = Callable[..., Any]

# Route handler: bound coroutine method on a RouteUnit
Handler: TypeAlias = Callable[..., Awaitable[Any]]
