"""Invoke helpers — call sync or async hooks uniformly.

Lifecycle hooks (``request_received``, ``not_found``, ``before_execute``,
startup/shutdown, realtime events) may be ``def`` or ``async def``.
Route handlers are stricter and must be coroutine functions; the
dispatcher checks that itself before calling them.

Usage::

    from burrow._internal.invoke import invoke

    result = await invoke(hook, request, session)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
