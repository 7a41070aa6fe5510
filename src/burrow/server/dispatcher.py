"""Request dispatcher — runs one request through every phase.

Phases, in order:

1. Protocol redirect (plain http while an https listener exists)
2. Session start, then the ``request_received`` hook
3. Base-url stripping, rewrite rules, default route
4. Public files
5. Route resolution (``not_found`` hook on a miss)
6. Unit construction and handler resolution
7. IP allow/deny lists
8. ``before_execute`` hook
9. Handler invocation, then ``finalize`` whatever happened
10. Result normalization, session persistence, session cookie

Every failure becomes a response envelope; nothing raised inside a phase
escapes ``dispatch``.
"""

from __future__ import annotations

import inspect
import logging
import re
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from burrow._internal.invoke import invoke
from burrow.config import ServerConfig
from burrow.context import request_var, session_var
from burrow.errors import (
    AccessDenied,
    HandlerError,
    HookError,
    HTTPError,
    RouteLoadError,
    RouteNotFound,
    SessionBackendError,
)
from burrow.http.request import Request
from burrow.http.response import Redirect, Response
from burrow.routing.router import resolve_handler
from burrow.routing.route import HandlerMatch
from burrow.routing.unit import RouteUnit
from burrow.server.errors import handle_http_error, handle_internal_error
from burrow.server.negotiation import negotiate
from burrow.server.static import find_public_file
from burrow.sessions.manager import Session
from burrow.sessions.tokens import SESSION_COOKIE

if TYPE_CHECKING:
    from burrow.app import App

logger = logging.getLogger("burrow.server")


async def dispatch(app: App, request: Request) -> Response:
    """Process one normalized request and return its envelope."""
    config = app.config

    https = config.listeners.https
    if request.protocol == "http" and https is not None:
        url = f"https://{request.hostname}:{https.port}/{request.path}{request.query_url}"
        return negotiate(Redirect(url))

    logger.debug("%s %s /%s", request.ip, request.method.upper(), request.path)

    session = new_session(app, request)
    await session.start()

    request_token = request_var.set(request)
    session_token = session_var.set(session)
    try:
        response = await _run_phases(app, request, session)
        if session.modified:
            try:
                await session.save()
            except SessionBackendError:
                logger.exception("Could not persist session %s for %s", session.id, request.ip)
    finally:
        session_var.reset(session_token)
        request_var.reset(request_token)

    return attach_session_cookie(response, session, config)


def new_session(app: App, request: Request) -> Session:
    """An unstarted session for *request*, bound to its client."""
    return Session(
        app.store,
        app.signer,
        token=request.cookies.get(SESSION_COOKIE),
        ip=request.ip,
        hostname=request.hostname,
        user_agent=request.user_agent,
        minutes_expiration=app.config.sessions.minutes_expiration,
    )


def attach_session_cookie(response: Response, session: Session, config: ServerConfig) -> Response:
    token = session.token
    if token is None:
        return response
    return response.with_cookie(
        SESSION_COOKIE,
        token,
        httponly=True,
        same_site=config.sessions.same_site,
        path="/",
    )


def route_path(config: ServerConfig, request: Request) -> tuple[Request, str]:
    """The path to route, after base-url stripping, rewriting and defaulting.

    Returns the request too: a matching rewrite rule records the new path
    on a copy as ``request.remap``.
    """
    path = request.path
    base = config.base_url.strip("/")
    if base:
        path = re.sub(rf"^{re.escape(base)}(/|$)", "", path, count=1)

    if path:
        for rule in config.remap:
            rewritten = rule.apply(path)
            if rewritten != path:
                path = rewritten
                request = replace(request, remap=rewritten)
                break

    return request, path or config.default_route


async def _run_phases(app: App, request: Request, session: Session) -> Response:
    config = app.config
    show_errors = config.show_errors
    hooks = app.hooks

    if hooks.request_received is not None:
        try:
            result = await invoke(hooks.request_received, request, session)
        except Exception as exc:
            return handle_http_error(
                HookError("request_received", status=503), request, cause=exc, show_errors=show_errors
            )
        if result is not None:
            return _negotiate(result, request, show_errors)

    request, path = route_path(config, request)
    request_var.set(request)

    if config.public is not None:
        public_file = find_public_file(config.public, request, path)
        if public_file is not None:
            return _negotiate(public_file, request, show_errors)

    try:
        match = app.router.resolve(path)
    except RouteNotFound as exc:
        return await _not_found(app, exc, request, session)

    entry = match.entry
    if entry.unit is None:
        error = RouteLoadError(f"Error importing route '{entry.path}'")
        return handle_http_error(error, request, cause=entry.error, show_errors=show_errors)

    try:
        unit = entry.unit(app, request, session)
    except Exception as exc:
        error = RouteLoadError(f"Error creating route '{entry.path}'")
        return handle_http_error(error, request, cause=exc, show_errors=show_errors)

    try:
        handler_match = resolve_handler(unit, request.method, match.segments)
    except RouteNotFound as exc:
        return await _not_found(app, _qualify_miss(exc, entry.path), request, session)

    if not unit.is_ip_allowed(request.ip):
        return handle_http_error(AccessDenied(request.ip), request, show_errors=show_errors)

    if hooks.before_execute is not None:
        try:
            result = await invoke(hooks.before_execute, unit, request, session)
        except Exception as exc:
            return handle_http_error(HookError("before_execute"), request, cause=exc, show_errors=show_errors)
        if result is not None:
            return _negotiate(result, request, show_errors)

    if not inspect.iscoroutinefunction(handler_match.handler):
        error = HandlerError(f"'{handler_match.key}' in '{entry.path}' is not a valid route handler (must be async def)")
        return handle_http_error(error, request, show_errors=show_errors)

    return await _execute(unit, handler_match, entry.path, request, show_errors=show_errors)


async def _execute(
    unit: RouteUnit,
    handler_match: HandlerMatch,
    unit_path: str,
    request: Request,
    *,
    show_errors: bool,
) -> Response:
    """Invoke the handler, then ``finalize`` exactly once."""
    failure: Response | None = None
    result: Any = None
    try:
        result = await handler_match.handler(*handler_match.params)
    except HTTPError as exc:
        failure = handle_http_error(exc, request, show_errors=show_errors)
    except Exception as exc:
        error = HandlerError(f"Error running '{handler_match.key}' in '{unit_path}'")
        failure = handle_http_error(error, request, cause=exc, show_errors=show_errors)
    finally:
        try:
            await unit.finalize()
        except Exception as exc:
            error = HandlerError(f"Error running 'finalize' in '{unit_path}'")
            failure = handle_http_error(error, request, cause=exc, show_errors=show_errors)

    if failure is not None:
        return failure
    return _negotiate(result, request, show_errors)


def _negotiate(result: Any, request: Request, show_errors: bool) -> Response:
    try:
        return negotiate(result)
    except Exception as exc:
        return handle_internal_error(exc, request, show_errors=show_errors)


async def _not_found(app: App, exc: RouteNotFound, request: Request, session: Session) -> Response:
    hook = app.hooks.not_found
    if hook is not None:
        try:
            result = await invoke(hook, exc.kind, request, session)
        except Exception as err:
            return handle_http_error(HookError("not_found"), request, cause=err, show_errors=app.config.show_errors)
        if result is not None:
            return _negotiate(result, request, app.config.show_errors)
    return handle_http_error(exc, request, show_errors=app.config.show_errors)


def _qualify_miss(exc: RouteNotFound, unit_path: str) -> RouteNotFound:
    """Qualify a handler miss with the unit it was looked up on."""
    return RouteNotFound(exc.kind, f"{unit_path}:{exc.target}", exc.detail)
