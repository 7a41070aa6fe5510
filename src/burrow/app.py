"""Burrow application class.

Mutable during setup (hook registration). Frozen at runtime when
``handle()`` or ``__call__()`` is first invoked: the route tree is
discovered once and never re-read.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import anyio

from burrow._internal.asgi import Receive, Scope, Send
from burrow._internal.invoke import invoke
from burrow._internal.types import Hook
from burrow.config import ServerConfig, validate_config
from burrow.errors import ConfigurationError
from burrow.http.request import Request
from burrow.http.response import Response
from burrow.routing.router import Router
from burrow.server.dispatcher import dispatch
from burrow.server.handler import handle_request
from burrow.server.realtime import handle_websocket
from burrow.server.sweeper import run_sweeper, sweep_once
from burrow.sessions.stores import FileStore, SessionCollection, SessionStore, create_store
from burrow.sessions.tokens import TokenSigner

logger = logging.getLogger("burrow.server")


@dataclass(slots=True)
class Hooks:
    """Lifecycle hooks. Request hooks may return a response to short-circuit."""

    request_received: Hook | None = None
    not_found: Hook | None = None
    before_execute: Hook | None = None
    startup: list[Hook] = field(default_factory=list)
    shutdown: list[Hook] = field(default_factory=list)


class App:
    """The burrow application.

    Usage::

        app = App(ServerConfig(
            paths=PathsConfig(routes="./routes"),
            sessions=SessionConfig(secret_key="change-me"),
            listeners=ListenersConfig(http=HTTPListener(port=8000)),
        ))

        @app.on_request_received
        async def log_everything(request, session):
            ...

    ``App`` is an ASGI 3 application; serve it with any ASGI server.

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        thread discovers the route tree, even when several workers call
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_router",
        "config",
        "hooks",
        "sessions",
        "signer",
        "store",
    )

    def __init__(self, config: ServerConfig) -> None:
        validate_config(config)
        self.config: ServerConfig = config
        self.hooks = Hooks()
        self.signer = TokenSigner(config.sessions.secret_key)

        # Memory backend collection; empty for the other backends
        self.sessions = SessionCollection()
        self.store: SessionStore = create_store(config.sessions, self.sessions)

        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._router: Router | None = None

    # -- Hook registration --

    def on_request_received(self, func: Hook) -> Hook:
        """Register the hook run after the session starts, before routing.

        Called as ``func(request, session)``. A failure answers 503.

        Usage::

            @app.on_request_received
            async def maintenance(request, session):
                if MAINTENANCE:
                    return quick.service_unavailable("Back soon")
        """
        self._check_not_frozen()
        self.hooks.request_received = func
        return func

    def on_not_found(self, func: Hook) -> Hook:
        """Register the hook run when no unit or handler matches.

        Called as ``func(kind, request, session)`` with ``kind`` either
        ``"script"`` or ``"function"``. Returning ``None`` keeps the
        generic 404.
        """
        self._check_not_frozen()
        self.hooks.not_found = func
        return func

    def on_before_execute(self, func: Hook) -> Hook:
        """Register the hook run right before a handler.

        Called as ``func(unit, request, session)``.
        """
        self._check_not_frozen()
        self.hooks.before_execute = func
        return func

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup.
        """
        self._check_not_frozen()
        self.hooks.startup.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self.hooks.shutdown.append(func)
        return func

    # -- Runtime --

    @property
    def router(self) -> Router:
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    async def handle(self, request: Request) -> Response:
        """Dispatch a normalized request without going through ASGI."""
        self._ensure_frozen()
        return await dispatch(self, request)

    async def sweep(self) -> None:
        """Run one sweep of expired sessions and stale uploads now."""
        await sweep_once(self)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, websockets on the realtime
        channel, and delegates HTTP scopes to the request handler.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        if scope["type"] == "websocket":
            await handle_websocket(scope, receive, send, app=self)
            return

        await handle_request(scope, receive, send, app=self)

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup, creates the working directories,
        runs startup hooks and starts the periodic sweep, which lives
        until shutdown.
        """
        async with anyio.create_task_group() as tg:
            while True:
                message = await receive()
                msg_type = message["type"]

                if msg_type == "lifespan.startup":
                    try:
                        self._ensure_frozen()
                        await self._prepare_directories()
                        for hook in self.hooks.startup:
                            await invoke(hook)
                    except Exception as exc:
                        logger.exception("Startup failed")
                        await send({"type": "lifespan.startup.failed", "message": str(exc)})
                        return
                    tg.start_soon(run_sweeper, self)
                    await send({"type": "lifespan.startup.complete"})

                elif msg_type == "lifespan.shutdown":
                    # Stops the sweeper; the task group absorbs its own cancellation
                    tg.cancel_scope.cancel()
                    break

        for hook in self.hooks.shutdown:
            try:
                await invoke(hook)
            except Exception:
                logger.exception("Shutdown hook %r failed", hook)
        await send({"type": "lifespan.shutdown.complete"})

    async def _prepare_directories(self) -> None:
        await anyio.Path(self.config.paths.uploads).mkdir(parents=True, exist_ok=True)
        if isinstance(self.store, FileStore):
            await self.store.ensure_directory()

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Discover the route tree. MUST only be called while holding _freeze_lock."""
        try:
            router = Router.from_directory(self.config.paths.routes)
        except FileNotFoundError as exc:
            raise ConfigurationError(str(exc)) from exc

        for entry in router.load_errors:
            logger.error("Route '%s' is unavailable: %s", entry.path, entry.error)
        logger.info("Discovered %d route unit(s) in %s", len(router.units), self.config.paths.routes)

        self._router = router
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot register hooks after the app has started serving requests."
            raise RuntimeError(msg)
