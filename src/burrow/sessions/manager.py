"""Session manager — per-request session identity and lifecycle.

``Session.start()`` turns the client's token into a validated body:

1. A missing, forged or badly-shaped token means a new identifier.
2. The body for the identifier is loaded. A missing body gets a fresh
   one; a client-supplied identifier with no body is replaced first, so
   clients never pick their own identifier.
3. An expired body, or one bound to a different user agent or hostname,
   is abandoned (the sweep reclaims it) and the loop starts over with a
   new identifier.
4. The body is written through and a fresh token is signed.

Identifiers are ``uuid4`` strings, drawn until the store reports one
unused.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from burrow.errors import SessionBackendError
from burrow.sessions.body import SessionBody, utcnow
from burrow.sessions.stores import SessionStore
from burrow.sessions.tokens import TokenSigner, new_session_id

logger = logging.getLogger("burrow.sessions")


class Session:
    """The session bound to one request.

    Usage inside a handler::

        visits = self.session.get("visits") or 0
        self.session.set("visits", visits + 1)
    """

    __slots__ = (
        "_body",
        "_clock",
        "_id",
        "_modified",
        "_signer",
        "_store",
        "_token",
        "hostname",
        "ip",
        "minutes_expiration",
        "user_agent",
    )

    def __init__(
        self,
        store: SessionStore,
        signer: TokenSigner,
        *,
        token: str | None,
        ip: str,
        hostname: str,
        user_agent: str,
        minutes_expiration: float,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._signer = signer
        self._token = token
        self._clock = clock or utcnow
        self.ip = ip
        self.hostname = hostname
        self.user_agent = user_agent
        self.minutes_expiration = minutes_expiration
        self._id: str | None = None
        self._body: SessionBody | None = None
        self._modified = False

    # -- Lifecycle --

    async def start(self) -> None:
        """Resolve, validate and persist the session for this request."""
        session_id = self._signer.unsign(self._token)
        client_supplied = session_id is not None
        if session_id is None:
            session_id = await self._generate_id()

        while True:
            body = await self._store.get(session_id)
            if body is None:
                if client_supplied:
                    session_id = await self._generate_id()
                    client_supplied = False
                body = self._fresh_body()
                break

            now = self._clock()
            if body.is_expired(self.minutes_expiration, now) or not body.matches(
                hostname=self.hostname, user_agent=self.user_agent
            ):
                logger.debug("Abandoning session %s for %s", session_id, self.ip)
                session_id = await self._generate_id()
                client_supplied = False
                continue

            body.last_check = now
            break

        self._id = session_id
        self._body = body
        self._token = self._signer.sign(session_id)

        try:
            await self._store.save(session_id, body)
        except SessionBackendError:
            logger.exception("Could not persist session %s for %s", session_id, self.ip)

    async def save(self) -> None:
        """Write the body through to the store.

        Raises:
            SessionBackendError: the store could not write it.
        """
        if self._id is None or self._body is None:
            return
        await self._store.save(self._id, self._body)
        self._modified = False

    async def destroy(self) -> None:
        """Delete the stored body and detach this session from it."""
        if self._id is not None:
            await self._store.delete(self._id)
        self._body = None
        self._modified = False

    async def _generate_id(self) -> str:
        while True:
            candidate = new_session_id()
            if not await self._store.exists(candidate):
                return candidate

    def _fresh_body(self) -> SessionBody:
        return SessionBody(
            ip=self.ip,
            hostname=self.hostname,
            user_agent=self.user_agent,
            last_check=self._clock(),
        )

    # -- Data access --

    def get(self, key: str) -> Any:
        """Value stored under *key*, or ``None``."""
        if self._body is None:
            return None
        return self._body.data.get(key)

    def set(self, key: str, value: Any) -> None:
        if self._body is None:
            raise RuntimeError("Session is not started or was destroyed")
        self._body.data[key] = value
        self._modified = True

    # -- Properties --

    @property
    def id(self) -> str | None:
        return self._id

    @property
    def token(self) -> str | None:
        """The signed token for the current identifier (after ``start()``)."""
        return self._token if self._id is not None else None

    @property
    def last_check(self) -> datetime | None:
        return self._body.last_check if self._body is not None else None

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def started(self) -> bool:
        return self._id is not None

    def __repr__(self) -> str:
        return f"Session(id={self._id!r}, modified={self._modified})"


async def clear_old_sessions(store: SessionStore, minutes_expiration: float) -> int:
    """Remove expired bodies from *store*; returns how many were removed."""
    removed = await store.delete_expired(minutes_expiration)
    if removed:
        logger.info("Removed %d expired session(s)", removed)
    return removed
