"""Session store backends.

Three interchangeable strategies share the ``SessionStore`` protocol:

- ``MemoryStore``: bodies serialized into a ``SessionCollection`` owned
  by the application.
- ``FileStore``: one ``<identifier>.json`` file per session.
- ``FunctionStore``: caller-supplied async ``get``/``save``/``delete``.

Reading never raises for bad data: a malformed or unreadable body is
discarded and reported as missing. Writing raises
``SessionBackendError``.
"""

import json
import logging
import threading
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import anyio

from burrow.config import SessionConfig, StoreFunctions, StoreMethod
from burrow.errors import SessionBackendError
from burrow.sessions.body import SessionBody, utcnow

logger = logging.getLogger("burrow.sessions")


class SessionStore(Protocol):
    """What the session manager and the sweeper need from a backend."""

    async def get(self, session_id: str) -> SessionBody | None: ...

    async def save(self, session_id: str, body: SessionBody) -> None: ...

    async def delete(self, session_id: str) -> None: ...

    async def exists(self, session_id: str) -> bool: ...

    async def delete_expired(self, minutes_expiration: float, now: datetime | None = None) -> int: ...


def _dumps(body: SessionBody, *, indent: str | None = None) -> str:
    try:
        return json.dumps(body.to_dict(), indent=indent)
    except (TypeError, ValueError) as exc:
        raise SessionBackendError(f"Session data is not JSON serializable: {exc}") from exc


# -- Memory --


class SessionCollection:
    """Identifier -> serialized body map shared by every request.

    Each operation holds the lock only for the dict access itself.
    """

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> str | None:
        with self._lock:
            return self._entries.get(session_id)

    def set(self, session_id: str, serialized: str) -> None:
        with self._lock:
            self._entries[session_id] = serialized

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._entries.pop(session_id, None)

    def snapshot(self) -> list[tuple[str, str]]:
        with self._lock:
            return list(self._entries.items())

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter([session_id for session_id, _ in self.snapshot()])


class MemoryStore:
    """Sessions kept in process memory."""

    __slots__ = ("collection",)

    def __init__(self, collection: SessionCollection) -> None:
        self.collection = collection

    async def get(self, session_id: str) -> SessionBody | None:
        serialized = self.collection.get(session_id)
        if serialized is None:
            return None
        try:
            return SessionBody.from_dict(json.loads(serialized))
        except (ValueError, SessionBackendError):
            logger.warning("Dropping malformed session %s from memory", session_id)
            self.collection.delete(session_id)
            return None

    async def save(self, session_id: str, body: SessionBody) -> None:
        self.collection.set(session_id, _dumps(body))

    async def delete(self, session_id: str) -> None:
        self.collection.delete(session_id)

    async def exists(self, session_id: str) -> bool:
        return session_id in self.collection

    async def delete_expired(self, minutes_expiration: float, now: datetime | None = None) -> int:
        now = now or utcnow()
        removed = 0
        for session_id, serialized in self.collection.snapshot():
            try:
                body = SessionBody.from_dict(json.loads(serialized))
            except (ValueError, SessionBackendError):
                body = None
            if body is None or body.is_expired(minutes_expiration, now):
                self.collection.delete(session_id)
                removed += 1
        return removed


# -- Files --


class FileStore:
    """Sessions kept as ``<directory>/<identifier>.json``.

    Concurrent writers of the same identifier race; the last write wins.
    """

    __slots__ = ("directory", "pretty")

    def __init__(self, directory: str | Path, *, pretty: bool = False) -> None:
        self.directory = anyio.Path(directory)
        self.pretty = pretty

    def _path(self, session_id: str) -> anyio.Path:
        return self.directory / f"{session_id}.json"

    async def ensure_directory(self) -> None:
        await self.directory.mkdir(parents=True, exist_ok=True)

    async def get(self, session_id: str) -> SessionBody | None:
        path = self._path(session_id)
        try:
            text = await path.read_text(encoding="utf-8")
            return SessionBody.from_dict(json.loads(text))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, SessionBackendError):
            logger.warning("Discarding unreadable session file %s", path)
            await self._discard(path)
            return None

    async def save(self, session_id: str, body: SessionBody) -> None:
        serialized = _dumps(body, indent="\t" if self.pretty else None)
        try:
            await self.ensure_directory()
            await self._path(session_id).write_text(serialized, encoding="utf-8")
        except OSError as exc:
            raise SessionBackendError(f"Cannot write session {session_id}: {exc}") from exc

    async def delete(self, session_id: str) -> None:
        await self._path(session_id).unlink(missing_ok=True)

    async def exists(self, session_id: str) -> bool:
        return await self._path(session_id).exists()

    async def delete_expired(self, minutes_expiration: float, now: datetime | None = None) -> int:
        now = now or utcnow()
        if not await self.directory.is_dir():
            return 0
        removed = 0
        async for path in self.directory.glob("*.json"):
            try:
                text = await path.read_text(encoding="utf-8")
                body: SessionBody | None = SessionBody.from_dict(json.loads(text))
            except FileNotFoundError:
                continue
            except (OSError, ValueError, SessionBackendError):
                body = None
            if body is None or body.is_expired(minutes_expiration, now):
                await self._discard(path)
                removed += 1
        return removed

    @staticmethod
    async def _discard(path: anyio.Path) -> None:
        try:
            await path.unlink(missing_ok=True)
        except OSError:
            logger.exception("Cannot delete session file %s", path)


# -- External functions --


class FunctionStore:
    """Sessions kept by caller-supplied async functions."""

    __slots__ = ("functions",)

    def __init__(self, functions: StoreFunctions) -> None:
        self.functions = functions

    async def get(self, session_id: str) -> SessionBody | None:
        try:
            raw: Any = await self.functions.get(session_id)
            if raw is None:
                return None
            return SessionBody.from_dict(raw)
        except Exception:
            logger.exception("Session store 'get' failed for %s; discarding it", session_id)
            await self._discard(session_id)
            return None

    async def save(self, session_id: str, body: SessionBody) -> None:
        try:
            await self.functions.save(session_id, body.to_dict())
        except Exception as exc:
            raise SessionBackendError(f"Session store 'save' failed for {session_id}: {exc}") from exc

    async def delete(self, session_id: str) -> None:
        await self.functions.delete(session_id)

    async def exists(self, session_id: str) -> bool:
        # A failing lookup counts as unused
        try:
            return await self.functions.get(session_id) is not None
        except Exception:
            logger.exception("Session store 'get' failed for %s", session_id)
            return False

    async def delete_expired(self, minutes_expiration: float, now: datetime | None = None) -> int:
        if self.functions.delete_expired is not None:
            await self.functions.delete_expired(minutes_expiration)
        return 0

    async def _discard(self, session_id: str) -> None:
        try:
            await self.functions.delete(session_id)
        except Exception:
            logger.exception("Session store 'delete' failed for %s", session_id)


def create_store(config: SessionConfig, collection: SessionCollection | None = None) -> SessionStore:
    """Build the backend selected by ``config.store``."""
    if isinstance(config.store, StoreFunctions):
        return FunctionStore(config.store)
    if config.store == StoreMethod.FILES:
        assert config.path is not None  # enforced by validate_config
        return FileStore(config.path, pretty=config.pretty)
    return MemoryStore(collection if collection is not None else SessionCollection())
