"""Session identity and storage."""

from burrow.sessions.body import SessionBody
from burrow.sessions.manager import Session, clear_old_sessions
from burrow.sessions.stores import (
    FileStore,
    FunctionStore,
    MemoryStore,
    SessionCollection,
    SessionStore,
    create_store,
)
from burrow.sessions.tokens import SESSION_COOKIE, TokenSigner

__all__ = [
    "SESSION_COOKIE",
    "FileStore",
    "FunctionStore",
    "MemoryStore",
    "Session",
    "SessionBody",
    "SessionCollection",
    "SessionStore",
    "TokenSigner",
    "clear_old_sessions",
    "create_store",
]
