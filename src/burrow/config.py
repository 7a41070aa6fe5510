"""Server configuration.

Every section is a frozen, slotted dataclass. ``validate_config`` is
called by ``App.__init__`` and fails fast with ``ConfigurationError``::

    config = ServerConfig(
        paths=PathsConfig(routes="./routes"),
        listeners=ListenersConfig(http=HTTPListener(port=8000)),
        sessions=SessionConfig(secret_key="s3cr3t", minutes_expiration=30),
    )
"""

import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from burrow.errors import ConfigurationError

# -- Sessions --


class StoreMethod(StrEnum):
    """Built-in session store backends."""

    FILES = "files"
    MEMORY = "memory"


@dataclass(frozen=True, slots=True)
class StoreFunctions:
    """Externally supplied async session store.

    ``get`` returns the stored body mapping (or ``None``), ``save`` and
    ``delete`` persist and remove it. ``delete_expired`` is optional and
    receives the expiration window in minutes during the periodic sweep.
    """

    get: Callable[[str], Awaitable[Mapping[str, Any] | None]]
    save: Callable[[str, dict[str, Any]], Awaitable[None]]
    delete: Callable[[str], Awaitable[None]]
    delete_expired: Callable[[float], Awaitable[None]] | None = None


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session subsystem configuration.

    ``secret_key`` signs the session token; ``path`` is required for
    ``StoreMethod.FILES``.
    """

    secret_key: str
    minutes_expiration: float = 30
    store: StoreMethod | StoreFunctions = StoreMethod.MEMORY
    path: str | Path | None = None
    pretty: bool = False
    same_site: str | None = "lax"


# -- Listeners --


@dataclass(frozen=True, slots=True)
class HTTPListener:
    port: int


@dataclass(frozen=True, slots=True)
class HTTPSListener:
    port: int
    cert: str
    key: str


@dataclass(frozen=True, slots=True)
class RealtimeListener:
    """Websocket event channel.

    ``events`` maps event names to handlers receiving a ``RealtimeEvent``;
    ``on_connect`` receives ``(client, session)`` once per connection.
    """

    url_path: str = "realtime"
    on_connect: Callable[..., Any] | None = None
    events: Mapping[str, Callable[..., Any]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ListenersConfig:
    http: HTTPListener | None = None
    https: HTTPSListener | None = None
    realtime: RealtimeListener | None = None


# -- Paths, public files, rewriting --


@dataclass(frozen=True, slots=True)
class PathsConfig:
    routes: str | Path
    uploads: str | Path = "uploads"


@dataclass(frozen=True, slots=True)
class PublicConfig:
    """Public file mapping.

    Requests under ``url_path`` (no leading slash) are looked up in
    ``path`` before route resolution.
    """

    path: str | Path
    url_path: str = ""


@dataclass(frozen=True, slots=True)
class RemapRule:
    """Path rewrite rule.

    A ``str`` pattern replaces its first literal occurrence; a compiled
    regex substitutes its first match.
    """

    pattern: str | re.Pattern[str]
    replacement: str

    def apply(self, path: str) -> str:
        if isinstance(self.pattern, re.Pattern):
            return self.pattern.sub(self.replacement, path, count=1)
        return path.replace(self.pattern, self.replacement, 1)


@dataclass(frozen=True, slots=True)
class UploadSweepConfig:
    minutes_expiration: float


# -- Server --


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation."""

    paths: PathsConfig
    sessions: SessionConfig
    listeners: ListenersConfig = field(default_factory=ListenersConfig)

    # Surface exception detail and tracebacks in 500 bodies
    show_errors: bool = False

    # Routing
    default_route: str = ""
    base_url: str = ""
    remap: tuple[RemapRule, ...] = ()
    public: PublicConfig | None = None

    # Limits
    max_content_length: int = 50 * 1024 * 1024  # 50 MB

    # Periodic sweep of expired sessions and old uploads (seconds)
    upload_sweep: UploadSweepConfig | None = None
    sweep_interval: float = 120.0


def validate_config(config: ServerConfig) -> None:
    """Raise ``ConfigurationError`` for the first invalid setting."""
    if not str(config.paths.routes).strip():
        raise ConfigurationError("'paths.routes' must point to the route tree directory.")

    if config.listeners.http is None and config.listeners.https is None:
        msg = "At least one listener must be configured in 'listeners.http' or 'listeners.https'."
        raise ConfigurationError(msg)

    if config.default_route.startswith(("/", "\\")):
        raise ConfigurationError("'default_route' must not start with '/' or '\\'.")

    sessions = config.sessions
    if not sessions.secret_key:
        raise ConfigurationError("'sessions.secret_key' must not be empty.")
    if sessions.store == StoreMethod.FILES and not sessions.path:
        msg = "'sessions.path' is required when 'sessions.store' is StoreMethod.FILES."
        raise ConfigurationError(msg)
    if sessions.minutes_expiration < 0:
        raise ConfigurationError("'sessions.minutes_expiration' must be greater than or equal to 0.")

    if config.public is not None:
        if not str(config.public.path).strip():
            raise ConfigurationError("'public.path' must be a valid directory path.")
        if config.public.url_path.startswith("/"):
            raise ConfigurationError("'public.url_path' must not start with '/'.")

    if config.max_content_length <= 0:
        raise ConfigurationError("'max_content_length' must be greater than 0.")
    if config.sweep_interval <= 0:
        raise ConfigurationError("'sweep_interval' must be greater than 0.")
