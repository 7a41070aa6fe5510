"""Immutable HTTP request descriptor.

Everything the dispatcher needs is populated up front by the transport:
method, path, query, headers, cookies, body, uploaded-file metadata and
the client address. The request is honest about what it is: received
data that doesn't change. Route rewriting produces a new copy with
``remap`` set.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

from burrow._internal.asgi import Scope
from burrow.http.cookies import parse_cookies
from burrow.http.headers import Headers


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """Metadata for a file the transport already staged on disk."""

    file_name: str
    temp_path: str
    mime_type: str
    encoding: str
    size: int


@dataclass(frozen=True, slots=True)
class Request:
    """A normalized, immutable HTTP request.

    ``method`` is lower-case and ``path`` carries no leading slash, so
    ``GET /admin/users/7`` arrives as ``method="get"``,
    ``path="admin/users/7"``.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: Mapping[str, str | list[str]] = field(default_factory=dict)
    query_string: str = ""
    cookies: Mapping[str, str] = field(default_factory=dict)
    body: Any = b""
    files: Mapping[str, tuple[UploadedFile, ...]] = field(default_factory=dict)
    ip: str = ""
    hostname: str = ""
    protocol: str = "http"

    # Path after base-url stripping and rewrite rules, when a rule matched
    remap: str | None = None

    # -- Computed properties --

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "") or ""

    @property
    def target_host(self) -> str | None:
        """The raw ``Host`` header, port included."""
        return self.headers.get("host")

    @property
    def query_url(self) -> str:
        """``"?<query string>"``, or ``""`` when there is no query."""
        return f"?{self.query_string}" if self.query_string else ""

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, body: bytes = b"") -> Request:
        """Create a Request from an ASGI ``http`` or ``websocket`` scope.

        The body is kept as raw bytes; decoding it is the application's
        business.
        """
        headers = Headers(tuple(scope.get("headers", ())))
        query_string = scope.get("query_string", b"").decode("latin-1")
        client = scope.get("client")
        server = scope.get("server")
        scheme = scope.get("scheme", "http")
        return cls(
            method=scope.get("method", "GET").lower(),
            path=scope["path"].lstrip("/"),
            headers=headers,
            query=_parse_query(query_string),
            query_string=query_string,
            cookies=parse_cookies(headers.get("cookie", "") or ""),
            body=body,
            ip=client[0] if client else "",
            hostname=_hostname(headers.get("host"), server),
            protocol={"ws": "http", "wss": "https"}.get(scheme, scheme),
        )


def _parse_query(query_string: str) -> dict[str, str | list[str]]:
    """Single values as ``str``, repeated keys as ``list[str]``."""
    parsed = parse_qs(query_string, keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


def _hostname(host: str | None, server: Any) -> str:
    """Host header without its port, falling back to the server address."""
    if not host:
        return str(server[0]) if server else ""
    if host.startswith("["):
        return host[: host.find("]") + 1]
    return host.split(":", 1)[0]
