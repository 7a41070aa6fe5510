"""Response envelope with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design: the dispatcher appends the session
cookie to whatever envelope the pipeline produced.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, BinaryIO, TypeAlias

from burrow.http.cookies import Cookie

# Text, raw bytes, or a stream the sender drains before transmitting
ResponseBody: TypeAlias = str | bytes | AsyncIterable[bytes] | Iterable[bytes]


def _merge_headers(base: Mapping[str, str], extra: Mapping[str, str]) -> dict[str, str]:
    """Overlay *extra* on *base*, replacing names case-insensitively."""
    lowered = {name.lower() for name in extra}
    merged = {name: value for name, value in base.items() if name.lower() not in lowered}
    merged.update(extra)
    return merged


@dataclass(frozen=True, slots=True)
class Response:
    """A normalized, transport-agnostic response envelope.

    ``cache_control=False`` (the default) tells the transport to send
    ``Cache-Control: no-store``. ``status_text`` is carried for
    transports that can emit a custom reason phrase.
    """

    body: ResponseBody = ""
    status: int = 200
    status_text: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: tuple[Cookie, ...] = ()
    cache_control: bool = False

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with *name* set, replacing any previous value."""
        return replace(self, headers=_merge_headers(self.headers, {name: value}))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        return replace(self, headers=_merge_headers(self.headers, headers))

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        httponly: bool = True,
        same_site: str | None = None,
        path: str = "/",
        max_age: int | None = None,
    ) -> Response:
        """Return a new Response with an additional Set-Cookie."""
        cookie = Cookie(
            name=name,
            value=value,
            httponly=httponly,
            same_site=same_site,
            path=path,
            max_age=max_age,
        )
        return replace(self, cookies=(*self.cookies, cookie))

    def with_cache_control(self, enabled: bool = True) -> Response:
        """Return a new Response that lets clients cache it."""
        return replace(self, cache_control=enabled)

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    @property
    def is_stream(self) -> bool:
        return not isinstance(self.body, (str, bytes))

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes. Streams must be drained by the sender first."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        if isinstance(self.body, bytes):
            return self.body
        msg = "Streaming bodies have no bytes until drained."
        raise TypeError(msg)

    @property
    def text(self) -> str:
        """Body as string."""
        return self.body_bytes.decode("utf-8")


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect return value."""

    url: str
    status: int = 302


@dataclass(frozen=True, slots=True)
class FileInfo:
    """A file to send back, either from disk (``path``) or in memory (``content``).

    ``file_name`` defaults to the last component of ``path``.
    """

    path: str | Path | None = None
    content: str | bytes | None = None
    file_name: str | None = None

    def __post_init__(self) -> None:
        if self.path is None and self.content is None:
            raise ValueError("FileInfo needs either 'path' or 'content'.")
        if self.path is None and not self.file_name:
            raise ValueError("FileInfo with 'content' needs a 'file_name'.")

    @property
    def name(self) -> str:
        if self.file_name:
            return self.file_name
        return Path(self.path or "").name


@dataclass(frozen=True, slots=True)
class FileStream:
    """A stream to send back as a named file."""

    stream: AsyncIterable[bytes] | Iterable[bytes] | BinaryIO
    file_name: str
    content_type: str | None = None
    content_length: int | None = None
    force_download: bool = False

    def chunks(self) -> AsyncIterable[bytes] | Iterable[bytes]:
        """The underlying chunks; file objects are read in blocks."""
        stream: Any = self.stream
        if hasattr(stream, "read"):
            return iter(lambda: stream.read(64 * 1024), b"")
        return stream
