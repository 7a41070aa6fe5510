"""Cookie parsing and Set-Cookie serialization.

Consolidates the read side (``parse_cookies``, used by ``Request``) and
the write side (``Cookie``, carried by ``Response``) in one module.
"""

from dataclasses import dataclass
from urllib.parse import unquote


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Values are percent-decoded. Returns an empty dict for empty or
    missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            cookies[key.strip()] = unquote(value.strip())
    return cookies


@dataclass(frozen=True, slots=True)
class Cookie:
    """A ``Set-Cookie`` directive attached to a Response.

    ``Secure`` is left to the transport; the envelope never sets it.
    """

    name: str
    value: str
    httponly: bool = True
    same_site: str | None = None
    path: str = "/"
    max_age: int | None = None

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.httponly:
            parts.append("HttpOnly")
        if self.same_site:
            parts.append(f"SameSite={self.same_site.capitalize()}")
        return "; ".join(parts)
