"""Session body — the persisted session record.

Serialized with camelCase keys so stores written by other processes
(or the external function store) read the same shape::

    {"ip": "...", "hostname": "...", "userAgent": "...",
     "lastCheck": "2024-05-01T12:00:00.000000+00:00", "data": {}}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from burrow.errors import SessionBackendError

_FIELDS = ("ip", "hostname", "userAgent", "lastCheck", "data")


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class SessionBody:
    """Mutable session record. Only ``data`` is exposed to handlers."""

    ip: str
    hostname: str
    user_agent: str
    last_check: datetime
    data: dict[str, Any] = field(default_factory=dict)

    def is_expired(self, minutes_expiration: float, now: datetime) -> bool:
        """Expired when ``last_check`` is strictly older than the window."""
        return self.last_check < now - timedelta(minutes=minutes_expiration)

    def matches(self, *, hostname: str, user_agent: str) -> bool:
        """Whether the body is bound to this client."""
        return self.hostname == hostname and self.user_agent == user_agent

    def to_dict(self) -> dict[str, Any]:
        return {
            "ip": self.ip,
            "hostname": self.hostname,
            "userAgent": self.user_agent,
            "lastCheck": self.last_check.isoformat(timespec="microseconds"),
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> SessionBody:
        """Rebuild a body from its stored mapping.

        Raises:
            SessionBackendError: the mapping is malformed.
        """
        if not isinstance(raw, Mapping):
            raise SessionBackendError(f"Malformed session body: expected a mapping, got {type(raw).__name__}")
        missing = [name for name in _FIELDS if name not in raw]
        if missing:
            raise SessionBackendError(f"Malformed session body: missing {', '.join(missing)}")
        data = raw["data"]
        if not isinstance(data, Mapping):
            raise SessionBackendError("Malformed session body: 'data' is not a mapping")
        try:
            last_check = datetime.fromisoformat(str(raw["lastCheck"]))
        except ValueError as exc:
            raise SessionBackendError(f"Malformed session body: bad lastCheck {raw['lastCheck']!r}") from exc
        if last_check.tzinfo is None:
            last_check = last_check.replace(tzinfo=UTC)
        return cls(
            ip=str(raw["ip"]),
            hostname=str(raw["hostname"]),
            user_agent=str(raw["userAgent"]),
            last_check=last_check,
            data=dict(data),
        )
