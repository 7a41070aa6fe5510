"""Session tokens — signed session identifiers.

The token wraps only the identifier and is signed with ``itsdangerous``;
it is what travels in the ``hs`` cookie.
"""

import re
import uuid

from itsdangerous import BadData, URLSafeSerializer

SESSION_COOKIE = "hs"

_SALT = "burrow.session"

_ID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_session_id(value: object) -> bool:
    """Whether *value* has the shape of a session identifier."""
    return isinstance(value, str) and _ID_RE.match(value) is not None


def new_session_id() -> str:
    return str(uuid.uuid4())


class TokenSigner:
    """Signs and verifies session identifiers."""

    __slots__ = ("_serializer",)

    def __init__(self, secret_key: str) -> None:
        self._serializer = URLSafeSerializer(secret_key, salt=_SALT)

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str | None) -> str | None:
        """The identifier in *token*, or ``None`` when it cannot be trusted."""
        if not token:
            return None
        try:
            value = self._serializer.loads(token)
        except BadData:
            return None
        return value if is_session_id(value) else None
