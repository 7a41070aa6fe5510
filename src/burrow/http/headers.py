"""Immutable, case-insensitive HTTP headers.

Implements ``Mapping[str, str]``. Repeated headers are folded into one
comma-separated value, the way most transports present them.
"""

from collections.abc import Iterable, Iterator, Mapping


def _text(value: str | bytes) -> str:
    return value.decode("latin-1") if isinstance(value, bytes) else value


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    Accepts a mapping or an iterable of ``(name, value)`` pairs, as
    ``str`` or raw ASGI ``bytes``. Keys are stored lower-cased.
    """

    __slots__ = ("_data",)

    def __init__(
        self,
        source: Mapping[str, str] | Iterable[tuple[str | bytes, str | bytes]] = (),
    ) -> None:
        pairs = source.items() if isinstance(source, Mapping) else source
        data: dict[str, str] = {}
        for name, value in pairs:
            key = _text(name).lower()
            text = _text(value)
            data[key] = f"{data[key]}, {text}" if key in data else text
        object.__setattr__(self, "_data", data)

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Headers({self._data!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the value for *key*, or *default* if missing."""
        return self._data.get(key.lower(), default)
