"""Public file lookup.

Maps a request onto the configured public directory. Paths that resolve
outside it are never served.
"""

from pathlib import Path

from burrow.config import PublicConfig
from burrow.http.request import Request
from burrow.http.response import FileInfo


def find_public_file(public: PublicConfig, request: Request, path: str) -> FileInfo | None:
    """Return the public file for this request, or ``None``.

    With a ``url_path``, requests under it are looked up by the part of
    the raw path after it; any other request uses the routed *path*.
    """
    directory = Path(public.path).resolve()

    relative = path
    if public.url_path and request.path.startswith(public.url_path):
        relative = request.path[len(public.url_path) :]
    relative = relative.lstrip("/")
    if not relative:
        return None

    file_path = (directory / relative).resolve()
    if not file_path.is_relative_to(directory):
        return None
    if not file_path.is_file():
        return None
    return FileInfo(path=file_path)
