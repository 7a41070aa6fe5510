"""Result normalization — maps handler return values to Response envelopes.

isinstance-based dispatch, no magic, fully predictable.
"""

import json as json_module
import mimetypes
from collections.abc import AsyncIterable, AsyncIterator, Iterator
from pathlib import Path
from typing import Any
from urllib.parse import quote

import anyio

from burrow.http.response import FileInfo, FileStream, Redirect, Response

_CHUNK_SIZE = 64 * 1024


def negotiate(value: Any, *, status: int = 200) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``                 -> pass through, verbatim
    2. ``Redirect``                 -> redirect status with Location header
    3. ``FileInfo``                 -> file content, MIME type from the name
    4. ``FileStream``               -> stream, inline or attachment
    5. ``None``                     -> empty text body
    6. ``str``                      -> text/plain
    7. ``bytes``                    -> application/octet-stream
    8. ``bool``                     -> JSON
    9. ``int`` / ``float``          -> text/plain
    10. async or sync byte iterator -> stream
    11. anything else               -> JSON
    """
    match value:
        case Response():
            return value
        case Redirect():
            return Response(body="", status=value.status, headers={"Location": value.url})
        case FileInfo():
            return _file_info_response(value, status)
        case FileStream():
            return _file_stream_response(value, status)
        case None:
            return Response(body="", status=status, headers={"Content-Type": "text/plain; charset=utf-8"})
        case str():
            return Response(body=value, status=status, headers={"Content-Type": "text/plain; charset=utf-8"})
        case bytes() | bytearray():
            return Response(
                body=bytes(value),
                status=status,
                headers={"Content-Type": "application/octet-stream"},
            )
        case bool():
            return _json_response(value, status)
        case int() | float():
            return Response(body=str(value), status=status, headers={"Content-Type": "text/plain; charset=utf-8"})
        case AsyncIterable() | Iterator():
            return Response(
                body=value,
                status=status,
                headers={"Content-Type": "application/octet-stream"},
            )
        case _:
            return _json_response(value, status)


def _json_response(value: Any, status: int) -> Response:
    return Response(
        body=json_module.dumps(value, default=str),
        status=status,
        headers={"Content-Type": "application/json; charset=utf-8"},
    )


def _guess_type(name: str, default: str = "application/octet-stream") -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or default


def _file_info_response(info: FileInfo, status: int) -> Response:
    name = info.name
    if info.path is not None:
        path = Path(info.path)
        if not path.is_file():
            return Response(
                body=f"File '{name}' does not exist",
                status=404,
                headers={"Content-Type": "text/plain; charset=utf-8"},
            )
        body: Any = read_file_chunks(path)
        content_type = _guess_type(name)
    else:
        body = info.content
        content_type = _guess_type(name, "text/plain; charset=utf-8")

    quoted = quote(name)
    return Response(
        body=body,
        status=status,
        headers={
            "Content-Type": content_type,
            "Content-Disposition": f'inline; filename="{quoted}"',
            "File-Name": quoted,
        },
    )


def _file_stream_response(stream: FileStream, status: int) -> Response:
    disposition = ["attachment" if stream.force_download else "inline"]
    if stream.file_name:
        disposition.append(f'filename="{quote(stream.file_name)}"')
    headers = {
        "Content-Type": stream.content_type or _guess_type(stream.file_name),
        "Content-Disposition": "; ".join(disposition),
    }
    if stream.content_length:
        headers["Content-Length"] = str(stream.content_length)
    return Response(body=stream.chunks(), status=status, headers=headers)


async def read_file_chunks(path: Path) -> AsyncIterator[bytes]:
    """Yield a file's content in blocks without blocking the event loop."""
    async with await anyio.open_file(path, "rb") as handle:
        while chunk := await handle.read(_CHUNK_SIZE):
            yield chunk
