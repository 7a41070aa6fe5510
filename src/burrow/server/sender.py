"""ASGI response sending — translates burrow Response envelopes to ASGI messages.

Stream bodies are drained and buffered first, so every response goes out
as a single body with an exact Content-Length.
"""

from collections.abc import AsyncIterable

from burrow._internal.asgi import Send
from burrow.http.response import Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _encode_chunk(chunk: str | bytes) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)


async def drain_body(response: Response) -> bytes:
    """The complete body of *response*, reading stream bodies to the end."""
    body = response.body
    if isinstance(body, (str, bytes)):
        return response.body_bytes

    chunks: list[bytes] = []
    if isinstance(body, AsyncIterable):
        async for chunk in body:
            if chunk:
                chunks.append(_encode_chunk(chunk))
    else:
        for chunk in body:
            if chunk:
                chunks.append(_encode_chunk(chunk))
    return b"".join(chunks)


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a burrow Response into ASGI send() calls."""
    body = await drain_body(response)
    if not _body_allowed(response.status):
        body = b""

    raw_headers: list[tuple[bytes, bytes]] = []
    for name, value in response.headers.items():
        if name.lower() == "content-length":
            continue
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    if not response.cache_control and response.header("cache-control") is None:
        raw_headers.append((b"cache-control", b"no-store"))
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )
