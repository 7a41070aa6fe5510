"""Error envelopes for failed dispatch phases.

Maps HTTPError exceptions and unexpected failures to Response objects.
Every failure is logged with the client address and path first.
"""

import logging
import traceback

from burrow.errors import HTTPError
from burrow.http.request import Request
from burrow.http.response import Response

logger = logging.getLogger("burrow.server")

GENERIC_ERROR_BODY = "Server error"

_TEXT = {"Content-Type": "text/plain; charset=utf-8"}


def error_body(description: str, exc: BaseException | None, show_errors: bool) -> str:
    """The client-facing body: full detail only when ``show_errors`` is on."""
    if not show_errors:
        return GENERIC_ERROR_BODY
    if exc is None:
        return description
    details = "".join(traceback.format_exception(exc))
    return f"{description}\n\n{exc}\n{details}"


def handle_http_error(
    exc: HTTPError,
    request: Request,
    *,
    cause: BaseException | None = None,
    show_errors: bool,
) -> Response:
    """Map an HTTPError to a Response.

    4xx detail is always shown; 5xx detail only with ``show_errors``.
    ``cause`` is the underlying exception for failures wrapping one.
    """
    if exc.status >= 500:
        logger.error(
            "%d %s %s /%s: %s",
            exc.status,
            request.ip,
            request.method.upper(),
            request.path,
            exc.detail,
            exc_info=cause,
        )
        body = error_body(exc.detail, cause, show_errors)
    else:
        logger.info("%d %s %s /%s: %s", exc.status, request.ip, request.method.upper(), request.path, exc.detail)
        body = exc.detail or f"Error {exc.status}"

    response = Response(body=body, status=exc.status, headers=dict(_TEXT))
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(exc: Exception, request: Request, *, show_errors: bool) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s /%s", request.ip, request.method.upper(), request.path)
    return Response(
        body=error_body("Unexpected server error", exc, show_errors),
        status=500,
        headers=dict(_TEXT),
    )
