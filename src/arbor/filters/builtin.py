"""Built-in filters: CORS headers, default content type, exception mapping.

``standard_filters()`` returns the filters applied to every endpoint unless
the root builder's ``global_filters`` is replaced.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from arbor.errors import HTTPError
from arbor.filters.protocol import Filter, Next, define_filter
from arbor.http.content_type import HttpHeaders, MimeTypes
from arbor.http.request import HttpMethod, Request
from arbor.http.response import Response

logger = logging.getLogger("arbor.filters")


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


class CorsHeadersBuilder:
    """Collects the CORS settings for one request.

    The root builder's cors handler receives one of these per request to an
    endpoint with ``cors=True`` and fills in the fields it needs::

        @root.cors
        def cors(headers: CorsHeadersBuilder, request: Request) -> None:
            headers.allow_methods = {HttpMethod.GET, HttpMethod.POST}
            headers.allow_origin = {"www.example.com"}

    Fields left as ``None`` produce no header.
    """

    __slots__ = ("allow_headers", "allow_methods", "allow_origin")

    def __init__(self) -> None:
        self.allow_methods: set[HttpMethod] | None = None
        self.allow_headers: set[str] | None = None
        self.allow_origin: set[str] | None = None

    def build(self) -> dict[str, str]:
        """Return the CORS headers for the fields that were set."""
        headers: dict[str, str] = {}
        if self.allow_methods is not None:
            headers["Access-Control-Allow-Methods"] = _join(str(m) for m in self.allow_methods)
        if self.allow_headers is not None:
            headers["Access-Control-Allow-Headers"] = _join(self.allow_headers)
        if self.allow_origin is not None:
            headers["Access-Control-Allow-Origin"] = _join(self.allow_origin)
        return headers


def _join(values: Iterable[str]) -> str:
    # Sets have no order; sort so headers are stable between requests
    return ",".join(sorted(values, key=_method_order))


def _method_order(value: str) -> tuple[int, str]:
    try:
        return (list(HttpMethod).index(HttpMethod(value)), value)
    except ValueError:
        return (len(HttpMethod), value)


type CorsHandler = Callable[[CorsHeadersBuilder, Request], None]


def cors_filter(cors_handler: CorsHandler) -> Filter:
    """Filter that adds the CORS headers to the default response headers.

    Used as the outermost filter for every endpoint with ``cors=True``. The
    headers appear on every response built from the request, including the
    synthesised ``OPTIONS`` responses. Error responses from the exception
    mapping start from fresh headers and don't carry them.

    Being outside the exception mapping, an exception raised by
    *cors_handler* itself is not mapped to an error response; it propagates
    to the caller of the dispatcher.
    """

    def add_cors_headers(components: Any, request: Request, next: Next) -> Response:
        builder = CorsHeadersBuilder()
        cors_handler(builder, request)
        return next(request.with_default_headers(builder.build()))

    return define_filter(add_cors_headers)


# ---------------------------------------------------------------------------
# Content type
# ---------------------------------------------------------------------------


def default_content_type_filter(content_type: str) -> Filter:
    """Filter that sets the default ``Content-Type`` of the response.

    Works by changing the request's default response headers, which seed
    every response built by ``request.response_builder()``.
    """

    def set_content_type(components: Any, request: Request, next: Next) -> Response:
        return next(request.with_default_headers({HttpHeaders.CONTENT_TYPE: content_type}))

    return define_filter(set_content_type)


# ---------------------------------------------------------------------------
# Exception mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """The status and message used to build an error response."""

    status: int
    message: str | None


class ExceptionHandler[E: Exception]:
    """Maps exceptions of one type (and its subtypes) to an ``ErrorInfo``."""

    __slots__ = ("exception_type", "handler")

    def __init__(self, exception_type: type[E], handler: Callable[[E], ErrorInfo]) -> None:
        self.exception_type = exception_type
        self.handler = handler

    def handle(self, exc: Exception) -> ErrorInfo | None:
        """Return the error info for *exc*, or ``None`` if it is not handled here."""
        if isinstance(exc, self.exception_type):
            return self.handler(exc)
        return None


def exception_mapping_filter(exception_handlers: Sequence[ExceptionHandler[Any]]) -> Filter:
    """Filter that turns exceptions into error responses.

    The exception is offered to each handler in turn; the first one that
    handles it decides the status and message. Anything unhandled is logged
    and becomes a 500 with a generic message, so no exception escapes.
    """
    handlers = tuple(exception_handlers)

    def map_exceptions(components: Any, request: Request, next: Next) -> Response:
        try:
            return next(request)
        except Exception as exc:
            for handler in handlers:
                info = handler.handle(exc)
                if info is not None:
                    logger.debug(
                        "%d %s %s: %s", info.status, request.method, request.path, info.message
                    )
                    return Response.error(info.status, info.message)
            logger.exception("500 %s %s", request.method, request.path)
            return Response.error(500, "Server Error")

    return define_filter(map_exceptions)


def default_exception_mapping_filter() -> Filter:
    """Exception mapping for ``HTTPError`` and ``ValueError``.

    - ``HTTPError`` -> its status and detail
    - ``ValueError`` -> 400 with the exception message
    - anything else -> 500 "Server Error"
    """
    return exception_mapping_filter([
        ExceptionHandler(HTTPError, lambda e: ErrorInfo(e.status, e.detail)),
        ExceptionHandler(ValueError, lambda e: ErrorInfo(400, str(e))),
    ])


def standard_filters(content_type: str = MimeTypes.APPLICATION_JSON) -> list[Filter]:
    """The filters applied to every endpoint by default.

    Exception mapping is first so it wraps everything else, including
    other filters.
    """
    return [
        default_exception_mapping_filter(),
        default_content_type_filter(content_type),
    ]
