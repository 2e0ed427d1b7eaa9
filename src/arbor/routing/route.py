"""Routes, path segments and the filter chain wrapped around handlers.

A route is either a ``HandlerRoute`` (method + path + handler) or a
``StaticRoute`` (a path prefix under which static files are served). Both
are frozen; a route never changes after it is declared.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from arbor._internal.types import Handler, RequestHandler
from arbor.errors import ConfigurationError
from arbor.http.request import HttpMethod, Request
from arbor.http.response import Response

if TYPE_CHECKING:
    from arbor.filters.protocol import Filter

# Matches "/" or any run of "/literal" and "/{variable}" parts
PATH_PATTERN = re.compile(r"/|(?:(?:/[a-zA-Z0-9_\-~.()]+)|(?:/\{[a-zA-Z0-9_\-~.()]+}))+")

# Like PATH_PATTERN but without variables
STATIC_PATH_PATTERN = re.compile(r"/|(?:/[a-zA-Z0-9_\-~.()]+)+")

_VARIABLE_SEGMENT = re.compile(r"\{(\w+)}")


# -- Segments --


@dataclass(frozen=True, slots=True)
class FixedSegment:
    """A path segment matched by its exact text, e.g. ``users``."""

    path_part: str


@dataclass(frozen=True, slots=True)
class VariableSegment:
    """A path segment matching any text, bound to ``variable_name``, e.g. ``{id}``."""

    variable_name: str


type Segment = FixedSegment | VariableSegment


def parse_segment(text: str) -> Segment:
    """Classify one slash-delimited token of a route path.

    ``"{id}"`` -> ``VariableSegment("id")``, anything else -> ``FixedSegment(text)``.
    """
    match = _VARIABLE_SEGMENT.fullmatch(text)
    if match is not None:
        return VariableSegment(match.group(1))
    return FixedSegment(text)


def split_path(path: str) -> tuple[Segment, ...]:
    """Parse a route path into segments.

    Leading, trailing and repeated slashes are ignored::

        "/users/{id}" -> (FixedSegment("users"), VariableSegment("id"))
        "/"           -> ()
    """
    return tuple(parse_segment(part) for part in (p.strip() for p in path.split("/")) if part)


def validate_path(path: str) -> None:
    """Raise ``ConfigurationError`` unless *path* is a legal route path."""
    if not PATH_PATTERN.fullmatch(path):
        msg = f"Illegal path {path!r}"
        raise ConfigurationError(msg)
    # Variable names are word characters only; "{a-b}" would be taken literally
    for part in path.split("/"):
        if part.startswith("{") and isinstance(parse_segment(part), FixedSegment):
            msg = f"Illegal variable name {part!r} in path {path!r}"
            raise ConfigurationError(msg)


# -- Auth --


@dataclass(frozen=True, slots=True)
class Auth:
    """The authorisation strategy required to call an endpoint.

    Only the name matters for equality; an API may use at most one strategy
    other than ``NO_AUTH``.
    """

    name: str


# Anyone can call the endpoint without authenticating
NO_AUTH = Auth("NONE")


# -- Handler coercion and filter wrapping --


def _as_response(request: Request, value: object) -> Response:
    if isinstance(value, Response):
        return value
    return request.response_builder().build(value)


def request_handler(handler: Handler) -> RequestHandler:
    """Adapt a user handler so it always returns a ``Response``.

    Any value that isn't a ``Response`` becomes the body of a 200 response
    carrying the request's default response headers.
    """

    def handle(components: object, request: Request) -> Response:
        return _as_response(request, handler(components, request))

    return handle


def _wrap_filter(handler: RequestHandler, filter_: Filter) -> RequestHandler:
    def handle(components: object, request: Request) -> Response:
        if filter_.matches_request(request):
            value = filter_.handler(components, request, lambda req: handler(components, req))
        else:
            value = handler(components, request)
        return _as_response(request, value)

    return handle


def wrap_handler(handler: RequestHandler, filters: Sequence[Filter]) -> RequestHandler:
    """Wrap *handler* in the filter chain.

    The first filter is the outermost layer. Each layer is present for every
    request; a filter whose pattern doesn't match the request path just
    passes the request through to the next layer.
    """
    chain = handler
    for filter_ in reversed(filters):
        chain = _wrap_filter(chain, filter_)
    return chain


# -- Routes --


@dataclass(frozen=True, slots=True)
class HandlerRoute:
    """An endpoint whose requests are handled by a function.

    ``handler`` always returns a ``Response``; use ``request_handler`` to
    adapt a function that returns plain values.
    """

    method: HttpMethod
    path: str
    handler: RequestHandler
    auth: Auth = NO_AUTH
    cors: bool = False

    def __post_init__(self) -> None:
        validate_path(self.path)

    def wrap(self, filters: Sequence[Filter]) -> HandlerRoute:
        """Return a copy of this route with its handler wrapped in *filters*."""
        return replace(self, handler=wrap_handler(self.handler, filters))

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True, slots=True)
class StaticRoute:
    """An endpoint serving static files from storage under ``path``.

    The files themselves are served by the deployment layer; in the route
    tree this is only a marker.
    """

    path: str
    index_file: str | None = None
    auth: Auth = NO_AUTH

    def __post_init__(self) -> None:
        if not STATIC_PATH_PATTERN.fullmatch(self.path):
            msg = f"Static files path is illegal: {self.path!r}"
            raise ConfigurationError(msg)

    def __str__(self) -> str:
        return f"static files {self.path}"


type Route = HandlerRoute | StaticRoute


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match.

    ``vars`` maps path variable names to the text of the matched segments.
    """

    handler: RequestHandler
    vars: dict[str, str]
