"""Filters — handler wrappers gated by a path pattern.

A filter handler is any callable matching::

    def my_filter(components, request: Request, next: Next) -> Response | Any: ...

No base class required. ``next`` is the rest of the chain with the
components already bound, so a filter only passes the (possibly modified)
request on::

    def timing(components, request, next):
        start = time.monotonic()
        response = next(request)
        return response.with_header("X-Time", f"{time.monotonic() - start:.3f}")

The pattern decides which requests the filter applies to. Segments are
literal text or wildcards (``*`` or ``{anything}``, the name is ignored and
nothing is bound). A trailing ``*`` matches every remaining segment, so
``/*`` matches every path and ``/admin/*`` matches everything under
``/admin``; ``/admin/{id}`` matches ``/admin/123`` but not ``/admin/123/x``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from arbor._internal.types import FilterHandler, Next
from arbor.errors import ConfigurationError
from arbor.http.request import Request, split_request_path
from arbor.routing.route import PATH_PATTERN

__all__ = ["Filter", "FilterHandler", "Next", "define_filter"]

# Literal parts plus "*" and "{name}" wildcards
FILTER_PATTERN = re.compile(r"(?:(?:/[a-zA-Z0-9_\-~.()]+)|(?:/\*)|(?:/\{[a-zA-Z0-9_\-~.()]+}))+")


def _is_wildcard(segment: str) -> bool:
    return segment == "*" or (segment.startswith("{") and segment.endswith("}"))


class Filter:
    """A filter handler plus the path pattern that selects its requests.

    *prefix* is the path of the scope the filter was declared in; it is
    prepended to *path* to form the pattern.
    """

    __slots__ = ("handler", "path", "segments")

    def __init__(self, path: str, handler: FilterHandler, prefix: str = "") -> None:
        if prefix and not PATH_PATTERN.fullmatch(prefix):
            msg = f"Filter prefix format is illegal: {prefix!r}"
            raise ConfigurationError(msg)
        if not FILTER_PATTERN.fullmatch(path):
            msg = f"Filter path is illegal: {path!r}"
            raise ConfigurationError(msg)
        self.path: str = prefix + path
        self.handler: FilterHandler = handler
        self.segments: tuple[str, ...] = split_request_path(self.path)

    def __repr__(self) -> str:
        return f"Filter({self.path!r})"

    def matches_request(self, request: Request) -> bool:
        """True if this filter applies to *request*."""
        return self.matches(request.segments)

    def matches(self, request_segments: Sequence[str]) -> bool:
        """True if the pattern matches the request path segments."""
        segments = self.segments
        last = len(segments) - 1
        for idx, filter_segment in enumerate(segments):
            # A trailing "*" matches everything left, including nothing
            if idx == last and filter_segment == "*":
                return True
            if idx == len(request_segments):
                return False
            if filter_segment != request_segments[idx] and not _is_wildcard(filter_segment):
                return False
            if idx == last and idx == len(request_segments) - 1:
                return True
        return False


def define_filter(handler: FilterHandler) -> Filter:
    """Create a filter that applies to every endpoint.

    Usable as a decorator::

        @define_filter
        def add_version(components, request, next):
            return next(request).with_header("X-Version", "1")
    """
    return Filter("/*", handler)
