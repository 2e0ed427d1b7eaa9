"""Immutable HTTP request.

Frozen metadata plus an already-decoded body. Filters never mutate a
request; they pass a modified copy to the next handler::

    updated = request.with_default_headers({"Content-Type": "text/plain"})
    return next(updated)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from arbor.http.params import Params
from arbor.http.response import ResponseBuilder


class HttpMethod(StrEnum):
    """The HTTP methods an endpoint can handle."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    UPDATE = "UPDATE"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"
    DELETE = "DELETE"


def split_request_path(path: str) -> tuple[str, ...]:
    """Split a request path into its non-empty, whitespace-trimmed segments.

    ``"/foo//bar/"`` -> ``("foo", "bar")``
    """
    return tuple(part for part in (p.strip() for p in path.split("/")) if part)


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``default_response_headers`` seeds every response built from this
    request; filters add to it (content type, CORS headers) before calling
    the next handler.
    """

    method: HttpMethod
    path: str
    headers: Params = field(default_factory=Params)
    query_params: Params = field(default_factory=Params)
    path_params: Params = field(default_factory=Params)
    context: Params = field(default_factory=Params)
    body: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict)
    default_response_headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def segments(self) -> tuple[str, ...]:
        """The request path split into segments."""
        return split_request_path(self.path)

    def response_builder(self) -> ResponseBuilder:
        """Return a builder seeded with the default response headers."""
        return ResponseBuilder(self.default_response_headers)

    def with_default_headers(self, headers: Mapping[str, str]) -> Request:
        """Return a copy with *headers* added to the default response headers."""
        return replace(self, default_response_headers={**self.default_response_headers, **headers})

    def with_attribute(self, name: str, value: Any) -> Request:
        """Return a copy with *value* added to the attributes under *name*."""
        return replace(self, attributes={**self.attributes, name: value})

    def attribute(self, name: str, expected_type: type | None = None) -> Any:
        """Return the named attribute.

        Raises ``LookupError`` if there is no attribute with the name and
        ``TypeError`` if *expected_type* is given and the value is not an
        instance of it.
        """
        if name not in self.attributes:
            msg = f"No attribute found with name {name!r}"
            raise LookupError(msg)
        value = self.attributes[name]
        if expected_type is not None and not isinstance(value, expected_type):
            msg = (
                f"Attribute {name!r} does not have expected type. "
                f"Expected {expected_type.__name__}, found {type(value).__name__}"
            )
            raise TypeError(msg)
        return value

    def body_as[T](self, expected_type: type[T]) -> T:
        """Return the body, raising ``ValueError`` if missing or of the wrong type."""
        if self.body is None:
            msg = "Request body is required"
            raise ValueError(msg)
        if not isinstance(self.body, expected_type):
            msg = "Request body is not of the expected type"
            raise ValueError(msg)
        return self.body

    def require_binary_body(self) -> bytes:
        """Return the body as bytes, raising ``ValueError`` if missing or not binary."""
        if self.body is None:
            msg = "Request body is required"
            raise ValueError(msg)
        if not isinstance(self.body, bytes | bytearray):
            msg = "Request body is not binary"
            raise ValueError(msg)
        return bytes(self.body)
