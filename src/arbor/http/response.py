"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Handlers only need to build a
``Response`` when the status or headers differ from the defaults; any other
return value is wrapped in a 200 response by the filter chain.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from arbor.http.content_type import HttpHeaders, MimeTypes
from arbor.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    The body is deliberately untyped: a string, bytes or any structured
    value. Encoding it for the wire is the job of the transport layer.
    """

    status: int = 200
    headers: Headers = field(default_factory=Headers)
    body: Any = None

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with the header added or replaced."""
        return replace(self, headers=self.headers.with_header(name, value))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with the headers added or replaced."""
        return replace(self, headers=self.headers.with_headers(headers))

    def with_body(self, body: Any) -> Response:
        """Return a new Response with a different body."""
        return replace(self, body=body)

    @classmethod
    def error(cls, status: int, message: str | None) -> Response:
        """Plain text error response with *message* as the body."""
        return cls(status, Headers({HttpHeaders.CONTENT_TYPE: MimeTypes.TEXT_PLAIN}), message)


class ResponseBuilder:
    """Builder for responses that need a custom status or headers.

    Obtained from ``Request.response_builder()``, which seeds it with the
    request's default response headers::

        return request.response_builder().status(201).header("Location", url).build(item)
    """

    __slots__ = ("_status", "headers")

    def __init__(self, headers: Mapping[str, str] | None = None) -> None:
        self.headers: dict[str, str] = dict(headers or {})
        self._status = 200

    def header(self, name: str, value: str) -> ResponseBuilder:
        """Set the value of the named header and return this builder."""
        self.headers[name] = value
        return self

    def status(self, status: int) -> ResponseBuilder:
        """Set the status code of the response and return this builder."""
        self._status = status
        return self

    def build(self, body: Any = None) -> Response:
        """Build a response from the data in this builder."""
        return Response(self._status, Headers(self.headers), body)
