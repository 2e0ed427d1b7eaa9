"""Immutable, case-insensitive HTTP response headers.

Implements ``Mapping[str, str]``. Adding a header returns a new ``Headers``;
a header that is already present (compared case-insensitively) is replaced.
"""

from __future__ import annotations

from collections.abc import Mapping

from arbor._internal.mapping import CaseInsensitiveMapping


class Headers(CaseInsensitiveMapping):
    """Immutable, case-insensitive HTTP headers.

    Names keep the spelling they were added with::

        headers = Headers({"Content-Type": "text/plain"})
        headers["content-type"]  # "text/plain"
        headers = headers.with_header("X-Foo", "1")
    """

    __slots__ = ()

    def __or__(self, other: Mapping[str, str]) -> Headers:
        return self.with_headers(other)

    def with_header(self, name: str, value: str) -> Headers:
        """Return a copy with the header added, replacing any existing value."""
        return self._with({name: value})

    def with_headers(self, headers: Mapping[str, str]) -> Headers:
        """Return a copy with the headers added, replacing any existing values."""
        return self._with(headers)
