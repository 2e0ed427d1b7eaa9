"""Immutable, case-insensitive request parameters.

Used for request headers, query string parameters, path parameters and the
request context. Lookup ignores case as HTTP header names do::

    content_type = request.headers.get("content-type")

Repeated query string values are not supported; the last value for a name wins.
"""

from __future__ import annotations

from urllib.parse import unquote_plus

from arbor._internal.mapping import CaseInsensitiveMapping


class Params(CaseInsensitiveMapping):
    """Immutable parameters with case-insensitive lookup.

    Iteration yields the names as they were supplied. ``__getitem__`` raises
    ``KeyError`` like any mapping; ``require`` raises ``ValueError`` so a
    missing parameter becomes a 400 response under the default exception
    mapping.
    """

    __slots__ = ()

    def require(self, key: str) -> str:
        """Return the value for *key* or raise ``ValueError`` if it is missing."""
        value = self.get(key)
        if value is None:
            msg = f"No value named {key!r}"
            raise ValueError(msg)
        return value

    def with_value(self, key: str, value: str) -> Params:
        """Return a copy with *key* set to *value*, replacing any existing value."""
        return self._with({key: value})

    def without(self, key: str) -> Params:
        """Return a copy with *key* removed."""
        return self._without(key)

    @classmethod
    def from_query_string(cls, query_string: str | None) -> Params:
        """Parse an HTTP query string such as ``a=1&b=two``.

        Names and values are URL-decoded. A name without ``=`` maps to ``""``.
        """
        if query_string is None or not query_string.strip():
            return cls()
        params: dict[str, str] = {}
        for part in query_string.split("&"):
            if not part:
                continue
            name, _, value = part.partition("=")
            params[unquote_plus(name)] = unquote_plus(value)
        return cls(params)
