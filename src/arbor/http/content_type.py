"""Content-Type header parsing and standard header / MIME type names."""

from __future__ import annotations

import re
from dataclasses import dataclass


class HttpHeaders:
    """Standard HTTP header names."""

    CONTENT_TYPE = "Content-Type"


class MimeTypes:
    """Standard MIME types."""

    APPLICATION_JSON = "application/json"
    APPLICATION_OCTET_STREAM = "application/octet-stream"
    TEXT_PLAIN = "text/plain"


_CONTENT_TYPE_RE = re.compile(r"\s*(?P<type>\S+?)\s*(;\s*charset=(?P<charset>\S+)\s*)?", re.IGNORECASE)
_MULTIPART_RE = re.compile(r"\s*multipart/form-data\s*;\s*boundary=(?P<boundary>\S{1,70})\s*", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ContentType:
    """The data in a ``Content-Type`` header.

    ``charset`` only applies to text types and ``boundary`` only to
    ``multipart/form-data``.
    """

    mime_type: str
    charset: str | None = None
    boundary: str | None = None

    def __post_init__(self) -> None:
        if not self.mime_type.strip():
            msg = "MIME type cannot be blank"
            raise ValueError(msg)

    @property
    def header(self) -> str:
        """The value used in a ``Content-Type`` header."""
        mime_type = self.mime_type.strip()
        if self.charset is not None:
            return f"{mime_type}; charset={self.charset}"
        if self.boundary is not None:
            return f"{mime_type}; boundary={self.boundary}"
        return mime_type

    @classmethod
    def parse(cls, header: str) -> ContentType:
        """Parse a ``Content-Type`` header value.

        Raises ``ValueError`` if the header cannot be parsed.
        """
        multipart = _MULTIPART_RE.fullmatch(header)
        if multipart is not None:
            return cls("multipart/form-data", boundary=multipart.group("boundary"))
        match = _CONTENT_TYPE_RE.fullmatch(header)
        if match is None:
            msg = f"Invalid Content-Type: {header!r}"
            raise ValueError(msg)
        return cls(match.group("type"), charset=match.group("charset"))


# Everything is assumed to be JSON unless it states otherwise
JSON_CONTENT_TYPE = ContentType(MimeTypes.APPLICATION_JSON)
