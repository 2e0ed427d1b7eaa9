"""API configuration.

ApiConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ApiConfig:
    """API configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ApiConfig(cors=True, binary_mime_types=frozenset({"font/woff2"}))
    """

    # Default CORS flag for routes declared in the root scope
    cors: bool = False

    # Content type applied to responses unless a handler sets its own
    default_content_type: str = "application/json"

    # Added to STANDARD_BINARY_MIME_TYPES
    binary_mime_types: frozenset[str] = frozenset()
