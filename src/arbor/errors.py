"""Arbor exception hierarchy.

Shared across the builder, the route tree, filters and the dispatcher so
every module raises and catches the same types.

Two families:

- ``ConfigurationError`` — the API declaration is invalid. Raised while the
  ``Api`` or the route tree is being built, never while serving requests.
- ``HTTPError`` — raised by handlers and filters to signal a per-request
  failure that maps to an HTTP status.
"""

from dataclasses import dataclass


class ArborError(Exception):
    """Base for all arbor-specific errors."""


class ConfigurationError(ArborError):
    """Raised when an API declaration is invalid.

    Raised immediately for problems that can be detected at the point of
    declaration, for example an illegal path or nested ``auth`` blocks.
    """


class ApiValidationError(ConfigurationError):
    """Raised when building an ``Api`` or route tree finds problems.

    Every problem found during the build is collected so the developer
    sees all of them at once rather than fixing them one at a time.
    """

    def __init__(self, problems: list[str] | tuple[str, ...]) -> None:
        self.problems: tuple[str, ...] = tuple(problems)
        super().__init__(self._format())

    def _format(self) -> str:
        if len(self.problems) == 1:
            return self.problems[0]
        lines = [f"{len(self.problems)} problems found in the API definition:"]
        lines.extend(f"  - {problem}" for problem in self.problems)
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class HTTPError(ArborError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers or filters. The exception-mapping filter catches
    these and turns them into a plain text response with the same status.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — the requested data could not be found."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403 — the caller is not allowed to access the resource."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class BadRequest(HTTPError):  # noqa: N818
    """400 — the request is malformed or missing required data."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)
