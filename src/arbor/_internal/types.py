"""Shared type aliases used across arbor modules.

Components are whatever object the application passes to the dispatcher;
arbor never inspects them, it only hands them to handlers and filters.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from arbor.http.request import Request
    from arbor.http.response import Response

# User handler: (components, request) -> Response or any body value
type Handler = Callable[[Any, Request], Any]

# Handler after coercion and filter wrapping: always returns a Response
type RequestHandler = Callable[[Any, Request], Response]

# The next handler passed to a filter; components are already bound
type Next = Callable[[Request], Response]

# Filter handler: (components, request, next) -> Response or any body value
type FilterHandler = Callable[[Any, Request, Next], Any]
