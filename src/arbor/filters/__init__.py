"""Filters — path-gated wrappers around endpoint handlers, no inheritance required.

A filter handler is any callable matching:
    def f(components, request: Request, next: Next) -> Response | Any

Built-in filters:
    cors_filter -- Adds CORS headers for endpoints declared with cors=True
    default_content_type_filter -- Sets the default Content-Type of responses
    exception_mapping_filter -- Turns exceptions into error responses
"""

from arbor.filters.builtin import (
    CorsHeadersBuilder,
    ErrorInfo,
    ExceptionHandler,
    cors_filter,
    default_content_type_filter,
    default_exception_mapping_filter,
    exception_mapping_filter,
    standard_filters,
)
from arbor.filters.protocol import Filter, FilterHandler, Next, define_filter

__all__ = [
    "CorsHeadersBuilder",
    "ErrorInfo",
    "ExceptionHandler",
    "Filter",
    "FilterHandler",
    "Next",
    "cors_filter",
    "default_content_type_filter",
    "default_exception_mapping_filter",
    "define_filter",
    "exception_mapping_filter",
    "standard_filters",
]
