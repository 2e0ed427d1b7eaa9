"""Arbor — a declarative HTTP API with a validated route tree.

Declare endpoints and filters with a builder, build an immutable ``Api``
and dispatch requests to it. Transports (servers, cloud function adapters)
sit outside arbor and only call the dispatcher.

Basic usage::

    from arbor import RootApiBuilder, Dispatcher

    root = RootApiBuilder()

    @root.get("/hello/{name}")
    def hello(components, request):
        return {"message": f"hello, {request.path_params['name']}"}

    dispatcher = Dispatcher(root.build())
    response = dispatcher.dispatch("GET", "/hello/world")
"""

__version__ = "0.1.0"
__all__ = [
    "NO_AUTH",
    "Api",
    "ApiBuilder",
    "ApiConfig",
    "ApiValidationError",
    "ArborError",
    "Auth",
    "BadRequest",
    "ConfigurationError",
    "Dispatcher",
    "Filter",
    "Forbidden",
    "HTTPError",
    "HttpMethod",
    "NotFound",
    "Request",
    "Response",
    "RootApiBuilder",
    "define_filter",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import arbor`` fast while providing a clean top-level API.
    """
    if name in ("Api", "ApiBuilder", "RootApiBuilder"):
        from arbor import api as _api

        return getattr(_api, name)

    if name == "ApiConfig":
        from arbor.config import ApiConfig

        return ApiConfig

    if name == "Dispatcher":
        from arbor.dispatch import Dispatcher

        return Dispatcher

    if name in ("Request", "HttpMethod"):
        from arbor.http import request as _req

        return getattr(_req, name)

    if name == "Response":
        from arbor.http.response import Response

        return Response

    if name in ("Auth", "NO_AUTH"):
        from arbor.routing import route as _route

        return getattr(_route, name)

    if name in ("Filter", "define_filter"):
        from arbor.filters import protocol as _filters

        return getattr(_filters, name)

    if name in (
        "ApiValidationError",
        "ArborError",
        "BadRequest",
        "ConfigurationError",
        "Forbidden",
        "HTTPError",
        "NotFound",
    ):
        from arbor import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
