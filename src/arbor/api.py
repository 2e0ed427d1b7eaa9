"""API declaration — builders that assemble routes and filters into an ``Api``.

Mutable during declaration, frozen once built. A root builder collects
routes, filters and nested scopes; ``build()`` validates everything and
returns an immutable ``Api``::

    root = RootApiBuilder(ApiConfig(cors=True))

    @root.cors
    def cors(headers, request):
        headers.allow_origin = {"www.example.com"}

    @root.get("/orders/{order_id}")
    def order(components, request):
        return components.store.load_order(request.path_params["order_id"])

    with root.path("/admin") as admin, admin.auth(Auth("COGNITO")) as secured:

        @secured.delete("/orders/{order_id}")
        def delete_order(components, request):
            components.store.delete_order(request.path_params["order_id"])

    api = root.build()

Nested scopes are plain child builders; ``path`` and ``auth`` return one
and work as context managers for readability.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from arbor._internal.types import FilterHandler, Handler
from arbor.config import ApiConfig
from arbor.errors import ApiValidationError, ConfigurationError
from arbor.filters.builtin import CorsHandler, cors_filter, standard_filters
from arbor.filters.protocol import Filter
from arbor.http.content_type import MimeTypes
from arbor.http.request import HttpMethod, Request
from arbor.http.response import Response
from arbor.routing.route import (
    NO_AUTH,
    STATIC_PATH_PATTERN,
    Auth,
    HandlerRoute,
    Route,
    StaticRoute,
    request_handler,
    validate_path,
)
from arbor.routing.tree import build_tree

logger = logging.getLogger("arbor.api")

# MIME types treated as binary by default; the config can add more
STANDARD_BINARY_MIME_TYPES: frozenset[str] = frozenset({
    MimeTypes.APPLICATION_OCTET_STREAM,
    "image/png",
    "image/apng",
    "image/webp",
    "image/jpeg",
    "image/gif",
    "audio/mpeg",
    "video/mpeg",
    "application/pdf",
    "multipart/form-data",
})


@dataclass(frozen=True, slots=True)
class StaticFiles:
    """Where static files are served from and who may fetch them."""

    path: str
    index_file: str | None
    auth: Auth


@dataclass(frozen=True, slots=True)
class Api:
    """A built API: its routes, the filters around them, and static files.

    Handler routes are already wrapped in their filter chain. ``filters``
    is kept for introspection.
    """

    routes: tuple[Route, ...]
    filters: tuple[Filter, ...] = ()
    static_files: StaticFiles | None = None
    binary_mime_types: frozenset[str] = STANDARD_BINARY_MIME_TYPES

    @property
    def auth_types(self) -> frozenset[Auth]:
        """The authorisation strategies used by the routes, excluding ``NO_AUTH``."""
        return frozenset(route.auth for route in self.routes if route.auth != NO_AUTH)

    @classmethod
    def merge(cls, api1: Api, api2: Api, *rest: Api) -> Api:
        """Merge several APIs into one.

        Allows a large API to be declared across several modules. Each
        API keeps its own filters and CORS settings; the APIs must not
        declare the same method and path twice, and at most one of them
        may serve static files.
        """
        apis = (api1, api2, *rest)
        routes = tuple(route for api in apis for route in api.routes)
        problems: list[str] = []
        declared = [api.static_files for api in apis if api.static_files is not None]
        if len(declared) > 1:
            problems.append(_multiple_static_files(declared))
        problems.extend(_check_routes(routes))
        if problems:
            raise ApiValidationError(problems)
        return cls(
            routes=routes,
            filters=tuple(f for api in apis for f in api.filters),
            static_files=declared[0] if declared else None,
            binary_mime_types=frozenset().union(*(api.binary_mime_types for api in apis)),
        )


class ApiBuilder:
    """Collects the routes and filters declared in one scope.

    Created by ``RootApiBuilder`` and by the ``path`` and ``auth`` methods;
    not intended to be constructed directly.
    """

    __slots__ = ("_auth", "_children", "_cors", "_prefix", "_static_files", "filters", "routes")

    def __init__(self, prefix: str = "", auth: Auth | None = None, cors: bool = False) -> None:
        self._prefix = prefix
        self._auth = auth
        self._cors = cors
        self._children: list[ApiBuilder] = []
        self.routes: list[HandlerRoute] = []
        self.filters: list[Filter] = []
        self._static_files: list[StaticFiles] = []

    def __enter__(self) -> ApiBuilder:
        return self

    def __exit__(self, *args: object) -> None:
        return None

    # -- Routes --

    def get(self, path: str, handler: Handler | None = None, *, cors: bool | None = None) -> Any:
        """Declare an endpoint handling GET requests to *path*."""
        return self._route(HttpMethod.GET, path, handler, cors)

    def post(self, path: str, handler: Handler | None = None, *, cors: bool | None = None) -> Any:
        """Declare an endpoint handling POST requests to *path*."""
        return self._route(HttpMethod.POST, path, handler, cors)

    def put(self, path: str, handler: Handler | None = None, *, cors: bool | None = None) -> Any:
        """Declare an endpoint handling PUT requests to *path*."""
        return self._route(HttpMethod.PUT, path, handler, cors)

    def patch(self, path: str, handler: Handler | None = None, *, cors: bool | None = None) -> Any:
        """Declare an endpoint handling PATCH requests to *path*."""
        return self._route(HttpMethod.PATCH, path, handler, cors)

    def delete(self, path: str, handler: Handler | None = None, *, cors: bool | None = None) -> Any:
        """Declare an endpoint handling DELETE requests to *path*."""
        return self._route(HttpMethod.DELETE, path, handler, cors)

    def update(self, path: str, handler: Handler | None = None, *, cors: bool | None = None) -> Any:
        """Declare an endpoint handling UPDATE requests to *path*."""
        return self._route(HttpMethod.UPDATE, path, handler, cors)

    def options(self, path: str, handler: Handler | None = None) -> Any:
        """Declare an endpoint handling OPTIONS requests to *path*.

        Replaces the OPTIONS endpoint synthesised for CORS.
        """
        return self._route(HttpMethod.OPTIONS, path, handler, None)

    def _route(self, method: HttpMethod, path: str, handler: Handler | None, cors: bool | None) -> Any:
        if handler is None:

            def decorator(func: Handler) -> Handler:
                self._add_route(method, path, func, cors)
                return func

            return decorator
        self._add_route(method, path, handler, cors)
        return handler

    def _add_route(self, method: HttpMethod, path: str, handler: Handler, cors: bool | None) -> None:
        route = HandlerRoute(
            method,
            self._full_path(path),
            request_handler(handler),
            self._auth or NO_AUTH,
            self._cors if cors is None else cors,
        )
        self.routes.append(route)

    def _full_path(self, path: str) -> str:
        # "/" inside a path scope is the scope itself
        if path == "/" and self._prefix:
            return self._prefix
        return self._prefix + path

    # -- Filters --

    def filter(self, path: str | FilterHandler = "/*", handler: FilterHandler | None = None) -> Any:
        """Declare a filter for requests under *path* (relative to this scope).

        Usable directly, or as a decorator with or without a path::

            @root.filter
            def everything(components, request, next): ...

            @root.filter("/admin/*")
            def admin_only(components, request, next): ...
        """
        if callable(path):
            self.filters.append(Filter("/*", path, self._prefix))
            return path
        if handler is None:

            def decorator(func: FilterHandler) -> FilterHandler:
                self.filters.append(Filter(path, func, self._prefix))
                return func

            return decorator
        self.filters.append(Filter(path, handler, self._prefix))
        return handler

    # -- Scopes --

    def path(self, path: str, *, cors: bool | None = None) -> ApiBuilder:
        """Return a child scope whose routes and filters are under *path*."""
        validate_path(path)
        child = ApiBuilder(self._full_path(path).rstrip("/"), self._auth, self._cors if cors is None else cors)
        self._children.append(child)
        return child

    def auth(self, auth: Auth) -> ApiBuilder:
        """Return a child scope whose endpoints require *auth*.

        Auth scopes cannot be nested; an endpoint has exactly one strategy.
        """
        if self._auth is not None:
            msg = f"auth blocks cannot be nested: {auth.name} inside {self._auth.name}"
            raise ConfigurationError(msg)
        child = ApiBuilder(self._prefix, auth, self._cors)
        self._children.append(child)
        return child

    def static_files(self, path: str, index_file: str | None = None) -> None:
        """Serve static files under *path* (relative to this scope).

        Only one static files endpoint is allowed in the whole API.
        """
        self._static_files.append(StaticFiles(self._full_path(path), index_file, self._auth or NO_AUTH))

    @property
    def static_declarations(self) -> tuple[StaticFiles, ...]:
        """The static files declared directly in this scope."""
        return tuple(self._static_files)

    def descendants(self) -> list[ApiBuilder]:
        """All nested scopes, depth first."""
        result: list[ApiBuilder] = []
        stack = list(reversed(self._children))
        while stack:
            child = stack.pop()
            result.append(child)
            stack.extend(reversed(child._children))
        return result


class RootApiBuilder(ApiBuilder):
    """The outermost scope of an API declaration.

    Adds the API-wide settings: the config, the global filters and the
    CORS handler.
    """

    __slots__ = ("_cors_handler", "config", "global_filters")

    def __init__(self, config: ApiConfig | None = None) -> None:
        self.config: ApiConfig = config or ApiConfig()
        super().__init__("", None, self.config.cors)
        self.global_filters: list[Filter] = standard_filters(self.config.default_content_type)
        self._cors_handler: CorsHandler | None = None

    def cors(self, handler: CorsHandler) -> CorsHandler:
        """Set the handler that decides the CORS headers; usable as a decorator.

        It is called for every request to an endpoint with ``cors=True``.
        """
        if self._cors_handler is not None:
            msg = "There must be only one cors block"
            raise ConfigurationError(msg)
        self._cors_handler = handler
        return handler

    @property
    def cors_handler(self) -> CorsHandler | None:
        return self._cors_handler

    def build(self) -> Api:
        """Validate the declarations and return the ``Api``."""
        return build_api(self)


# -- Building --


def _options_handler(components: Any, request: Request) -> Response:
    # The CORS filter has already put its headers in the defaults
    return request.response_builder().build()


def _add_options_routes(routes: Sequence[HandlerRoute]) -> list[HandlerRoute]:
    """Add an OPTIONS route for each CORS path that doesn't declare one."""
    by_path: dict[str, list[HandlerRoute]] = {}
    for route in routes:
        by_path.setdefault(route.path, []).append(route)
    options_routes = [
        HandlerRoute(HttpMethod.OPTIONS, path, _options_handler, NO_AUTH, True)
        for path, path_routes in by_path.items()
        if any(r.cors for r in path_routes) and not any(r.method == HttpMethod.OPTIONS for r in path_routes)
    ]
    if options_routes:
        logger.debug("Adding routes for OPTIONS methods: %s", ", ".join(r.path for r in options_routes))
    return [*routes, *options_routes]


def _multiple_static_files(declared: Sequence[StaticFiles]) -> str:
    paths = ", ".join(static.path for static in declared)
    return f"static_files must only be specified once, found: {paths}"


def _check_routes(routes: Sequence[Route]) -> list[str]:
    """Problems with the routes as a whole: auth strategies and the tree."""
    problems: list[str] = []
    auth_types = sorted({route.auth.name for route in routes if route.auth != NO_AUTH})
    if len(auth_types) > 1:
        problems.append(f"Only one auth type is supported but found {', '.join(auth_types)}")
    try:
        build_tree(routes)
    except ApiValidationError as exc:
        problems.extend(exc.problems)
    return problems


def build_api(builder: RootApiBuilder) -> Api:
    """Build the ``Api`` declared by *builder*.

    Raises ``ApiValidationError`` listing every problem found.
    """
    descendants = builder.descendants()
    scopes = [builder, *descendants]
    filters = [*builder.global_filters, *(f for scope in scopes for f in scope.filters)]
    cors_handler = builder.cors_handler
    if cors_handler is not None:
        cors_filters = [cors_filter(cors_handler), *filters]
    else:
        cors_filters = filters

    handler_routes = _add_options_routes([route for scope in scopes for route in scope.routes])
    if cors_handler is None and any(route.cors for route in handler_routes):
        logger.warning("Routes have cors=True but no cors handler is defined")
    routes: list[Route] = [route.wrap(cors_filters if route.cors else filters) for route in handler_routes]

    problems: list[str] = []
    declared = [static for scope in scopes for static in scope.static_declarations]
    if len(declared) > 1:
        problems.append(_multiple_static_files(declared))
    static_files = declared[0] if declared else None
    if static_files is not None:
        if STATIC_PATH_PATTERN.fullmatch(static_files.path):
            routes.append(StaticRoute(static_files.path, static_files.index_file, static_files.auth))
        else:
            problems.append(f"Static files path is illegal: {static_files.path!r}")
    problems.extend(_check_routes(routes))
    if problems:
        raise ApiValidationError(problems)

    logger.debug("Built API with %d routes and %d filters", len(routes), len(filters))
    return Api(
        routes=tuple(routes),
        filters=tuple(filters),
        static_files=static_files,
        binary_mime_types=STANDARD_BINARY_MIME_TYPES | builder.config.binary_mime_types,
    )


def api(body: Callable[[RootApiBuilder], None] | None = None, *, config: ApiConfig | None = None) -> Api:
    """Declare and build an API in one call.

    *body* receives the root builder::

        def routes(root: RootApiBuilder) -> None:
            root.get("/hello", lambda components, request: {"message": "hello"})

        hello_api = api(routes)
    """
    logger.debug("Creating the Api")
    builder = RootApiBuilder(config)
    if body is not None:
        body(builder)
    return build_api(builder)


__all__ = [
    "STANDARD_BINARY_MIME_TYPES",
    "Api",
    "ApiBuilder",
    "RootApiBuilder",
    "StaticFiles",
    "api",
    "build_api",
]
