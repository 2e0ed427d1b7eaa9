"""Route tree — the validated prefix tree used to match requests.

The routes of an API form a tree. Each node is one path segment; the root
is ``/``. For the routes::

    /foo
    /foo/bar
    /foo/{id}
    /qux

the tree is::

    /
      /foo [GET]
        /bar [GET]
        /{id} [GET]
      /qux [GET]

The tree is built once from the declared routes, checking as it goes that
the routes are consistent, and is immutable afterwards. Matching walks it
one segment at a time with literal children taking precedence over the
variable child.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from arbor._internal.types import RequestHandler
from arbor.errors import ApiValidationError
from arbor.http.request import HttpMethod, split_request_path
from arbor.routing.route import (
    Auth,
    FixedSegment,
    HandlerRoute,
    Route,
    RouteMatch,
    Segment,
    StaticRoute,
    VariableSegment,
    split_path,
)

if TYPE_CHECKING:
    from arbor.api import Api
    from arbor.filters.protocol import Filter

logger = logging.getLogger("arbor.routing")

_NO_HANDLERS: Mapping[HttpMethod, tuple[RequestHandler, Auth]] = MappingProxyType({})


# -- Nodes --


@dataclass(frozen=True, slots=True)
class FixedNode:
    """Node for a literal path part, e.g. ``bar`` in ``/foo/bar``.

    The root of the tree is a ``FixedNode`` with an empty name.
    """

    name: str
    handlers: Mapping[HttpMethod, tuple[RequestHandler, Auth]]
    fixed_children: Mapping[str, RouteNode]
    variable_child: VariableNode | None = None


@dataclass(frozen=True, slots=True)
class VariableNode:
    """Node for a variable path part, e.g. ``{bar}`` in ``/foo/{bar}``.

    ``name`` is the variable name the matched segment is bound to.
    """

    name: str
    handlers: Mapping[HttpMethod, tuple[RequestHandler, Auth]]
    fixed_children: Mapping[str, RouteNode]
    variable_child: VariableNode | None = None


@dataclass(frozen=True, slots=True)
class StaticNode:
    """Node marking the endpoint that serves static files.

    It has no handlers; requests under it are served by the static files
    layer, which uses ``auth`` and ``index_file``.
    """

    name: str
    fixed_children: Mapping[str, RouteNode]
    auth: Auth
    index_file: str | None = None
    handlers: Mapping[HttpMethod, tuple[RequestHandler, Auth]] = field(default=_NO_HANDLERS)
    variable_child: None = None


type RouteNode = FixedNode | VariableNode | StaticNode


# -- Construction --


@dataclass(frozen=True, slots=True)
class _SubRoute:
    """A route and the part of its path below the current tree position."""

    route: Route
    segments: tuple[Segment, ...]

    @classmethod
    def of(cls, route: Route) -> _SubRoute:
        return cls(route, split_path(route.path))

    def tail(self) -> _SubRoute:
        return _SubRoute(self.route, self.segments[1:])


def _describe(routes: Iterable[Route]) -> str:
    return ", ".join(sorted({str(route) for route in routes}))


class _TreeBuilder:
    """Folds the routes into nodes, collecting every problem it finds."""

    __slots__ = ("problems",)

    def __init__(self) -> None:
        self.problems: list[str] = []

    def node(self, segment: Segment, sub_routes: list[_SubRoute]) -> RouteNode:
        terminal = [sub for sub in sub_routes if not sub.segments]
        nonterminal = [sub for sub in sub_routes if sub.segments]

        fixed_children = self._fixed_children(nonterminal)
        variable_child = self._variable_child(nonterminal)

        static_routes: list[StaticRoute] = []
        handler_routes: list[HandlerRoute] = []
        for sub in terminal:
            match sub.route:
                case StaticRoute():
                    static_routes.append(sub.route)
                case HandlerRoute():
                    handler_routes.append(sub.route)

        if static_routes:
            return self._static_node(segment, terminal, static_routes[0], fixed_children, variable_child)

        handlers = MappingProxyType(self._handlers(handler_routes))
        match segment:
            case VariableSegment(variable_name=name):
                return VariableNode(name, handlers, fixed_children, variable_child)
            case FixedSegment(path_part=name):
                return FixedNode(name, handlers, fixed_children, variable_child)

    def _handlers(self, routes: list[HandlerRoute]) -> dict[HttpMethod, tuple[RequestHandler, Auth]]:
        by_method: dict[HttpMethod, list[HandlerRoute]] = {}
        for route in routes:
            by_method.setdefault(route.method, []).append(route)
        handlers: dict[HttpMethod, tuple[RequestHandler, Auth]] = {}
        for method, method_routes in by_method.items():
            if len(method_routes) > 1:
                self.problems.append(
                    f"Multiple routes with the same HTTP method {method}: {_describe(method_routes)}"
                )
            route = method_routes[0]
            handlers[method] = (route.handler, route.auth)
        return handlers

    def _fixed_children(self, sub_routes: list[_SubRoute]) -> Mapping[str, RouteNode]:
        by_part: dict[str, list[_SubRoute]] = {}
        for sub in sub_routes:
            head = sub.segments[0]
            if isinstance(head, FixedSegment):
                by_part.setdefault(head.path_part, []).append(sub.tail())
        return MappingProxyType({
            part: self.node(FixedSegment(part), tails) for part, tails in by_part.items()
        })

    def _variable_child(self, sub_routes: list[_SubRoute]) -> VariableNode | None:
        variable_routes: list[_SubRoute] = []
        names: dict[str, None] = {}
        for sub in sub_routes:
            head = sub.segments[0]
            if isinstance(head, VariableSegment):
                variable_routes.append(sub)
                names.setdefault(head.variable_name)
        if not variable_routes:
            return None
        if len(names) > 1:
            # One position in the path can only have one variable name
            variables = ", ".join(f"{{{name}}}" for name in names)
            self.problems.append(
                f"Routes found with clashing variable names {variables}: "
                f"{_describe(sub.route for sub in variable_routes)}"
            )
        node = self.node(VariableSegment(next(iter(names))), [sub.tail() for sub in variable_routes])
        return node if isinstance(node, VariableNode) else None

    def _static_node(
        self,
        segment: Segment,
        terminal: list[_SubRoute],
        static_route: StaticRoute,
        fixed_children: Mapping[str, RouteNode],
        variable_child: VariableNode | None,
    ) -> StaticNode:
        if variable_child is not None:
            self.problems.append(
                f"A static endpoint must not have any variable children: {static_route.path}"
            )
        if len(terminal) > 1:
            self.problems.append(
                "A static endpoint must be the only method for its path: "
                f"{_describe(sub.route for sub in terminal)}"
            )
        if isinstance(segment, VariableSegment):
            self.problems.append(
                f"A static endpoint must not end with a variable path part: {static_route.path}"
            )
            name = segment.variable_name
        else:
            name = segment.path_part
        return StaticNode(name, fixed_children, static_route.auth, static_route.index_file)


def build_tree(routes: Sequence[Route], filters: Sequence[Filter] = ()) -> RouteNode:
    """Build the route tree and return its root.

    If *filters* are given every handler route is wrapped in them first.
    Routes taken from an ``Api`` are already wrapped and need no filters.

    Raises ``ApiValidationError`` listing every problem found: two routes
    with the same method and path, different variable names at the same
    position, or a static files endpoint that clashes with other routes.
    """
    if filters:
        routes = [route.wrap(filters) if isinstance(route, HandlerRoute) else route for route in routes]
    logger.debug("Building route tree from %d routes", len(routes))
    builder = _TreeBuilder()
    root = builder.node(FixedSegment(""), [_SubRoute.of(route) for route in routes])
    if builder.problems:
        raise ApiValidationError(builder.problems)
    return root


def create_route_tree(api: Api) -> RouteNode:
    """Build the route tree for an ``Api``."""
    return build_tree(api.routes)


# -- Matching --


def match(root: RouteNode, method: HttpMethod | str, path: str) -> RouteMatch | None:
    """Find the handler for *method* and *path*.

    Returns ``None`` if nothing matches; the caller turns that into a 404.

    Literal children are tried before the variable child. If the literal
    branch leads nowhere the variable branch is tried instead, so with
    ``/foo/bar`` and ``/{x}/baz`` both defined, ``/foo/baz`` still matches.
    """
    try:
        key = HttpMethod(str(method).upper())
    except ValueError:
        return None
    segments = split_request_path(path)
    # Depth-first, pushed so the literal child is popped before the variable child
    stack: list[tuple[RouteNode, int, dict[str, str]]] = [(root, 0, {})]
    while stack:
        node, idx, bindings = stack.pop()
        if idx == len(segments):
            entry = node.handlers.get(key)
            if entry is not None:
                return RouteMatch(entry[0], bindings)
            continue
        head = segments[idx]
        if node.variable_child is not None:
            stack.append((node.variable_child, idx + 1, {**bindings, node.variable_child.name: head}))
        fixed = node.fixed_children.get(head)
        if fixed is not None:
            stack.append((fixed, idx + 1, bindings))
    return None


@dataclass(frozen=True, slots=True)
class StaticMatch:
    """A request path that falls under the static files endpoint.

    ``path`` is the remainder of the request path below the endpoint,
    empty when the request is for the endpoint itself.
    """

    node: StaticNode
    path: str


def static_match(root: RouteNode, path: str) -> StaticMatch | None:
    """Return the static files endpoint *path* falls under, if any.

    Only literal children are followed; a static endpoint never sits below
    a variable part.
    """
    segments = split_request_path(path)
    node = root
    idx = 0
    while True:
        if isinstance(node, StaticNode):
            return StaticMatch(node, "/".join(segments[idx:]))
        if idx == len(segments):
            return None
        child = node.fixed_children.get(segments[idx])
        if child is None:
            return None
        node = child
        idx += 1


def pretty_print(root: RouteNode) -> str:
    """Render the tree with one node per line, indented by depth."""
    lines: list[str] = []
    stack: list[tuple[RouteNode, str]] = [(root, "")]
    while stack:
        node, indent = stack.pop()
        part = f"{{{node.name}}}" if isinstance(node, VariableNode) else node.name
        line = f"{indent}/{part}"
        if isinstance(node, StaticNode):
            line += " [static]"
        elif node.handlers:
            line += " [" + ", ".join(str(method) for method in node.handlers) + "]"
        lines.append(line)
        children: list[RouteNode] = list(node.fixed_children.values())
        if node.variable_child is not None:
            children.append(node.variable_child)
        stack.extend((child, indent + "  ") for child in reversed(children))
    return "\n".join(lines)
