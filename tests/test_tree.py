"""Tests for arbor.routing.tree — construction, validation and matching."""

import pytest

from arbor.api import Api
from arbor.errors import ApiValidationError
from arbor.filters.protocol import Filter
from arbor.http.request import HttpMethod, Request
from arbor.routing.route import Auth, HandlerRoute, StaticRoute, request_handler
from arbor.routing.tree import (
    FixedNode,
    StaticNode,
    VariableNode,
    build_tree,
    create_route_tree,
    match,
    pretty_print,
    static_match,
)


def _route(path: str, body: str, method: HttpMethod = HttpMethod.GET) -> HandlerRoute:
    return HandlerRoute(method, path, request_handler(lambda components, request: body))


def _body(root, method: str, path: str) -> str | None:
    found = match(root, method, path)
    if found is None:
        return None
    return found.handler(None, Request(HttpMethod(method.upper()), path)).body


class TestBuildTree:
    def test_empty(self) -> None:
        root = build_tree([])
        assert isinstance(root, FixedNode)
        assert root.name == ""
        assert dict(root.handlers) == {}

    def test_structure(self) -> None:
        root = build_tree([_route("/foo", "foo"), _route("/foo/bar", "bar"), _route("/foo/{id}", "id")])
        foo = root.fixed_children["foo"]
        assert isinstance(foo, FixedNode)
        assert set(foo.handlers) == {HttpMethod.GET}
        assert isinstance(foo.fixed_children["bar"], FixedNode)
        assert isinstance(foo.variable_child, VariableNode)
        assert foo.variable_child.name == "id"

    def test_same_path_different_methods(self) -> None:
        root = build_tree([_route("/foo", "get"), _route("/foo", "post", HttpMethod.POST)])
        assert set(root.fixed_children["foo"].handlers) == {HttpMethod.GET, HttpMethod.POST}

    def test_handler_keeps_auth(self) -> None:
        route = HandlerRoute(HttpMethod.GET, "/foo", request_handler(lambda c, r: "ok"), Auth("COGNITO"))
        root = build_tree([route])
        assert root.fixed_children["foo"].handlers[HttpMethod.GET][1] == Auth("COGNITO")

    def test_nodes_are_immutable(self) -> None:
        root = build_tree([_route("/foo", "foo")])
        with pytest.raises(TypeError):
            root.fixed_children["bar"] = root  # type: ignore[index]

    def test_duplicate_method_and_path(self) -> None:
        with pytest.raises(ApiValidationError) as exc_info:
            build_tree([_route("/foo", "a"), _route("/foo", "b")])
        assert exc_info.value.problems == ("Multiple routes with the same HTTP method GET: GET /foo",)

    @pytest.mark.parametrize("bodies", [("a", "b"), ("b", "a")])
    def test_duplicate_fails_in_either_order(self, bodies: tuple[str, str]) -> None:
        first, second = bodies
        routes = [
            _route("/x", "x"),
            _route("/foo", first),
            _route("/foo", "post", HttpMethod.POST),
            _route("/foo", second),
        ]
        for ordered in (routes, list(reversed(routes))):
            with pytest.raises(ApiValidationError) as exc_info:
                build_tree(ordered)
            assert exc_info.value.problems == ("Multiple routes with the same HTTP method GET: GET /foo",)

    def test_duplicate_below_variable(self) -> None:
        with pytest.raises(ApiValidationError, match="Multiple routes with the same HTTP method"):
            build_tree([_route("/foo/{id}", "a"), _route("/foo/{id}", "b")])

    def test_clashing_variable_names(self) -> None:
        with pytest.raises(ApiValidationError) as exc_info:
            build_tree([_route("/foo/{a}", "a"), _route("/foo/{b}/bar", "b")])
        (problem,) = exc_info.value.problems
        assert "clashing variable names {a}, {b}" in problem
        assert "GET /foo/{a}" in problem
        assert "GET /foo/{b}/bar" in problem

    def test_problems_are_batched(self) -> None:
        routes = [
            _route("/x", "a"),
            _route("/x", "b"),
            _route("/y/{a}", "a"),
            _route("/y/{b}/z", "b"),
        ]
        with pytest.raises(ApiValidationError) as exc_info:
            build_tree(routes)
        assert len(exc_info.value.problems) == 2
        assert str(exc_info.value).startswith("2 problems found in the API definition:")

    def test_filters_wrap_handlers(self) -> None:
        tag = Filter("/*", lambda c, r, n: n(r).with_header("X-Tag", "1"))
        root = build_tree([_route("/foo", "foo")], [tag])
        found = match(root, "GET", "/foo")
        assert found is not None
        assert found.handler(None, Request(HttpMethod.GET, "/foo")).headers["X-Tag"] == "1"

    def test_create_route_tree_from_api(self) -> None:
        root = create_route_tree(Api(routes=(_route("/foo", "foo"),)))
        assert _body(root, "GET", "/foo") == "foo"

    def test_building_twice_matches_the_same(self) -> None:
        built = Api(routes=(
            _route("/", "root"),
            _route("/foo/bar", "bar"),
            _route("/foo/{id}", "id"),
            _route("/{x}/baz", "baz", HttpMethod.POST),
            StaticRoute("/static"),
        ))
        first = create_route_tree(built)
        second = create_route_tree(built)
        paths = ["/", "/foo", "/foo/bar", "/foo/1", "/foo/baz", "/qux/baz", "/static/a.css", "/nope/x/y"]
        for method in ("GET", "POST", "DELETE"):
            for path in paths:
                assert match(first, method, path) == match(second, method, path)
        assert pretty_print(first) == pretty_print(second)


class TestStaticEndpoints:
    def test_static_node(self) -> None:
        root = build_tree([StaticRoute("/static", "index.html", Auth("COGNITO")), _route("/foo", "foo")])
        node = root.fixed_children["static"]
        assert isinstance(node, StaticNode)
        assert node.index_file == "index.html"
        assert node.auth == Auth("COGNITO")
        assert dict(node.handlers) == {}

    def test_clash_with_handler_on_same_path(self) -> None:
        with pytest.raises(ApiValidationError, match="must be the only method for its path"):
            build_tree([StaticRoute("/static"), _route("/static", "get")])

    def test_variable_child_is_illegal(self) -> None:
        with pytest.raises(ApiValidationError, match="must not have any variable children"):
            build_tree([StaticRoute("/static"), _route("/static/{file}", "file")])

    def test_fixed_child_is_legal(self) -> None:
        root = build_tree([StaticRoute("/static"), _route("/static/info", "info")])
        assert isinstance(root.fixed_children["static"].fixed_children["info"], FixedNode)

    def test_variable_sibling_is_legal(self) -> None:
        root = build_tree([StaticRoute("/foo/bar"), _route("/foo/{v}", "v")])
        foo = root.fixed_children["foo"]
        assert isinstance(foo.fixed_children["bar"], StaticNode)
        assert foo.variable_child is not None

    def test_static_match(self) -> None:
        root = build_tree([StaticRoute("/static", "index.html"), _route("/foo", "foo")])
        found = static_match(root, "/static/css/site.css")
        assert found is not None
        assert found.path == "css/site.css"
        assert found.node.index_file == "index.html"

    def test_static_match_endpoint_itself(self) -> None:
        root = build_tree([StaticRoute("/static")])
        found = static_match(root, "/static")
        assert found is not None
        assert found.path == ""

    def test_static_match_at_root(self) -> None:
        root = build_tree([StaticRoute("/")])
        found = static_match(root, "/index.html")
        assert found is not None
        assert found.path == "index.html"

    def test_static_match_miss(self) -> None:
        root = build_tree([StaticRoute("/static"), _route("/foo", "foo")])
        assert static_match(root, "/foo") is None
        assert static_match(root, "/") is None

    def test_handlers_do_not_match_static_paths(self) -> None:
        root = build_tree([StaticRoute("/static")])
        assert match(root, "GET", "/static/site.css") is None


class TestMatch:
    @pytest.fixture
    def root(self):
        return build_tree([
            _route("/", "root"),
            _route("/foo", "foo"),
            _route("/foo/bar", "bar"),
            _route("/foo/{id}", "id"),
            _route("/foo/{id}", "post id", HttpMethod.POST),
            _route("/qux", "qux"),
            _route("/users/{user_id}/orders/{order_id}", "order"),
        ])

    def test_root(self, root) -> None:
        found = match(root, "GET", "/")
        assert found is not None
        assert found.vars == {}

    def test_fixed(self, root) -> None:
        assert _body(root, "GET", "/foo") == "foo"
        assert _body(root, "GET", "/qux") == "qux"

    def test_fixed_takes_precedence(self, root) -> None:
        assert _body(root, "GET", "/foo/bar") == "bar"

    def test_variable(self, root) -> None:
        found = match(root, "GET", "/foo/123")
        assert found is not None
        assert found.vars == {"id": "123"}

    def test_multiple_variables(self, root) -> None:
        found = match(root, "GET", "/users/u1/orders/o2")
        assert found is not None
        assert found.vars == {"user_id": "u1", "order_id": "o2"}

    def test_method(self, root) -> None:
        assert _body(root, "POST", "/foo/123") == "post id"
        assert match(root, "POST", "/foo") is None
        assert match(root, "DELETE", "/foo/123") is None

    def test_method_case_insensitive(self, root) -> None:
        assert _body(root, "get", "/foo") == "foo"

    def test_unknown_method(self, root) -> None:
        assert match(root, "BREW", "/foo") is None

    def test_http_method_enum(self, root) -> None:
        assert _body(root, HttpMethod.GET, "/qux") == "qux"

    def test_no_match(self, root) -> None:
        assert match(root, "GET", "/nope") is None
        assert match(root, "GET", "/foo/bar/baz") is None
        assert match(root, "GET", "/users/u1/orders") is None

    def test_extra_slashes_ignored(self, root) -> None:
        assert _body(root, "GET", "/foo/") == "foo"
        assert _body(root, "GET", "//foo//bar") == "bar"

    def test_variable_with_literal_below(self) -> None:
        root = build_tree([_route("/foo/{a}", "a"), _route("/foo/{a}/bar", "bar")])
        found = match(root, "GET", "/foo/1/bar")
        assert found is not None
        assert found.vars == {"a": "1"}
        assert _body(root, "GET", "/foo/1") == "a"

    def test_backtracks_to_variable_branch(self) -> None:
        root = build_tree([_route("/foo/bar", "fixed"), _route("/{x}/baz", "variable")])
        found = match(root, "GET", "/foo/baz")
        assert found is not None
        assert found.vars == {"x": "foo"}
        assert _body(root, "GET", "/foo/bar") == "fixed"

    def test_backtracks_on_method(self) -> None:
        root = build_tree([_route("/foo", "get"), _route("/{x}", "post", HttpMethod.POST)])
        found = match(root, "POST", "/foo")
        assert found is not None
        assert found.vars == {"x": "foo"}

    def test_dead_end_fixed_branch_binds_no_variables(self) -> None:
        root = build_tree([_route("/a/{b}/c", "abc"), _route("/{x}/y/z", "xyz")])
        found = match(root, "GET", "/a/y/z")
        assert found is not None
        assert found.vars == {"x": "a"}


class TestPrettyPrint:
    def test_tree(self) -> None:
        root = build_tree([
            _route("/foo", "foo"),
            _route("/foo", "foo", HttpMethod.POST),
            _route("/foo/bar", "bar"),
            _route("/foo/{id}", "id"),
            _route("/qux", "qux"),
            StaticRoute("/static"),
        ])
        assert pretty_print(root) == "\n".join([
            "/",
            "  /foo [GET, POST]",
            "    /bar [GET]",
            "    /{id} [GET]",
            "  /qux [GET]",
            "  /static [static]",
        ])
