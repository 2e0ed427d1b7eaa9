"""Tests for arbor.routing.route — segments, path grammar and handler wrapping."""

import dataclasses

import pytest

from arbor.errors import ConfigurationError
from arbor.filters.protocol import Filter
from arbor.http.request import HttpMethod, Request
from arbor.http.response import Response
from arbor.routing.route import (
    NO_AUTH,
    Auth,
    FixedSegment,
    HandlerRoute,
    StaticRoute,
    VariableSegment,
    parse_segment,
    request_handler,
    split_path,
    validate_path,
    wrap_handler,
)


def _ok(components, request):
    return "ok"


class TestParseSegment:
    def test_fixed(self) -> None:
        assert parse_segment("users") == FixedSegment("users")

    def test_variable(self) -> None:
        assert parse_segment("{id}") == VariableSegment("id")

    def test_variable_with_digits_and_underscores(self) -> None:
        assert parse_segment("{user_id2}") == VariableSegment("user_id2")

    def test_empty_braces_are_fixed(self) -> None:
        assert parse_segment("{}") == FixedSegment("{}")

    @pytest.mark.parametrize("text", ["{id", "id}", "x{id}", "{id}x", "{a-b}"])
    def test_partial_variables_are_fixed(self, text: str) -> None:
        assert parse_segment(text) == FixedSegment(text)


class TestSplitPath:
    def test_root(self) -> None:
        assert split_path("/") == ()

    def test_mixed(self) -> None:
        assert split_path("/users/{id}") == (FixedSegment("users"), VariableSegment("id"))

    def test_ignores_empty_parts(self) -> None:
        assert split_path("//foo//bar/") == (FixedSegment("foo"), FixedSegment("bar"))

    def test_strips_whitespace(self) -> None:
        assert split_path("/ foo /bar") == (FixedSegment("foo"), FixedSegment("bar"))


class TestPathGrammar:
    @pytest.mark.parametrize(
        "path",
        ["/", "/foo", "/foo/bar", "/foo/{bar}", "/{a}/{b}", "/foo-bar_baz~.()", "/v1.0/items"],
    )
    def test_legal(self, path: str) -> None:
        validate_path(path)

    @pytest.mark.parametrize(
        "path",
        ["", "foo", "/foo/", "//foo", "/foo bar", "/foo/{}", "/foo/{bar", "/foo?x=1", "/foo/{b}x"],
    )
    def test_illegal(self, path: str) -> None:
        with pytest.raises(ConfigurationError, match="Illegal path"):
            validate_path(path)


    @pytest.mark.parametrize("path", ["/foo/{a-b}", "/{a.b}/bar", "/foo/{(x)}"])
    def test_variable_names_are_word_characters(self, path: str) -> None:
        with pytest.raises(ConfigurationError, match="Illegal variable name"):
            validate_path(path)


class TestHandlerRoute:
    def test_defaults(self) -> None:
        route = HandlerRoute(HttpMethod.GET, "/foo", request_handler(_ok))
        assert route.auth == NO_AUTH
        assert route.cors is False

    def test_rejects_illegal_path(self) -> None:
        with pytest.raises(ConfigurationError):
            HandlerRoute(HttpMethod.GET, "foo", request_handler(_ok))

    def test_str(self) -> None:
        assert str(HandlerRoute(HttpMethod.POST, "/orders/{id}", request_handler(_ok))) == "POST /orders/{id}"

    def test_frozen(self) -> None:
        route = HandlerRoute(HttpMethod.GET, "/foo", request_handler(_ok))
        with pytest.raises(dataclasses.FrozenInstanceError):
            route.path = "/bar"  # type: ignore[misc]

    def test_wrap_returns_new_route(self) -> None:
        route = HandlerRoute(HttpMethod.GET, "/foo", request_handler(_ok), Auth("COGNITO"), cors=True)
        wrapped = route.wrap([Filter("/*", lambda c, r, n: n(r).with_header("X-Wrapped", "yes"))])
        assert wrapped is not route
        assert (wrapped.method, wrapped.path, wrapped.auth, wrapped.cors) == (
            route.method,
            route.path,
            route.auth,
            route.cors,
        )
        assert wrapped.handler(None, Request(HttpMethod.GET, "/foo")).headers["X-Wrapped"] == "yes"
        assert "X-Wrapped" not in route.handler(None, Request(HttpMethod.GET, "/foo")).headers


class TestStaticRoute:
    @pytest.mark.parametrize("path", ["/", "/static", "/assets/public"])
    def test_legal(self, path: str) -> None:
        assert StaticRoute(path).path == path

    @pytest.mark.parametrize("path", ["static", "/static/{file}", "/static/"])
    def test_illegal(self, path: str) -> None:
        with pytest.raises(ConfigurationError, match="Static files path is illegal"):
            StaticRoute(path)

    def test_str(self) -> None:
        assert str(StaticRoute("/static", "index.html")) == "static files /static"


class TestRequestHandler:
    def test_plain_value_becomes_body(self) -> None:
        handler = request_handler(lambda components, request: "hello")
        request = Request(HttpMethod.GET, "/", default_response_headers={"Content-Type": "text/plain"})
        response = handler(None, request)
        assert response.status == 200
        assert response.body == "hello"
        assert response.headers["content-type"] == "text/plain"

    def test_response_passes_through(self) -> None:
        expected = Response(201, body="created")
        handler = request_handler(lambda components, request: expected)
        assert handler(None, Request(HttpMethod.POST, "/")) is expected

    def test_components_passed_through(self) -> None:
        components = object()
        handler = request_handler(lambda c, request: c)
        assert handler(components, Request(HttpMethod.GET, "/")).body is components


class TestWrapHandler:
    def test_first_filter_is_outermost(self) -> None:
        calls: list[str] = []

        def recording(name):
            def handle(components, request, next):
                calls.append(f"{name} before")
                response = next(request)
                calls.append(f"{name} after")
                return response

            return handle

        def handler(components, request):
            calls.append("handler")
            return "ok"

        chain = wrap_handler(
            request_handler(handler),
            [Filter("/*", recording("first")), Filter("/*", recording("second"))],
        )
        chain(None, Request(HttpMethod.GET, "/"))
        assert calls == ["first before", "second before", "handler", "second after", "first after"]

    def test_filters_modify_request_and_response(self) -> None:
        def first(components, request, next):
            response = next(request.with_default_headers({"foo": "1"}))
            return response.with_body(response.body + "1")

        def second(components, request, next):
            foo = request.default_response_headers["foo"]
            response = next(request.with_default_headers({"foo": foo + "2"}))
            return response.with_body(response.body + "2")

        chain = wrap_handler(
            request_handler(lambda c, r: "root"),
            [Filter("/*", first), Filter("/*", second)],
        )
        response = chain(None, Request(HttpMethod.GET, "/"))
        assert response.headers["foo"] == "12"
        assert response.body == "root21"

    def test_filter_plain_value_becomes_response(self) -> None:
        chain = wrap_handler(request_handler(_ok), [Filter("/*", lambda c, r, n: "filtered")])
        response = chain(None, Request(HttpMethod.GET, "/"))
        assert isinstance(response, Response)
        assert response.body == "filtered"

    def test_filter_for_other_path_is_skipped(self) -> None:
        called: list[str] = []

        def admin_only(components, request, next):
            called.append(request.path)
            return next(request)

        chain = wrap_handler(request_handler(_ok), [Filter("/admin/*", admin_only)])
        assert chain(None, Request(HttpMethod.GET, "/public")).body == "ok"
        assert called == []
        chain(None, Request(HttpMethod.GET, "/admin/users"))
        assert called == ["/admin/users"]

    def test_no_filters(self) -> None:
        chain = wrap_handler(request_handler(_ok), [])
        assert chain(None, Request(HttpMethod.GET, "/")).body == "ok"
