"""Request dispatch — matches a request against the route tree and calls the handler.

The dispatcher is the seam between arbor and whatever carries the requests
(a server, a cloud function adapter, the in-memory test client). It builds
the route tree once and is read-only afterwards, so one dispatcher can be
shared by any number of threads.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from arbor.api import Api
from arbor.http.params import Params
from arbor.http.request import HttpMethod, Request
from arbor.http.response import Response
from arbor.routing.route import RouteMatch
from arbor.routing.tree import RouteNode, StaticMatch, create_route_tree, match, static_match

logger = logging.getLogger("arbor.dispatch")


class Dispatcher:
    """Routes requests to the handlers of an ``Api``.

    *components* is handed unchanged to every handler and filter::

        dispatcher = Dispatcher(api, components)
        response = dispatcher.dispatch("GET", "/orders/42")
        if response is None:
            ...  # no route, send a 404
    """

    __slots__ = ("api", "components", "root")

    def __init__(self, api: Api, components: Any = None) -> None:
        self.api = api
        self.components = components
        self.root: RouteNode = create_route_tree(api)
        logger.debug("Dispatcher ready with %d routes", len(api.routes))

    def match(self, method: HttpMethod | str, path: str) -> RouteMatch | None:
        """Return the handler and path variables for the request, or ``None``."""
        return match(self.root, method, path)

    def static_match(self, path: str) -> StaticMatch | None:
        """Return the static files endpoint *path* falls under, or ``None``."""
        return static_match(self.root, path)

    def dispatch(
        self,
        method: HttpMethod | str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        query: Mapping[str, str] | str | None = None,
        body: Any = None,
        context: Mapping[str, str] | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> Response | None:
        """Handle one request and return the response.

        *query* is either the parsed parameters or the raw query string.
        Returns ``None`` when no route matches.
        """
        route_match = self.match(method, path)
        if route_match is None:
            logger.debug("No route for %s %s", method, path)
            return None
        if isinstance(query, str):
            query_params = Params.from_query_string(query)
        else:
            query_params = Params(query)
        request = Request(
            method=HttpMethod(str(method).upper()),
            path=path,
            headers=Params(headers),
            query_params=query_params,
            path_params=Params(route_match.vars),
            context=Params(context),
            body=body,
            attributes=dict(attributes or {}),
        )
        return route_match.handler(self.components, request)
