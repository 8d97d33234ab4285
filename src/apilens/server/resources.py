from __future__ import annotations

import logging
from typing import Any, ClassVar, Optional
from urllib.parse import parse_qs, unquote, urlsplit

from apilens.errors import ApilensError, RouteNotFoundError, ValidationError
from apilens.routing.collection import RouteIndex
from apilens.schema.controller import ControllerInspector
from apilens.server.tools import ToolResponse, ensure_controller_method

logger = logging.getLogger(__name__)


class Resource:
    name: ClassVar[str]
    description: ClassVar[str]
    scheme: ClassVar[str]
    uri_template: ClassVar[str]
    mime_type: ClassVar[str] = "application/json"

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "uri_template": self.uri_template,
            "mime_type": self.mime_type,
        }

    def matches(self, uri: str) -> bool:
        return uri.startswith(f"{self.scheme}://")

    def read(self, uri: str) -> ToolResponse:
        parts = urlsplit(uri)
        target = unquote(parts.netloc + parts.path)
        query = {k: v[-1] for k, v in parse_qs(parts.query).items()}
        try:
            return self.handle(target, query)
        except ApilensError as exc:
            logger.info("Resource %s failed: %s", uri, exc)
            return ToolResponse.failure(str(exc))

    def handle(self, target: str, query: dict[str, str]) -> ToolResponse:
        raise NotImplementedError


class ApiRoutesResource(Resource):
    """
    route://                      -> every route
    route://api/users?method=POST -> one route (method defaults to GET)
    route:///                     -> the root route
    """

    name = "api_routes"
    description = "Dynamic access to API routes information via route://{uri} URI template."
    scheme = "route"
    uri_template = "route://{uri}"

    def __init__(self, index: RouteIndex) -> None:
        self.index = index

    def handle(self, target: str, query: dict[str, str]) -> ToolResponse:
        if not target:
            routes = self.index.list()
            return ToolResponse.structured(
                {
                    "description": "List all API routes. Provide a specific URI via route://{uri} for details.",
                    "count": len(routes),
                    "routes": routes,
                }
            )

        uri = target.strip("/") or "/"
        method = (query.get("method") or "GET").upper()
        route = self.index.find_by_uri_and_method(uri, method)
        if route is None:
            raise RouteNotFoundError(uri, method)
        return ToolResponse.structured(
            {"uri": uri, "method": method, "route": self.index.serialize(route)}
        )


class ControllerResource(Resource):
    """
    controller://app.http.UserController        -> public method list
    controller://app.http.UserController/store  -> full method inspection
    """

    name = "controller"
    description = (
        "Dynamic access to controller information via controller://{class} or "
        "controller://{class}/{method} URI template."
    )
    scheme = "controller"
    uri_template = "controller://{class}/{method?}"

    def __init__(self, controller_inspector: ControllerInspector) -> None:
        self.controller_inspector = controller_inspector

    def handle(self, target: str, query: dict[str, str]) -> ToolResponse:
        class_name, method = _split_target(target)
        if not class_name:
            raise ValidationError(
                "Controller class is required. Use controller://{class} or controller://{class}/{method}"
            )

        if not method:
            return ToolResponse.structured(self.controller_inspector.list_methods(class_name))

        ensure_controller_method(class_name, method)
        return ToolResponse.structured(self.controller_inspector.inspect(class_name, method))


def _split_target(target: str) -> tuple[str, Optional[str]]:
    target = target.strip("/")
    if "/" not in target:
        return target, None
    class_name, method = target.split("/", 1)
    return class_name, method.strip("/") or None
