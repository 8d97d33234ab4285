from __future__ import annotations

import logging
from typing import Any, ClassVar, Mapping, Optional

from pydantic import BaseModel

from apilens.domain.models import HTTP_METHODS
from apilens.errors import ApilensError, NotFoundError, RouteNotFoundError, ValidationError
from apilens.orchestrator.analyzer import EndpointAnalyzer
from apilens.reflection import helper
from apilens.reflection.types import load_class
from apilens.routing.collection import RouteFilters, RouteIndex
from apilens.schema.controller import ControllerInspector
from apilens.schema.request import RequestInspector
from apilens.schema.response import ResponseInspector

logger = logging.getLogger(__name__)


class ToolResponse(BaseModel):
    is_error: bool = False
    content: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def structured(cls, content: Any) -> "ToolResponse":
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json", exclude_none=True)
        return cls(content=content)

    @classmethod
    def failure(cls, message: str) -> "ToolResponse":
        return cls(is_error=True, error=message)


def _string_property(description: str, enum: Optional[tuple[str, ...]] = None) -> dict[str, Any]:
    prop: dict[str, Any] = {"type": "string", "description": description}
    if enum:
        prop["enum"] = list(enum)
    return prop


_URI = _string_property("The route URI pattern (e.g., 'api/users/{id}')")
_METHOD = _string_property("The HTTP method", HTTP_METHODS)


class Tool:
    name: ClassVar[str]
    description: ClassVar[str]
    category: ClassVar[str] = "discovery"
    properties: ClassVar[dict[str, Any]] = {}
    required: ClassVar[tuple[str, ...]] = ()

    def schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": dict(self.properties),
            "required": list(self.required),
        }

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.schema(),
            "meta": {"category": self.category},
        }

    def __call__(self, arguments: Optional[Mapping[str, Any]] = None) -> ToolResponse:
        arguments = dict(arguments or {})
        try:
            for key in self.required:
                require(arguments, key)
            return self.handle(arguments)
        except ApilensError as exc:
            logger.info("Tool %s failed: %s", self.name, exc)
            return ToolResponse.failure(str(exc))

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        raise NotImplementedError


def require(arguments: Mapping[str, Any], key: str) -> str:
    value = arguments.get(key)
    if value is None or not str(value).strip():
        label = key.replace("_", " ").capitalize()
        raise ValidationError(f"{label} is required.")
    return str(value).strip()


class ListApiRoutes(Tool):
    name = "list_api_routes"
    description = (
        "Lists all API routes with optional filters for path pattern, HTTP method, "
        "domain, and vendor routes."
    )
    properties = {
        "path": _string_property("Filter routes by URI pattern (supports wildcards, e.g., 'api/users*')"),
        "method": _string_property("Filter by HTTP method", HTTP_METHODS),
        "domain": _string_property("Filter by domain"),
        "except_vendor": {"type": "boolean", "description": "Exclude vendor/framework routes"},
        "only_vendor": {"type": "boolean", "description": "Only show vendor/framework routes"},
    }

    def __init__(self, index: RouteIndex) -> None:
        self.index = index

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        filters = RouteFilters.from_mapping(arguments)
        routes = self.index.list(filters)
        return ToolResponse.structured(
            {"count": len(routes), "filters": filters.as_dict(), "routes": routes}
        )


class GetRoute(Tool):
    name = "get_route"
    description = "Gets a single route by URI and HTTP method."
    properties = {"uri": _URI, "method": _METHOD}
    required = ("uri", "method")

    def __init__(self, index: RouteIndex) -> None:
        self.index = index

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        uri = require(arguments, "uri")
        method = require(arguments, "method").upper()
        route = self.index.find_by_uri_and_method(uri, method)
        if route is None:
            raise RouteNotFoundError(uri, method)
        return ToolResponse.structured(self.index.serialize(route))


class GetRouteDetails(Tool):
    name = "get_route_details"
    description = (
        "Gets detailed information about a specific route including controller, file path, "
        "line numbers, middleware, and request validation class."
    )
    properties = {"uri": _URI, "method": _METHOD}
    required = ("uri", "method")

    def __init__(self, analyzer: EndpointAnalyzer) -> None:
        self.analyzer = analyzer

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        uri = require(arguments, "uri")
        method = require(arguments, "method").upper()
        return ToolResponse.structured(self.analyzer.details(uri, method))


class GetRequestRules(Tool):
    name = "get_request_rules"
    category = "validation"
    description = (
        "Analyzes a request class: validation rules, custom error messages, attribute names, "
        "and authorization logic."
    )
    properties = {
        "request_class": _string_property(
            "Full request class path (e.g., app.http.requests.StoreUserRequest); "
            "'/'-separated and base64-encoded forms are accepted"
        ),
    }
    required = ("request_class",)

    def __init__(self, request_inspector: RequestInspector) -> None:
        self.request_inspector = request_inspector

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        request_class = require(arguments, "request_class")
        return ToolResponse.structured(self.request_inspector.inspect(request_class))


class GetResponseSchema(Tool):
    name = "get_response_schema"
    category = "schema"
    description = "Analyzes what a controller method returns: resource, model, or plain return type."
    properties = {
        "controller_class": _string_property(
            "Full controller class path (e.g., app.http.controllers.UserController)"
        ),
        "method": _string_property("Controller method name (e.g., index, store, show)"),
    }
    required = ("controller_class", "method")

    def __init__(self, response_inspector: ResponseInspector) -> None:
        self.response_inspector = response_inspector

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        controller_class = require(arguments, "controller_class")
        method = require(arguments, "method")
        ensure_controller_method(controller_class, method)
        schema = self.response_inspector.inspect(controller_class, method)
        return ToolResponse.structured(
            {
                "controller": controller_class,
                "method": method,
                "response": schema.model_dump(mode="json", exclude_none=True),
            }
        )


class AnalyzeEndpoint(Tool):
    name = "analyze_endpoint"
    category = "analysis"
    description = (
        "Performs comprehensive endpoint analysis combining route info, controller details, "
        "request validation rules, and response schema in one call."
    )
    properties = {"uri": _URI, "method": _METHOD}
    required = ("uri", "method")

    def __init__(self, analyzer: EndpointAnalyzer) -> None:
        self.analyzer = analyzer

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        uri = require(arguments, "uri")
        method = require(arguments, "method").upper()
        return ToolResponse.structured(self.analyzer.analyze(uri, method))


class GetControllerMethods(Tool):
    name = "get_controller_methods"
    description = "Lists the public methods of a controller with return types, parameters and lines."
    properties = {
        "controller_class": _string_property("Full controller class path"),
    }
    required = ("controller_class",)

    def __init__(self, controller_inspector: ControllerInspector) -> None:
        self.controller_inspector = controller_inspector

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        controller_class = require(arguments, "controller_class")
        return ToolResponse.structured(self.controller_inspector.list_methods(controller_class))


def ensure_controller_method(controller_class: str, method: str) -> None:
    if load_class(controller_class) is None:
        raise NotFoundError(f"Controller class '{controller_class}' does not exist.")
    if not helper.method_exists(controller_class, method):
        raise NotFoundError(f"Method '{method}' does not exist in controller '{controller_class}'.")
