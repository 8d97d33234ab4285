from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from apilens.config import Settings, get_settings
from apilens.errors import ValidationError
from apilens.extractors.fastapi.registry import registry_from_app
from apilens.orchestrator.analyzer import EndpointAnalyzer
from apilens.orchestrator.examples import ExampleGenerator
from apilens.routing.collection import RouteIndex
from apilens.routing.parser import RouteParser
from apilens.routing.route import RouteRegistry
from apilens.schema.controller import ControllerInspector
from apilens.schema.kinds import KindRegistry
from apilens.schema.request import RequestInspector
from apilens.schema.response import ResponseInspector
from apilens.server.resources import ApiRoutesResource, ControllerResource, Resource
from apilens.server.tools import (
    AnalyzeEndpoint,
    GetControllerMethods,
    GetRequestRules,
    GetResponseSchema,
    GetRoute,
    GetRouteDetails,
    ListApiRoutes,
    Tool,
    ToolResponse,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "apilens API Discovery"
SERVER_VERSION = "0.1.0"
SERVER_INSTRUCTIONS = (
    "This server provides tools for discovering API routes, inspecting controller methods, "
    "analyzing request validation rules, and understanding response resources."
)


@dataclass
class Components:
    index: RouteIndex
    route_parser: RouteParser
    controller_inspector: ControllerInspector
    request_inspector: RequestInspector
    response_inspector: ResponseInspector
    example_generator: ExampleGenerator
    analyzer: EndpointAnalyzer


def build_components(registry: RouteRegistry, settings: Optional[Settings] = None) -> Components:
    settings = settings or get_settings()
    kinds = KindRegistry.from_settings(settings)

    index = RouteIndex(registry, vendor_namespaces=settings.vendor_namespaces)
    route_parser = RouteParser(index)
    controller_inspector = ControllerInspector(kinds, framework_prefixes=settings.framework_prefixes)
    request_inspector = RequestInspector()
    response_inspector = ResponseInspector(kinds)
    example_generator = ExampleGenerator(request_inspector)
    analyzer = EndpointAnalyzer(
        route_parser,
        controller_inspector,
        request_inspector,
        response_inspector,
        example_generator,
    )
    return Components(
        index=index,
        route_parser=route_parser,
        controller_inspector=controller_inspector,
        request_inspector=request_inspector,
        response_inspector=response_inspector,
        example_generator=example_generator,
        analyzer=analyzer,
    )


class LensServer:
    """In-process tool/resource surface over one route registry."""

    name = SERVER_NAME
    version = SERVER_VERSION
    instructions = SERVER_INSTRUCTIONS

    def __init__(self, registry: RouteRegistry, settings: Optional[Settings] = None) -> None:
        self.components = c = build_components(registry, settings)
        tools: list[Tool] = [
            ListApiRoutes(c.index),
            GetRoute(c.index),
            GetRouteDetails(c.analyzer),
            GetRequestRules(c.request_inspector),
            GetResponseSchema(c.response_inspector),
            AnalyzeEndpoint(c.analyzer),
            GetControllerMethods(c.controller_inspector),
        ]
        self.tools = {t.name: t for t in tools}
        self.resources: list[Resource] = [
            ApiRoutesResource(c.index),
            ControllerResource(c.controller_inspector),
        ]

    def list_tools(self) -> list[dict[str, Any]]:
        return [t.describe() for t in self.tools.values()]

    def list_resources(self) -> list[dict[str, Any]]:
        return [r.describe() for r in self.resources]

    def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResponse:
        tool = self.tools.get(name)
        if tool is None:
            return ToolResponse.failure(f"Unknown tool '{name}'.")
        return tool(arguments)

    def read_resource(self, uri: str) -> ToolResponse:
        for resource in self.resources:
            if resource.matches(uri):
                return resource.read(uri)
        return ToolResponse.failure(f"No resource matches '{uri}'.")


def load_registry(target: str) -> RouteRegistry:
    """
    Import "module:attr" and turn it into a RouteRegistry.

    The attribute may be a RouteRegistry, a FastAPI/Starlette app, or a
    zero-argument factory returning either.
    """
    if not target or ":" not in target:
        raise ValidationError(f"App must be given as 'module:attr', got {target!r}.")
    module_name, attr = target.split(":", 1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValidationError(f"Cannot import module '{module_name}': {exc}") from exc

    obj: Any = module
    try:
        for part in attr.split("."):
            obj = getattr(obj, part)
    except AttributeError as exc:
        raise ValidationError(f"Module '{module_name}' has no attribute '{attr}'.") from exc

    if callable(obj) and not isinstance(obj, RouteRegistry) and not hasattr(obj, "routes"):
        obj = obj()

    if isinstance(obj, RouteRegistry):
        return obj
    if hasattr(obj, "routes"):
        logger.debug("Building registry from %s", type(obj).__name__)
        return registry_from_app(obj)
    raise ValidationError(f"'{target}' is neither a RouteRegistry nor an application with routes.")
