from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from apilens.domain.models import EndpointAnalysis, EndpointRef, RouteDetails
from apilens.errors import RouteNotFoundError
from apilens.orchestrator.examples import ExampleGenerator
from apilens.routing.parser import RouteParser
from apilens.schema.controller import ControllerInspector
from apilens.schema.request import RequestInspector
from apilens.schema.response import ResponseInspector

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EndpointAnalyzer:
    """
    Route -> controller -> request contract -> response contract -> example.

    Only a missing route fails the analysis. Every later step is collected
    on a best-effort basis; a failing step leaves its block unset and
    records the reason under `errors`.
    """

    def __init__(
        self,
        route_parser: RouteParser,
        controller_inspector: ControllerInspector,
        request_inspector: RequestInspector,
        response_inspector: ResponseInspector,
        example_generator: ExampleGenerator,
    ) -> None:
        self.route_parser = route_parser
        self.controller_inspector = controller_inspector
        self.request_inspector = request_inspector
        self.response_inspector = response_inspector
        self.example_generator = example_generator

    def analyze(self, uri: str, method: str) -> EndpointAnalysis:
        route = self.route_parser.parse_by_uri_and_method(uri, method)
        if route is None:
            raise RouteNotFoundError(uri, method)

        analysis = EndpointAnalysis(
            endpoint=EndpointRef(uri=uri, method=method, name=route.name),
            route=route,
        )

        controller_class = route.controller.class_name
        controller_method = route.controller.method
        if route.controller.type != "controller" or not controller_class or not controller_method:
            return analysis

        errors = analysis.errors

        analysis.controller = _step(
            "controller", errors,
            lambda: self.controller_inspector.inspect(controller_class, controller_method),
        )

        request_class = _step(
            "request_class", errors,
            lambda: self.controller_inspector.get_request_class(controller_class, controller_method),
        )
        if request_class:
            analysis.request = _step(
                "request", errors,
                lambda: self.request_inspector.inspect(request_class),
            )

        analysis.response = _step(
            "response", errors,
            lambda: self.response_inspector.inspect(controller_class, controller_method),
        )

        analysis.example = _step(
            "example", errors,
            lambda: self.example_generator.generate(
                uri, method, controller_class, controller_method, request_class
            ),
        )
        return analysis

    def details(self, uri: str, method: str) -> RouteDetails:
        """Route + controller signature + request/resource class names."""
        route = self.route_parser.parse_by_uri_and_method(uri, method)
        if route is None:
            raise RouteNotFoundError(uri, method)

        details = RouteDetails(route=route)
        controller_class = route.controller.class_name
        controller_method = route.controller.method
        if route.controller.type != "controller" or not controller_class or not controller_method:
            return details

        details.controller = self.controller_inspector.inspect(controller_class, controller_method)
        details.request_class = self.controller_inspector.request_class_of(details.controller)
        details.resource_class = self.controller_inspector.resource_class_of(details.controller)
        return details


def _step(name: str, errors: dict[str, str], fn: Callable[[], T]) -> Optional[T]:
    try:
        return fn()
    except Exception as exc:
        logger.warning("Endpoint analysis step %r failed: %s", name, exc)
        errors[name] = str(exc) or type(exc).__name__
        return None
