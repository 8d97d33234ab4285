from __future__ import annotations

from typing import Optional

from apilens.domain.models import ControllerInfo, RouteInfo
from apilens.reflection import helper
from apilens.routing.collection import RouteIndex
from apilens.routing.route import Route


class RouteParser:
    def __init__(self, index: RouteIndex) -> None:
        self.index = index

    def parse(self, route: Route) -> RouteInfo:
        return RouteInfo(
            uri=route.uri,
            methods=list(route.methods),
            name=route.name,
            domain=route.domain,
            middleware=list(route.middleware),
            parameters=list(route.parameters),
            wheres=dict(route.wheres),
            controller=self.controller_info(route),
            is_api=route.is_api,
        )

    def parse_by_uri_and_method(self, uri: str, method: str) -> Optional[RouteInfo]:
        route = self.index.find_by_uri_and_method(uri, method)
        if route is None:
            return None
        return self.parse(route)

    def controller_info(self, route: Route) -> ControllerInfo:
        handler = route.handler
        if not handler.is_controller:
            return ControllerInfo()
        return ControllerInfo(
            class_name=handler.class_name,
            method=handler.method,
            file_path=helper.class_file_name(handler.class_name),
            start_line=helper.method_start_line(handler.class_name, handler.method or ""),
            type="controller",
        )
