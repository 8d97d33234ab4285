from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from apilens.config import DEFAULT_VENDOR_NAMESPACES
from apilens.routing.route import Route, RouteRegistry


@dataclass(frozen=True)
class RouteFilters:
    path: Optional[str] = None
    method: Optional[str] = None
    domain: Optional[str] = None
    except_vendor: bool = False
    only_vendor: bool = False

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "RouteFilters":
        data = data or {}
        return cls(
            path=data.get("path") or None,
            method=data.get("method") or None,
            domain=data.get("domain") or None,
            except_vendor=bool(data.get("except_vendor", False)),
            only_vendor=bool(data.get("only_vendor", False)),
        )

    def as_dict(self) -> dict[str, Any]:
        """Only the filters that constrain anything."""
        out: dict[str, Any] = {}
        for key in ("path", "method", "domain"):
            value = getattr(self, key)
            if value:
                out[key] = value
        if self.except_vendor:
            out["except_vendor"] = True
        if self.only_vendor:
            out["only_vendor"] = True
        return out


class RouteIndex:
    """
    Filtering and lookup over a RouteRegistry.

    Order is always registry order.
    """

    def __init__(
        self,
        registry: RouteRegistry,
        vendor_namespaces: Iterable[str] = DEFAULT_VENDOR_NAMESPACES,
    ) -> None:
        self.registry = registry
        self.vendor_namespaces = tuple(vendor_namespaces)

    def all(self) -> list[Route]:
        return list(self.registry.routes())

    def filter(self, filters: RouteFilters | Mapping[str, Any] | None = None) -> list[Route]:
        if not isinstance(filters, RouteFilters):
            filters = RouteFilters.from_mapping(filters)
        return [r for r in self.registry.routes() if self.matches(r, filters)]

    def list(self, filters: RouteFilters | Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        return [self.serialize(r) for r in self.filter(filters)]

    def find_by_uri_and_method(self, uri: str, method: str) -> Optional[Route]:
        for route in self.registry.routes():
            if route.uri == uri and method in route.methods:
                return route
        return None

    def find_by_name(self, name: str) -> Optional[Route]:
        return self.registry.get_by_name(name)

    def matches(self, route: Route, filters: RouteFilters) -> bool:
        if filters.path is not None and not path_matches(route.uri, filters.path):
            return False
        if filters.method is not None and filters.method.upper() not in route.methods:
            return False
        if filters.domain is not None and route.domain != filters.domain:
            return False
        if filters.except_vendor and self.is_vendor(route):
            return False
        if filters.only_vendor and not self.is_vendor(route):
            return False
        return True

    def is_vendor(self, route: Route) -> bool:
        # Substring heuristic: any user type whose path contains one of the
        # namespaces is classified as vendor too.
        descriptor = route.handler.descriptor
        return any(ns in descriptor for ns in self.vendor_namespaces)

    def serialize(self, route: Route) -> dict[str, Any]:
        handler = route.handler
        action: dict[str, Any] = {"uses": handler.descriptor if handler.is_controller else "Closure"}
        if handler.is_controller:
            action["controller"] = handler.descriptor
            action["class"] = handler.class_name
            action["method"] = handler.method

        return {
            "uri": route.uri,
            "methods": list(route.methods),
            "name": route.name,
            "domain": route.domain,
            "controller": handler.descriptor if handler.is_controller else None,
            "action": action,
            "middleware": list(route.middleware),
            "wheres": dict(route.wheres),
            "parameters": list(route.parameters),
            "is_api": route.is_api,
        }


def path_matches(uri: str, pattern: str) -> bool:
    """Glob match anchored at the start of the URI; "*" matches anything."""
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.match(regex, uri) is not None
