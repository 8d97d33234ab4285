from __future__ import annotations

import inspect
import logging
from types import MappingProxyType
from typing import Any, Iterable, Optional

from starlette.endpoints import HTTPEndpoint
from starlette.routing import BaseRoute, Host, Mount, Route as StarletteRoute, WebSocketRoute

from apilens.routing.route import HandlerRef, Route, RouteRegistry, handler_ref_for, normalize_uri, uri_parameters

logger = logging.getLogger(__name__)

# Starlette's default "str" convertor carries no constraint worth reporting.
_UNCONSTRAINED = {"[^/]+"}

_ENDPOINT_VERBS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def registry_from_app(app: Any) -> RouteRegistry:
    """
    Snapshot a FastAPI/Starlette application's routing table.

    Mount prefixes are joined onto child paths and Host routes set the
    domain of everything beneath them. HTTPEndpoint classes yield one
    route per verb handler they define. WebSocket routes are skipped.
    Uses the live route objects only; nothing is called.
    """
    routes = getattr(app, "routes", None)
    if routes is None:
        raise TypeError(f"{app!r} has no routing table")
    return RouteRegistry(_walk(routes, prefix="", domain=None))


def _walk(routes: Iterable[BaseRoute], prefix: str, domain: Optional[str]) -> Iterable[Route]:
    for route in routes:
        if isinstance(route, WebSocketRoute):
            continue
        if isinstance(route, Host):
            yield from _walk(route.routes, prefix, route.host)
            continue
        if isinstance(route, Mount):
            yield from _walk(route.routes, prefix + route.path, domain)
            continue
        if isinstance(route, StarletteRoute):
            converted = list(_convert(route, prefix, domain))
            if not converted:
                logger.debug("No HTTP handlers found on %s", prefix + route.path)
            yield from converted
            continue
        logger.debug("Skipping unsupported route type %s", type(route).__name__)


def _convert(route: StarletteRoute, prefix: str, domain: Optional[str]) -> Iterable[Route]:
    if inspect.isclass(route.endpoint) and issubclass(route.endpoint, HTTPEndpoint):
        for methods, verb in _endpoint_verbs(route.endpoint, route.methods):
            yield _build(route, prefix, domain, methods, handler_ref_for((route.endpoint, verb)))
        return

    methods = tuple(sorted(route.methods or ()))
    if not methods:
        return
    try:
        handler = handler_ref_for(route.endpoint)
    except TypeError:
        logger.debug("Unsupported endpoint on %s", route.path, exc_info=True)
        return
    yield _build(route, prefix, domain, methods, handler)


def _endpoint_verbs(endpoint: type, allowed: Optional[set[str]]) -> list[tuple[tuple[str, ...], str]]:
    # HTTPEndpoint dispatches on the request method; HEAD falls back to get()
    defined = [verb for verb in _ENDPOINT_VERBS if callable(getattr(endpoint, verb.lower(), None))]
    if allowed:
        defined = [verb for verb in defined if verb in allowed]
    out = []
    for verb in defined:
        methods: tuple[str, ...] = (verb,)
        if verb == "GET" and "HEAD" not in defined and (not allowed or "HEAD" in allowed):
            methods = ("GET", "HEAD")
        out.append((methods, verb.lower()))
    return out


def _build(
    route: StarletteRoute,
    prefix: str,
    domain: Optional[str],
    methods: tuple[str, ...],
    handler: HandlerRef,
) -> Route:
    uri = normalize_uri(prefix + route.path)
    wheres = {
        name: convertor.regex
        for name, convertor in route.param_convertors.items()
        if convertor.regex not in _UNCONSTRAINED
    }

    return Route(
        uri=uri,
        methods=methods,
        handler=handler,
        name=route.name,
        domain=domain,
        middleware=tuple(_dependency_names(route)),
        parameters=uri_parameters(uri),
        wheres=MappingProxyType(wheres),
    )


def _dependency_names(route: StarletteRoute) -> list[str]:
    # FastAPI route-level dependencies play the role of middleware
    names = []
    for dep in getattr(route, "dependencies", None) or ():
        call = getattr(dep, "dependency", None)
        if call is None:
            continue
        names.append(getattr(call, "__name__", None) or type(call).__name__)
    return names
