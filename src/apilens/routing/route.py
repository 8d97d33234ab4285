from __future__ import annotations

import inspect
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Literal, Mapping, Optional

from apilens.reflection.types import class_path

_PARAM = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\??(?::[^}]*)?\}")


@dataclass(frozen=True)
class HandlerRef:
    kind: Literal["controller", "closure"]
    descriptor: str
    class_name: Optional[str] = None
    method: Optional[str] = None

    @property
    def is_controller(self) -> bool:
        return self.kind == "controller" and bool(self.class_name) and bool(self.method)


@dataclass(frozen=True)
class Route:
    """Immutable snapshot of one registry entry."""

    uri: str
    methods: tuple[str, ...]
    handler: HandlerRef
    name: Optional[str] = None
    domain: Optional[str] = None
    middleware: tuple[str, ...] = ()
    parameters: tuple[str, ...] = ()
    wheres: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}), hash=False)

    @property
    def is_api(self) -> bool:
        return (
            "api" in self.middleware
            or any(m.startswith("api:") for m in self.middleware)
            or self.uri.startswith("api/")
        )


def normalize_uri(uri: str) -> str:
    # "/api/users/" -> "api/users"; the root stays "/"
    uri = (uri or "").strip()
    stripped = uri.strip("/")
    return stripped or "/"


def uri_parameters(uri: str) -> tuple[str, ...]:
    return tuple(_PARAM.findall(uri))


def handler_ref_for(action: Any) -> HandlerRef:
    """
    Resolve a route action into a HandlerRef.

      "app.http.UserController@store"   -> controller
      (UserController, "store")         -> controller
      UserController().store            -> controller (bound method)
      UserController.store              -> controller (function owned by a class)
      UserController                    -> controller (__call__)
      any other callable                -> closure
    """
    if isinstance(action, str):
        return _from_action_string(action)

    if isinstance(action, tuple) and len(action) == 2:
        owner, method = action
        owner_name = owner if isinstance(owner, str) else class_path(owner)
        return _controller(owner_name, str(method))

    if isinstance(action, type):
        return _controller(class_path(action), "__call__")

    if inspect.ismethod(action):
        owner = action.__self__
        klass = owner if isinstance(owner, type) else type(owner)
        return _controller(class_path(klass), action.__func__.__name__)

    if inspect.isfunction(action):
        qualname = action.__qualname__
        if "." in qualname and "<locals>" not in qualname:
            owner_qualname, method = qualname.rsplit(".", 1)
            return _controller(f"{action.__module__}.{owner_qualname}", method)
        return HandlerRef(kind="closure", descriptor=f"{action.__module__}.{qualname}")

    if callable(action):
        return HandlerRef(kind="closure", descriptor=_callable_descriptor(action))

    raise TypeError(f"Unsupported route action: {action!r}")


def _from_action_string(action: str) -> HandlerRef:
    if "@" not in action:
        return _controller(action, "__call__")
    class_name, _, method = action.partition("@")
    if not class_name or not method:
        return HandlerRef(kind="closure", descriptor=action)
    return _controller(class_name, method)


def _controller(class_name: str, method: str) -> HandlerRef:
    return HandlerRef(
        kind="controller",
        descriptor=f"{class_name}@{method}",
        class_name=class_name,
        method=method,
    )


def _callable_descriptor(obj: Any) -> str:
    qualname = getattr(obj, "__qualname__", None)
    module = getattr(obj, "__module__", None)
    if qualname and module:
        return f"{module}.{qualname}"
    return "Closure"


class RouteRegistry:
    """
    Read-only handle over registered routes, passed explicitly to the index.
    """

    def __init__(self, routes: Iterable[Route] = ()) -> None:
        self._routes: list[Route] = list(routes)

    def add(
        self,
        methods: Iterable[str] | str,
        uri: str,
        action: Any,
        *,
        name: Optional[str] = None,
        domain: Optional[str] = None,
        middleware: Iterable[str] = (),
        wheres: Optional[Mapping[str, str]] = None,
    ) -> Route:
        if isinstance(methods, str):
            methods = [methods]
        verbs = tuple(dict.fromkeys(m.strip().upper() for m in methods if m and m.strip()))
        if not verbs:
            raise ValueError(f"Route '{uri}' needs at least one HTTP method")

        normalized = normalize_uri(uri)
        route = Route(
            uri=normalized,
            methods=verbs,
            handler=handler_ref_for(action),
            name=name,
            domain=domain,
            middleware=tuple(middleware),
            parameters=uri_parameters(normalized),
            wheres=MappingProxyType(dict(wheres or {})),
        )
        self._routes.append(route)
        return route

    def get(self, uri: str, action: Any, **kwargs: Any) -> Route:
        return self.add(("GET", "HEAD"), uri, action, **kwargs)

    def post(self, uri: str, action: Any, **kwargs: Any) -> Route:
        return self.add("POST", uri, action, **kwargs)

    def put(self, uri: str, action: Any, **kwargs: Any) -> Route:
        return self.add("PUT", uri, action, **kwargs)

    def patch(self, uri: str, action: Any, **kwargs: Any) -> Route:
        return self.add("PATCH", uri, action, **kwargs)

    def delete(self, uri: str, action: Any, **kwargs: Any) -> Route:
        return self.add("DELETE", uri, action, **kwargs)

    def options(self, uri: str, action: Any, **kwargs: Any) -> Route:
        return self.add("OPTIONS", uri, action, **kwargs)

    def any(self, uri: str, action: Any, **kwargs: Any) -> Route:
        return self.add(("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"), uri, action, **kwargs)

    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def get_by_name(self, name: str) -> Optional[Route]:
        for route in self._routes:
            if route.name == name:
                return route
        return None

    def __iter__(self) -> Iterator[Route]:
        return iter(tuple(self._routes))

    def __len__(self) -> int:
        return len(self._routes)
