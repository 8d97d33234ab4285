from __future__ import annotations

import builtins
import importlib
import inspect
import logging
import types
import typing
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Prefix marking a user-defined class descriptor ("~app.requests.StoreUserRequest").
CLASS_MARKER = "~"

_UNION_ORIGINS = {typing.Union, types.UnionType}


def describe_type(annotation: Any) -> Optional[str]:
    """
    Normalize an annotation into a descriptor string.

      int | None            -> "int|None"
      StoreUserRequest      -> "~app.requests.StoreUserRequest"
      list[User]            -> "list[~app.models.User]"

    Missing or unresolvable annotations yield None.
    """
    try:
        return _describe(annotation)
    except Exception:  # pragma: no cover - typing internals vary across versions
        logger.debug("Could not describe annotation %r", annotation, exc_info=True)
        return None


def _describe(tp: Any) -> Optional[str]:
    if tp is inspect.Parameter.empty or tp is inspect.Signature.empty:
        return None
    if tp is None or tp is type(None):
        return "None"
    if isinstance(tp, (str, typing.ForwardRef)):
        return None
    if isinstance(tp, typing.TypeVar):
        return tp.__name__
    # a class on 3.11+, a special form before
    if tp is typing.Any:
        return "Any"

    origin = typing.get_origin(tp)
    if origin in _UNION_ORIGINS:
        parts = [_describe(arg) for arg in typing.get_args(tp)]
        if any(p is None for p in parts):
            return None
        return "|".join(parts)  # type: ignore[arg-type]

    if origin is typing.Annotated:
        return _describe(typing.get_args(tp)[0])

    if origin is not None and isinstance(origin, type):
        args = typing.get_args(tp)
        head = _describe(origin)
        if not args or head is None:
            return head
        inner = [_describe(a) if a is not Ellipsis else "..." for a in args]
        if any(p is None for p in inner):
            return head
        return f"{head}[{', '.join(inner)}]"  # type: ignore[arg-type]

    if isinstance(tp, type):
        if tp.__module__ == "builtins":
            return tp.__name__
        return CLASS_MARKER + class_path(tp)

    # typing special forms: Any, Literal[...], Callable[...]
    text = repr(tp)
    return text.replace("typing.", "") if text.startswith("typing.") else None


def class_path(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def strip_marker(descriptor: str) -> str:
    return descriptor[len(CLASS_MARKER):] if descriptor.startswith(CLASS_MARKER) else descriptor


def load_class(path: Optional[str]) -> Optional[type]:
    """
    Resolve a dotted class path ("pkg.mod.Outer.Inner") to a class.

    Imports the longest importable module prefix, then walks attributes.
    Returns None instead of raising.
    """
    if not path:
        return None
    path = strip_marker(path.strip())
    if not path or "|" in path:
        return None
    if "." not in path:
        obj = getattr(builtins, path, None)
        return obj if isinstance(obj, type) else None

    parts = path.split(".")
    for cut in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:cut])
        try:
            obj: Any = importlib.import_module(module_name)
        except Exception:
            continue
        try:
            for attr in parts[cut:]:
                obj = getattr(obj, attr)
        except AttributeError:
            continue
        return obj if isinstance(obj, type) else None

    logger.debug("Class %s is not loadable", path)
    return None


def resolve_class(cls_or_name: Any) -> Optional[type]:
    if isinstance(cls_or_name, type):
        return cls_or_name
    if isinstance(cls_or_name, str):
        return load_class(cls_or_name)
    return None
