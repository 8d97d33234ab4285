from __future__ import annotations

import ast
import inspect
import logging
import sys
import textwrap
import types
import typing
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from apilens.domain.models import ParameterInfo
from apilens.reflection.types import describe_type, resolve_class

logger = logging.getLogger(__name__)

_LITERAL_TYPES = (str, int, float, bool, type(None))


def get_method(cls: Any, method: str) -> Optional[Callable[..., Any]]:
    """Return the unwrapped function behind cls.method, or None."""
    klass = resolve_class(cls)
    if klass is None or not method:
        return None
    try:
        raw = inspect.getattr_static(klass, method)
    except AttributeError:
        return None
    if isinstance(raw, (staticmethod, classmethod)):
        raw = raw.__func__
    if not callable(raw):
        return None
    try:
        return inspect.unwrap(raw)
    except ValueError:
        return raw


def method_exists(cls: Any, method: str) -> bool:
    return get_method(cls, method) is not None


def _is_bound_style(cls: type, method: str) -> bool:
    # plain functions and classmethods receive self/cls first
    try:
        raw = inspect.getattr_static(cls, method)
    except AttributeError:
        return False
    return not isinstance(raw, staticmethod)


def _type_hints(func: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(func, include_extras=True)
    except Exception:
        logger.debug("Resolving annotations of %r one by one", func, exc_info=True)

    # One unresolvable name must not hide the others.
    hints: dict[str, Any] = {}
    globalns = dict(getattr(sys.modules.get(func.__module__), "__dict__", {}))
    for name, ann in getattr(func, "__annotations__", {}).items():
        holder = types.SimpleNamespace(__annotations__={name: ann})
        try:
            hints[name] = typing.get_type_hints(holder, globalns=globalns, include_extras=True)[name]
        except Exception:
            logger.debug("Skipping unresolvable annotation %s=%r on %r", name, ann, func)
    return hints


def method_return_type(cls: Any, method: str) -> Optional[str]:
    func = get_method(cls, method)
    if func is None:
        return None
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    if sig.return_annotation is inspect.Signature.empty:
        return None
    hints = _type_hints(func)
    if "return" not in hints:
        return None
    return describe_type(hints["return"])


def _signature_params(cls: Any, method: str) -> tuple[Optional[Callable[..., Any]], list[inspect.Parameter]]:
    klass = resolve_class(cls)
    func = get_method(klass, method)
    if klass is None or func is None:
        return None, []
    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return func, []
    if params and _is_bound_style(klass, method) and params[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        params = params[1:]
    return func, params


def method_parameters(cls: Any, method: str) -> list[ParameterInfo]:
    """
    Parameters of cls.method in declaration order (self/cls excluded).

    Defaults written as a name or attribute reference are reported as
    that source text, not the value it evaluates to.
    """
    func, params = _signature_params(cls, method)
    if func is None:
        return []

    hints = _type_hints(func)
    referenced = _referenced_defaults(func)
    out: list[ParameterInfo] = []

    for p in params:
        annotation = hints.get(p.name, inspect.Parameter.empty)
        type_name = describe_type(annotation)
        has_default = p.default is not inspect.Parameter.empty
        variadic = p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)

        default_value: Any = None
        if has_default:
            default_value = referenced.get(p.name, _literal(p.default))

        out.append(
            ParameterInfo(
                name=p.name,
                type=type_name,
                allows_null=_allows_null(annotation, type_name, has_default and p.default is None),
                default_value=default_value,
                is_variadic=variadic,
            )
        )
    return out


def _allows_null(annotation: Any, type_name: Optional[str], defaults_to_none: bool) -> bool:
    if annotation is inspect.Parameter.empty or annotation is typing.Any:
        return True
    if defaults_to_none:
        return True
    return type_name is not None and "None" in type_name.split("|")


def _literal(value: Any) -> Any:
    if isinstance(value, _LITERAL_TYPES):
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(v, _LITERAL_TYPES) for v in value):
        return list(value)
    if isinstance(value, dict) and all(
        isinstance(k, str) and isinstance(v, _LITERAL_TYPES) for k, v in value.items()
    ):
        return dict(value)
    return repr(value)


def _referenced_defaults(func: Callable[..., Any]) -> dict[str, str]:
    """Map parameter name -> source text for defaults that reference a name."""
    node = _function_node(func)
    if node is None:
        return {}

    args = node.args
    positional = list(args.posonlyargs) + list(args.args)
    pairs: list[tuple[ast.arg, Optional[ast.expr]]] = []
    offset = len(positional) - len(args.defaults)
    for i, a in enumerate(positional):
        pairs.append((a, args.defaults[i - offset] if i >= offset else None))
    pairs.extend(zip(args.kwonlyargs, args.kw_defaults))

    out: dict[str, str] = {}
    for a, default in pairs:
        if isinstance(default, (ast.Name, ast.Attribute)):
            out[a.arg] = ast.unparse(default)
    return out


def _function_node(func: Callable[..., Any]) -> Optional[ast.AST]:
    try:
        source = textwrap.dedent(inspect.getsource(func))
        tree = ast.parse(source)
    except (OSError, TypeError, SyntaxError):
        return None
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == func.__name__:
            return node
    return None


def class_file_name(cls: Any) -> Optional[str]:
    klass = resolve_class(cls)
    if klass is None:
        return None
    try:
        path = inspect.getsourcefile(klass) or inspect.getfile(klass)
    except (TypeError, OSError):
        return None
    return str(Path(path).resolve()) if path else None


def method_lines(cls: Any, method: str) -> tuple[Optional[int], Optional[int]]:
    func = get_method(cls, method)
    if func is None:
        return None, None
    try:
        lines, start = inspect.getsourcelines(func)
    except (OSError, TypeError):
        return None, None
    return start, start + len(lines) - 1


def method_start_line(cls: Any, method: str) -> Optional[int]:
    return method_lines(cls, method)[0]


def class_uses(cls: Any, exclude_prefixes: Iterable[str] = ()) -> list[str]:
    """
    Top-level import declarations of the module defining cls.

      import os                 -> "os"
      from app.models import U  -> "app.models.U"
      from x import y as z      -> "x.y as z"

    Best-effort: any failure yields an empty list.
    """
    path = class_file_name(cls)
    if path is None:
        return []
    try:
        tree = ast.parse(Path(path).read_text(encoding="utf-8"), filename=path)
    except Exception:
        logger.debug("Could not parse %s for imports", path, exc_info=True)
        return []

    excluded = tuple(exclude_prefixes)
    uses: list[str] = []
    for node in tree.body:
        if isinstance(node, ast.Import):
            for alias in node.names:
                uses.append(_alias_text(alias.name, alias.asname))
        elif isinstance(node, ast.ImportFrom):
            module = "." * node.level + (node.module or "")
            for alias in node.names:
                sep = "" if module.endswith(".") else "."
                uses.append(_alias_text(f"{module}{sep}{alias.name}", alias.asname))

    return [u for u in uses if not _has_prefix(u, excluded)]


def _alias_text(name: str, asname: Optional[str]) -> str:
    return f"{name} as {asname}" if asname else name


def _has_prefix(name: str, prefixes: tuple[str, ...]) -> bool:
    return any(name == p or name.startswith(p + ".") for p in prefixes)
