"""
Base classes a host application builds on.

The inspectors never rely on these directly: ancestry checks go through
apilens.schema.kinds, whose default families point here.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Optional


class FormRequest:
    """
    Input-validation object.

    Subclasses declare rules() and may declare messages(), attributes()
    and authorize(). The constructor expects a live request; inspection
    never calls it.
    """

    def __init__(self, request: Any, data: Optional[Mapping[str, Any]] = None) -> None:
        if request is None:
            raise RuntimeError(f"{type(self).__name__} requires an active request")
        self.request = request
        self.data = dict(data or {})

    def validated(self) -> dict[str, Any]:
        return dict(self.data)


class JsonResource:
    """Output-shaping object wrapping a single value."""

    def __init__(self, resource: Any) -> None:
        self.resource = resource

    def to_dict(self, request: Any = None) -> dict[str, Any]:
        if isinstance(self.resource, Mapping):
            return dict(self.resource)
        return dict(getattr(self.resource, "__dict__", {}))


class ResourceCollection(JsonResource):
    def to_dict(self, request: Any = None) -> dict[str, Any]:  # type: ignore[override]
        return {"data": [JsonResource(item).to_dict(request) for item in self.resource]}


class Model:
    """Persisted entity."""

    table: str = ""

    def __init__(self, **attributes: Any) -> None:
        self.attributes = attributes


class Rule:
    """Opaque rule object (normalized as "object")."""

    def passes(self, attribute: str, value: Any) -> bool:
        raise NotImplementedError

    def message(self) -> str:
        return "The :attribute is invalid."


class ValidationRule:
    """Opaque rule object (normalized as "validation_rule")."""

    def validate(self, attribute: str, value: Any, fail: Callable[[str], None]) -> None:
        raise NotImplementedError
