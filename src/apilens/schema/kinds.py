from __future__ import annotations

import logging
from typing import Callable, Iterable, Literal, Mapping, Optional

from apilens.config import DEFAULT_MODEL_BASES, DEFAULT_REQUEST_BASES, DEFAULT_RESOURCE_BASES
from apilens.reflection.types import load_class

logger = logging.getLogger(__name__)

Family = Literal["request", "resource", "model"]

# is_kind_of(type_name, family) -> bool
KindPredicate = Callable[[Optional[str], str], bool]


class KindRegistry:
    """
    Explicit registry of known base classes per family.

    A type belongs to a family when it is a loadable class deriving from one
    of the family's bases (the base itself does not count).
    """

    def __init__(self, families: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        if families is None:
            families = {
                "request": DEFAULT_REQUEST_BASES,
                "resource": DEFAULT_RESOURCE_BASES,
                "model": DEFAULT_MODEL_BASES,
            }
        self._families = {name: tuple(bases) for name, bases in families.items()}

    @classmethod
    def from_settings(cls, settings) -> "KindRegistry":
        return cls(
            {
                "request": settings.request_bases,
                "resource": settings.resource_bases,
                "model": settings.model_bases,
            }
        )

    def bases(self, family: str) -> tuple[type, ...]:
        loaded = []
        for path in self._families.get(family, ()):
            base = load_class(path)
            if base is None:
                logger.warning("Base class %s for family %r is not loadable", path, family)
                continue
            loaded.append(base)
        return tuple(loaded)

    def is_kind_of(self, type_name: Optional[str], family: str) -> bool:
        if not type_name:
            return False
        cls = load_class(type_name)
        if cls is None:
            return False
        for base in self.bases(family):
            if cls is not base and issubclass(cls, base):
                return True
        return False

    __call__ = is_kind_of
