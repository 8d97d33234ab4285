from __future__ import annotations

import inspect
import logging
from typing import Iterable, Optional

from apilens.config import DEFAULT_FRAMEWORK_PREFIXES
from apilens.domain.models import (
    ControllerMethods,
    HandlerSignature,
    MethodParameter,
    MethodSummary,
)
from apilens.errors import NotFoundError
from apilens.reflection import helper
from apilens.reflection.types import load_class
from apilens.schema.kinds import KindPredicate, KindRegistry

logger = logging.getLogger(__name__)


class ControllerInspector:
    """
    Reflects on a controller class + method.

    Family checks (request/resource/model) go through is_kind_of so the
    inspector does not hard-code any framework's class hierarchy.
    """

    def __init__(
        self,
        is_kind_of: Optional[KindPredicate] = None,
        framework_prefixes: Iterable[str] = DEFAULT_FRAMEWORK_PREFIXES,
    ) -> None:
        self.is_kind_of = is_kind_of or KindRegistry()
        self.framework_prefixes = tuple(framework_prefixes)

    def inspect(self, controller_class: str, method: str) -> HandlerSignature:
        cls = load_class(controller_class)
        if cls is None:
            raise NotFoundError(f"Controller class '{controller_class}' does not exist.")
        if not helper.method_exists(cls, method):
            raise NotFoundError(f"Method '{method}' does not exist in controller '{controller_class}'.")

        start_line, end_line = helper.method_lines(cls, method)
        return HandlerSignature(
            class_name=controller_class,
            method=method,
            file_path=helper.class_file_name(cls),
            start_line=start_line,
            end_line=end_line,
            return_type=helper.method_return_type(cls, method),
            parameters=helper.method_parameters(cls, method),
            uses=self.uses(cls),
        )

    def uses(self, controller_class) -> list[str]:
        try:
            return helper.class_uses(controller_class, exclude_prefixes=self.framework_prefixes)
        except Exception:
            logger.debug("Import extraction failed for %s", controller_class, exc_info=True)
            return []

    # -- classification over a resolved signature ---------------------------

    def request_class_of(self, signature: HandlerSignature) -> Optional[str]:
        for param in signature.parameters:
            if param.type and self.is_kind_of(param.type, "request"):
                return param.type
        return None

    def resource_class_of(self, signature: HandlerSignature) -> Optional[str]:
        if signature.return_type and self.is_kind_of(signature.return_type, "resource"):
            return signature.return_type
        return None

    def model_class_of(self, signature: HandlerSignature) -> Optional[str]:
        for param in signature.parameters:
            if param.type and self.is_kind_of(param.type, "model"):
                return param.type
        return None

    # -- lookups by class + method ------------------------------------------

    def get_request_class(self, controller_class: str, method: str) -> Optional[str]:
        return self.request_class_of(self._bare_signature(controller_class, method))

    def get_resource_class(self, controller_class: str, method: str) -> Optional[str]:
        return self.resource_class_of(self._bare_signature(controller_class, method))

    def get_model_class(self, controller_class: str, method: str) -> Optional[str]:
        return self.model_class_of(self._bare_signature(controller_class, method))

    def _bare_signature(self, controller_class: str, method: str) -> HandlerSignature:
        # no existence checks: missing classes simply yield no parameters
        return HandlerSignature(
            class_name=controller_class,
            method=method,
            return_type=helper.method_return_type(controller_class, method),
            parameters=helper.method_parameters(controller_class, method),
        )

    def list_methods(self, controller_class: str) -> ControllerMethods:
        cls = load_class(controller_class)
        if cls is None:
            raise NotFoundError(f"Controller class '{controller_class}' does not exist.")

        methods: list[MethodSummary] = []
        for name, _ in inspect.getmembers(cls, callable):
            if name.startswith("_") or isinstance(inspect.getattr_static(cls, name), type):
                continue
            params = helper.method_parameters(cls, name)
            methods.append(
                MethodSummary(
                    name=name,
                    return_type=helper.method_return_type(cls, name),
                    parameters=[
                        MethodParameter(
                            name=p.name,
                            type=p.type,
                            optional=p.is_variadic or _has_default(cls, name, p.name),
                        )
                        for p in params
                    ],
                    start_line=helper.method_start_line(cls, name),
                )
            )

        methods.sort(key=lambda m: (m.start_line is None, m.start_line or 0, m.name))
        return ControllerMethods(
            controller=controller_class,
            file_path=helper.class_file_name(cls),
            methods=methods,
        )


def _has_default(cls: type, method: str, param: str) -> bool:
    func = helper.get_method(cls, method)
    if func is None:
        return False
    try:
        p = inspect.signature(func).parameters.get(param)
    except (TypeError, ValueError):
        return False
    return p is not None and p.default is not inspect.Parameter.empty
