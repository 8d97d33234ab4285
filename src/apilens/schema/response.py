from __future__ import annotations

from typing import Optional

from apilens.domain.models import OutputContract
from apilens.reflection import helper
from apilens.schema.kinds import KindPredicate, KindRegistry


class ResponseInspector:
    """Best-effort description of what a controller method returns. Never raises."""

    def __init__(self, is_kind_of: Optional[KindPredicate] = None) -> None:
        self.is_kind_of = is_kind_of or KindRegistry()

    def inspect(self, controller_class: str, method: str) -> OutputContract:
        return_type = helper.method_return_type(controller_class, method)
        start_line, end_line = helper.method_lines(controller_class, method)
        return OutputContract(
            controller=controller_class,
            method=method,
            return_type=return_type,
            kind=self.kind_of(return_type),
            file_path=helper.class_file_name(controller_class),
            start_line=start_line,
            end_line=end_line,
        )

    def kind_of(self, return_type: Optional[str]) -> Optional[str]:
        if not return_type:
            return None
        if self.is_kind_of(return_type, "resource"):
            return "json_resource"
        if self.is_kind_of(return_type, "model"):
            return "model"
        return None

    def method_location(self, controller_class: str, method: str) -> dict[str, Optional[object]]:
        start_line, end_line = helper.method_lines(controller_class, method)
        return {
            "file_path": helper.class_file_name(controller_class),
            "start_line": start_line,
            "end_line": end_line,
        }
