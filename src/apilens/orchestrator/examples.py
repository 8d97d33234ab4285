from __future__ import annotations

from datetime import date
from typing import Any, Callable, Optional

from apilens.domain.models import ExampleContract, NormalizedRule
from apilens.reflection import helper
from apilens.schema.request import RequestInspector

# Checked in order; the first category whose keyword occurs in the field name wins.
_NAME_HEURISTICS: tuple[tuple[tuple[str, ...], Any], ...] = (
    (("email",), "example@example.com"),
    (("url", "link", "website"), "https://example.com"),
    (("password", "secret"), "password123"),
    (("phone",), "+1234567890"),
    (("id",), 1),
    (("price", "amount", "total"), 99.99),
    (("count", "quantity", "number"), 1),
    (("active", "enabled", "verified"), True),
    (("date", "time"), None),  # today's date, filled at call time
    (("name",), "Example Name"),
    (("title", "subject"), "Example Title"),
    (("description", "content", "body"), "Example description text"),
    (("address", "city", "country"), "Example Value"),
)


class ExampleGenerator:
    def __init__(
        self,
        request_inspector: RequestInspector,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.request_inspector = request_inspector
        self.today = today

    def generate(
        self,
        uri: str,
        method: str,
        controller_class: str,
        controller_method: str,
        request_class: Optional[str],
    ) -> ExampleContract:
        example = ExampleContract(http_method=method, uri=uri)

        if request_class:
            rules = self.request_inspector.extract_rules(request_class)
            example.request_body = self.request_body(rules)

        return_type = helper.method_return_type(controller_class, controller_method)
        if return_type:
            example.expected_response_type = return_type

        return example

    def request_body(self, rules: dict[str, list[NormalizedRule]]) -> dict[str, Any]:
        return {
            field: self.guess_value(field, field_rules)
            for field, field_rules in rules.items()
            if _is_required(field_rules)
        }

    def guess_value(self, field: str, rules: list[NormalizedRule]) -> Any:
        # The first non-"required" rule name doubles as the placeholder value.
        for rule in rules:
            if rule.name != "required":
                return rule.name
        return self.default_value(field)

    def default_value(self, field: str) -> Any:
        lowered = field.lower()
        for keywords, value in _NAME_HEURISTICS:
            if any(k in lowered for k in keywords):
                if value is None:
                    return self.today().isoformat()
                return value
        return "value"


def _is_required(rules: list[NormalizedRule]) -> bool:
    return any(r.name == "required" for r in rules)
