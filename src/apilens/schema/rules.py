from __future__ import annotations

import types
from typing import Any, Mapping

from apilens.contracts import Rule, ValidationRule
from apilens.domain.models import NormalizedRule
from apilens.reflection.types import class_path


def normalize_rules(raw: Any) -> dict[str, list[NormalizedRule]]:
    """
    Normalize declared validation rules into {field: [NormalizedRule, ...]}.

    Per field, accepts:
      "required|max:255"                  (pipe-joined string)
      ["required", "in:a,b", UniqueRule()] (mixed sequence)
      UniqueRule()                         (single rule object)

    Rule objects are recorded by type, never executed.
    """
    if not isinstance(raw, Mapping):
        return {}
    return {str(field): parse_field_rules(value) for field, value in raw.items()}


def parse_field_rules(value: Any) -> list[NormalizedRule]:
    if isinstance(value, str):
        return parse_rule_string(value)
    if isinstance(value, (list, tuple)):
        return [parse_rule(entry) for entry in value]
    if _is_rule_object(value):
        return [parse_rule(value)]
    return []


def parse_rule_string(rules: str) -> list[NormalizedRule]:
    if not rules:
        return []
    return [parse_single_rule(token) for token in rules.split("|")]


def parse_rule(rule: Any) -> NormalizedRule:
    if isinstance(rule, str):
        return parse_single_rule(rule)
    if isinstance(rule, Rule):
        return NormalizedRule(name="object", parameters=[_type_name(rule)])
    if isinstance(rule, ValidationRule) or callable(rule):
        return NormalizedRule(name="validation_rule", parameters=[_type_name(rule)])
    return NormalizedRule(name="unknown", parameters=[repr(rule)])


def parse_single_rule(rule: str) -> NormalizedRule:
    # only the first ":" separates name from parameters
    if ":" not in rule:
        return NormalizedRule(name=rule, parameters=[])
    name, params = rule.split(":", 1)
    return NormalizedRule(name=name, parameters=params.split(","))


def _is_rule_object(value: Any) -> bool:
    return isinstance(value, (Rule, ValidationRule)) or callable(value)


def _type_name(rule: Any) -> str:
    # functions and classes are recorded by their own path, instances by their class
    if isinstance(rule, (type, types.FunctionType, types.BuiltinFunctionType, types.MethodType)):
        return f"{rule.__module__}.{rule.__qualname__}"
    return class_path(type(rule))
