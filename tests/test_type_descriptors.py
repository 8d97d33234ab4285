import inspect
from typing import Annotated, Any, Optional, TypeVar, Union

import sample_app
from apilens.reflection import helper
from apilens.reflection.types import describe_type, load_class, resolve_class, strip_marker


class Lookup:
    def find(self, user: "sample_app.User", owner: "Nowhere", limit: int = 10) -> "Nowhere":  # noqa: F821
        return None

    def by_email(self, email: str = None) -> None:
        return None


def _def_line(name):
    with open(sample_app.__file__, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if line.strip().startswith(f"def {name}("):
                return lineno
    raise AssertionError(name)


def test_describe_builtins_and_none():
    assert describe_type(int) == "int"
    assert describe_type(str) == "str"
    assert describe_type(None) == "None"
    assert describe_type(type(None)) == "None"


def test_describe_user_classes_carry_marker():
    assert describe_type(sample_app.User) == "~sample_app.User"
    assert strip_marker(describe_type(sample_app.User)) == "sample_app.User"


def test_describe_unions_in_declaration_order():
    assert describe_type(Optional[int]) == "int|None"
    assert describe_type(Union[str, int]) == "str|int"
    assert describe_type(int | sample_app.User) == "int|~sample_app.User"


def test_describe_generics_and_special_forms():
    assert describe_type(list[sample_app.User]) == "list[~sample_app.User]"
    assert describe_type(dict[str, int]) == "dict[str, int]"
    assert describe_type(Annotated[int, "meta"]) == "int"
    assert describe_type(Any) == "Any"
    assert describe_type(TypeVar("T")) == "T"


def test_describe_unresolvable_yields_none():
    assert describe_type(inspect.Parameter.empty) is None
    assert describe_type("MissingType") is None
    assert describe_type(Union[int, "Missing"]) is None


def test_load_class_variants():
    assert load_class("sample_app.UserController") is sample_app.UserController
    assert load_class("~sample_app.User") is sample_app.User
    assert load_class("dict") is dict
    assert load_class("sample_app.Nope") is None
    assert load_class("sample_app.DEFAULT_LIMIT") is None
    assert load_class("int|None") is None
    assert load_class("") is None
    assert resolve_class(sample_app.User) is sample_app.User
    assert resolve_class(42) is None


def test_method_parameters_reports_referenced_defaults():
    params = helper.method_parameters(sample_app.UserController, "index")
    assert [p.name for p in params] == ["limit", "status", "tags"]

    limit, status, tags = params
    assert limit.type == "int"
    assert limit.default_value == "DEFAULT_LIMIT"
    assert limit.allows_null is False

    assert status.type == "~sample_app.Status"
    assert status.default_value == "Status.ACTIVE"

    assert tags.type == "str"
    assert tags.is_variadic is True
    assert tags.default_value is None


def test_method_parameters_nullability():
    user, include = helper.method_parameters("sample_app.UserController", "show")
    assert user.type == "~sample_app.User"
    assert user.allows_null is False
    assert include.type == "str|None"
    assert include.allows_null is True
    assert include.default_value is None

    params = helper.method_parameters(sample_app.UserController, "update")
    options = params[-1]
    assert options.name == "options"
    assert options.type is None
    assert options.allows_null is True
    assert options.is_variadic is True


def test_method_parameters_skip_self_but_not_static_args():
    assert helper.method_parameters(sample_app.UserController, "ping") == []
    assert [p.name for p in helper.method_parameters(sample_app.UserController, "store")] == ["request"]
    assert helper.method_parameters(sample_app.UserController, "missing") == []


def test_method_return_types():
    assert helper.method_return_type(sample_app.UserController, "store") == "~sample_app.UserResource"
    assert helper.method_return_type(sample_app.UserController, "destroy") == "None"
    assert helper.method_return_type(sample_app.UserController, "ping") == "str"
    assert helper.method_return_type(sample_app.UserController, "search") is None
    # unresolvable forward reference
    assert helper.method_return_type(sample_app.UserController, "broken") is None


def test_string_annotations_still_resolve_parameters():
    params = helper.method_parameters(sample_app.UserController, "search")
    assert [(p.name, p.type) for p in params] == [("request", "~sample_app.OpenRequest"), ("page", "int")]

    params = helper.method_parameters(sample_app.UserController, "broken")
    assert params[0].type == "~sample_app.BrokenRulesRequest"


def test_unresolvable_annotation_does_not_hide_the_others():
    params = helper.method_parameters(Lookup, "find")
    assert [(p.name, p.type) for p in params] == [
        ("user", "~sample_app.User"),
        ("owner", None),
        ("limit", "int"),
    ]
    assert params[1].allows_null
    assert helper.method_return_type(Lookup, "find") is None


def test_none_default_keeps_the_declared_type():
    (email,) = helper.method_parameters(Lookup, "by_email")
    assert email.type == "str"
    assert email.allows_null
    assert email.default_value is None


def test_method_lines_and_file_name():
    start, end = helper.method_lines(sample_app.UserController, "store")
    assert start == _def_line("store")
    assert end == start + 1
    assert helper.method_lines(sample_app.UserController, "missing") == (None, None)

    path = helper.class_file_name("sample_app.UserController")
    assert path is not None and path.endswith("sample_app.py")
    assert helper.class_file_name("sample_app.Nope") is None


def test_class_uses_filters_framework_imports():
    uses = helper.class_uses(sample_app.UserController, exclude_prefixes=("apilens",))
    assert uses == ["os", "enum.Enum", "typing.Optional"]
