import base64

import pytest

from apilens.domain import models
from apilens.domain.models import HTTP_METHODS
from apilens.errors import ValidationError
from apilens.server.tools import ToolResponse, require

TOOL_NAMES = [
    "list_api_routes",
    "get_route",
    "get_route_details",
    "get_request_rules",
    "get_response_schema",
    "analyze_endpoint",
    "get_controller_methods",
]


def test_server_lists_every_tool_with_a_schema(server):
    tools = server.list_tools()
    assert [t["name"] for t in tools] == TOOL_NAMES
    by_name = {t["name"]: t for t in tools}
    assert by_name["get_route"]["input_schema"]["required"] == ["uri", "method"]
    assert by_name["list_api_routes"]["input_schema"]["required"] == []
    assert "GET" in by_name["analyze_endpoint"]["input_schema"]["properties"]["method"]["enum"]
    assert by_name["get_request_rules"]["meta"] == {"category": "validation"}


def test_method_enums_share_one_verb_list(server):
    enums = [
        t["input_schema"]["properties"]["method"]["enum"]
        for t in server.list_tools()
        if "method" in t["input_schema"].get("properties", {})
    ]
    assert enums and all(e == list(HTTP_METHODS) for e in enums)
    assert not hasattr(models, "HttpMethod")


def test_unknown_tool(server):
    response = server.call_tool("nope", {})
    assert response.is_error
    assert response.error == "Unknown tool 'nope'."


def test_require_rejects_missing_and_blank_values():
    assert require({"uri": " api/users "}, "uri") == "api/users"
    with pytest.raises(ValidationError, match="Request class is required."):
        require({"request_class": "   "}, "request_class")
    with pytest.raises(ValidationError, match="Method is required."):
        require({}, "method")


def test_list_api_routes_echoes_only_active_filters(server):
    response = server.call_tool("list_api_routes", {"path": "api/users*", "method": "", "domain": None})
    assert not response.is_error
    assert response.content["count"] == 4
    assert response.content["filters"] == {"path": "api/users*"}
    assert [r["uri"] for r in response.content["routes"]][-1] == "api/users/{user}"


def test_list_api_routes_without_arguments(server, registry):
    response = server.call_tool("list_api_routes")
    assert response.content["count"] == len(registry)
    assert response.content["filters"] == {}


def test_get_route_uppercases_method(server):
    response = server.call_tool("get_route", {"uri": "api/users", "method": "post"})
    assert not response.is_error
    assert response.content["action"]["method"] == "store"


def test_get_route_validation_and_miss(server):
    missing_method = server.call_tool("get_route", {"uri": "api/users"})
    assert missing_method.is_error
    assert missing_method.error == "Method is required."

    blank_uri = server.call_tool("get_route", {"uri": "  ", "method": "GET"})
    assert blank_uri.error == "Uri is required."

    miss = server.call_tool("get_route", {"uri": "missing/path", "method": "get"})
    assert miss.is_error
    assert miss.error == "No route found for URI 'missing/path' with method 'GET'."


def test_get_route_details(server):
    response = server.call_tool("get_route_details", {"uri": "api/users", "method": "POST"})
    assert response.content["request_class"] == "~sample_app.StoreUserRequest"
    assert response.content["resource_class"] == "~sample_app.UserResource"
    assert response.content["controller"]["method"] == "store"

    closure = server.call_tool("get_route_details", {"uri": "health", "method": "GET"})
    assert "controller" not in closure.content
    assert closure.content["route"]["controller"] == {"type": "closure"}

    broken = server.call_tool("get_route_details", {"uri": "api/orders", "method": "GET"})
    assert broken.is_error
    assert "does not exist" in broken.error


@pytest.mark.parametrize(
    "identifier",
    [
        "sample_app.StoreUserRequest",
        "sample_app/StoreUserRequest",
        base64.b64encode(b"sample_app.StoreUserRequest").decode(),
    ],
)
def test_get_request_rules(server, identifier):
    response = server.call_tool("get_request_rules", {"request_class": identifier})
    assert not response.is_error
    content = response.content
    assert content["class_name"] == "sample_app.StoreUserRequest"
    assert content["rules"]["name"][2] == {"name": "max", "parameters": ["255"]}
    assert content["authorization"] == {"has_authorize": True, "authorized": True, "type": "boolean"}


def test_get_request_rules_errors(server):
    assert server.call_tool("get_request_rules", {}).error == "Request class is required."
    missing = server.call_tool("get_request_rules", {"request_class": "sample_app.Missing"})
    assert missing.error == "Request class 'sample_app.Missing' does not exist."


def test_get_response_schema(server):
    response = server.call_tool(
        "get_response_schema", {"controller_class": "sample_app.UserController", "method": "store"}
    )
    assert response.content["controller"] == "sample_app.UserController"
    assert response.content["method"] == "store"
    assert response.content["response"]["return_type"] == "~sample_app.UserResource"
    assert response.content["response"]["kind"] == "json_resource"


def test_get_response_schema_checks_existence(server):
    missing_class = server.call_tool("get_response_schema", {"controller_class": "sample_app.Nope", "method": "x"})
    assert missing_class.error == "Controller class 'sample_app.Nope' does not exist."

    missing_method = server.call_tool(
        "get_response_schema", {"controller_class": "sample_app.UserController", "method": "nope"}
    )
    assert missing_method.error == "Method 'nope' does not exist in controller 'sample_app.UserController'."

    assert server.call_tool("get_response_schema", {"method": "store"}).error == "Controller class is required."


def test_analyze_endpoint(server):
    response = server.call_tool("analyze_endpoint", {"uri": "api/users", "method": "post"})
    content = response.content
    assert content["endpoint"] == {"uri": "api/users", "method": "POST", "name": "api.users.store"}
    assert content["request"]["class_name"] == "sample_app.StoreUserRequest"
    assert content["example"]["request_body"] == {"name": "string", "email": "email"}
    assert content["errors"] == {}


def test_analyze_endpoint_miss(server):
    response = server.call_tool("analyze_endpoint", {"uri": "missing/path", "method": "GET"})
    assert response.is_error
    assert response.error == "No route found for URI 'missing/path' with method 'GET'."


def test_get_controller_methods(server):
    response = server.call_tool("get_controller_methods", {"controller_class": "sample_app.UserController"})
    names = [m["name"] for m in response.content["methods"]]
    assert names[:2] == ["index", "store"]
    assert "_helper" not in names

    missing = server.call_tool("get_controller_methods", {"controller_class": "sample_app.Nope"})
    assert missing.error == "Controller class 'sample_app.Nope' does not exist."


def test_tool_response_envelopes():
    assert ToolResponse.structured({"a": None}).content == {"a": None}
    failure = ToolResponse.failure("nope")
    assert failure.is_error and failure.content is None
