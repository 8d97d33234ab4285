import dataclasses

import pytest

import sample_app
from apilens.routing.route import (
    HandlerRef,
    Route,
    RouteRegistry,
    handler_ref_for,
    normalize_uri,
    uri_parameters,
)


def test_handler_ref_from_action_string():
    ref = handler_ref_for("app.http.UserController@store")
    assert ref == HandlerRef(
        kind="controller",
        descriptor="app.http.UserController@store",
        class_name="app.http.UserController",
        method="store",
    )
    assert handler_ref_for("app.http.InvokeController").method == "__call__"
    assert handler_ref_for("@store").kind == "closure"


def test_handler_ref_from_class_members():
    assert handler_ref_for((sample_app.UserController, "store")).descriptor == "sample_app.UserController@store"
    assert handler_ref_for(sample_app.UserController.show).descriptor == "sample_app.UserController@show"
    assert handler_ref_for(sample_app.UserController().update).descriptor == "sample_app.UserController@update"
    assert handler_ref_for(sample_app.InvokableController).descriptor == "sample_app.InvokableController@__call__"


def test_handler_ref_for_closures():
    ref = handler_ref_for(sample_app.health)
    assert ref.kind == "closure"
    assert ref.descriptor == "sample_app.health"
    assert not ref.is_controller

    def local():
        return None

    assert handler_ref_for(local).kind == "closure"
    assert handler_ref_for(lambda: None).kind == "closure"


def test_handler_ref_rejects_non_callables():
    with pytest.raises(TypeError):
        handler_ref_for(42)


def test_uri_normalization_and_parameters():
    assert normalize_uri("/api/users/") == "api/users"
    assert normalize_uri("/") == "/"
    assert normalize_uri("") == "/"
    assert uri_parameters("api/users/{user}/posts/{post?}") == ("user", "post")
    assert uri_parameters("items/{item_id:int}") == ("item_id",)
    assert uri_parameters("health") == ()


def test_get_registers_head_and_methods_are_deduplicated():
    registry = RouteRegistry()
    route = registry.get("/ping", sample_app.health)
    assert route.methods == ("GET", "HEAD")

    route = registry.add(["post", "POST", " put "], "things", sample_app.health)
    assert route.methods == ("POST", "PUT")
    assert len(registry) == 2


def test_empty_method_set_is_rejected():
    with pytest.raises(ValueError):
        RouteRegistry().add([], "nothing", sample_app.health)


def test_is_api_derivation():
    registry = RouteRegistry()
    assert registry.get("api/users", sample_app.health).is_api
    assert registry.get("users", sample_app.health, middleware=["api"]).is_api
    assert registry.get("users", sample_app.health, middleware=["api:throttle"]).is_api
    assert not registry.get("users", sample_app.health, middleware=["web", "apikey"]).is_api
    assert not registry.get("apis/users", sample_app.health).is_api


def test_routes_are_immutable_snapshots(registry):
    route = registry.routes()[2]
    with pytest.raises(dataclasses.FrozenInstanceError):
        route.uri = "changed"
    with pytest.raises(TypeError):
        route.wheres["user"] = "x"
    assert isinstance(route, Route)


def test_registry_order_and_lookup_by_name(registry):
    assert len(registry) == 12
    assert [r.uri for r in registry][:2] == ["api/users", "api/users"]
    assert registry.get_by_name("api.users.show").parameters == ("user",)
    assert registry.get_by_name("missing") is None
