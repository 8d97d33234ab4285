import pytest

import sample_app
from apilens.config import Settings
from apilens.errors import ValidationError
from apilens.routing.route import RouteRegistry
from apilens.server.app import LensServer, build_components, load_registry


def test_load_registry_instance_and_factory():
    assert load_registry("sample_app:registry") is sample_app.registry
    built = load_registry("sample_app:build_registry")
    assert isinstance(built, RouteRegistry)
    assert len(built) == len(sample_app.registry)


def test_load_registry_from_fastapi_app():
    registry = load_registry("fastapi_sample:app")
    assert any(r.uri == "api/items/{item_id}" for r in registry)


@pytest.mark.parametrize(
    "target, message",
    [
        ("sample_app", "module:attr"),
        ("nowhere_at_all:app", "Cannot import module"),
        ("sample_app:nope", "has no attribute"),
        ("sample_app:DEFAULT_LIMIT", "neither a RouteRegistry"),
    ],
)
def test_load_registry_rejects_bad_targets(target, message):
    with pytest.raises(ValidationError, match=message):
        load_registry(target)


def test_components_follow_settings(registry):
    settings = Settings(vendor_namespaces=["sample_app."], framework_prefixes=["apilens", "enum"])
    components = build_components(registry, settings)
    assert components.index.vendor_namespaces == ("sample_app.",)
    assert components.controller_inspector.uses("sample_app.UserController") == ["os", "typing.Optional"]


def test_server_metadata(server):
    assert server.name == "apilens API Discovery"
    assert server.version
    assert "discovering API routes" in server.instructions
    assert isinstance(LensServer(RouteRegistry()).list_tools(), list)
