import pytest

import sample_app
from apilens.config import Settings, get_settings
from apilens.routing.collection import RouteIndex
from apilens.server.app import LensServer


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # keep a developer's APILENS_* variables and .env out of the tests
    for key in ("APILENS_APP", "APILENS_LOG_LEVEL", "APILENS_VENDOR_NAMESPACES"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def registry():
    return sample_app.build_registry()


@pytest.fixture
def index(registry):
    return RouteIndex(registry)


@pytest.fixture
def server(registry):
    return LensServer(registry, settings=Settings())
