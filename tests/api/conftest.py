import pytest
from fastapi.testclient import TestClient

from token_installer.main import create_app
from token_installer.presentation.dependencies import (
    get_state_store,
    get_token_exchange,
)


@pytest.fixture()
def app_and_deps(registry, token_exchange):
    app = create_app()

    def _get_state_store():
        return registry

    def _get_token_exchange():
        return token_exchange

    app.dependency_overrides[get_state_store] = _get_state_store
    app.dependency_overrides[get_token_exchange] = _get_token_exchange

    try:
        yield app, registry, token_exchange
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False, follow_redirects=False)
