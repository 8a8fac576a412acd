import os

# token_installer.main reads settings at import time
os.environ.setdefault("SHOPIFY_CLIENT_ID", "test-client-id")
os.environ.setdefault("SHOPIFY_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("SHOPIFY_SCOPES", "read_products,write_orders")
os.environ.setdefault("SHOPIFY_REDIRECT_URI", "http://localhost:3001/auth/callback")

import pytest  # noqa: E402

from token_installer.domain.services import build_hmac_message, compute_hmac  # noqa: E402
from token_installer.infrastructure.state.memory_registry import (  # noqa: E402
    InMemoryStateRegistry,
)
from tests.fakes import FakeClock, FakeTokenExchange  # noqa: E402

SECRET = os.environ["SHOPIFY_CLIENT_SECRET"]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry(clock):
    return InMemoryStateRegistry(ttl_seconds=600, clock=clock)


@pytest.fixture()
def token_exchange():
    return FakeTokenExchange()


@pytest.fixture()
def sign():
    """Return params with a valid 'hmac' added, signed with SECRET by default."""

    def _sign(params: dict, secret: str = SECRET) -> dict:
        signed = dict(params)
        signed["hmac"] = compute_hmac(build_hmac_message(params), secret)
        return signed

    return _sign
