from contextlib import asynccontextmanager
from fastapi import FastAPI

from token_installer.infrastructure.http.client import (
    close_http_client,
    open_http_client,
    get_http_client,
)
from token_installer.infrastructure.shopify.token_exchange import (
    ShopifyTokenExchangeAdapter,
)
from token_installer.infrastructure.state.memory_registry import InMemoryStateRegistry
from token_installer.logging import setup_logging
from token_installer.presentation.api import api
from token_installer.settings import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    await open_http_client(timeout=settings.token_exchange_timeout_seconds)

    # ONE shared exchange adapter, using the shared HTTP client
    token_exchange = ShopifyTokenExchangeAdapter(
        settings.shopify_client_id,
        settings.shopify_client_secret,
        client=get_http_client(),
        timeout=settings.token_exchange_timeout_seconds,
        expiring=settings.shopify_offline_token_expiring,
    )
    app.state.token_exchange = token_exchange  # expose to dependencies

    state_registry = InMemoryStateRegistry(
        ttl_seconds=settings.state_ttl_seconds,
        sweep_interval_seconds=settings.state_sweep_interval_seconds,
    )
    await state_registry.open()
    app.state.state_registry = state_registry

    try:
        yield
    finally:
        # shutdown
        await state_registry.close()
        await token_exchange.aclose()  # it won't close the shared client
        await close_http_client()  # closes the shared client


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Shop Token Installer", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(api)
    return app


app = create_app()
