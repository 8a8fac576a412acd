from fastapi import Request

from token_installer.domain.ports.state_store import StateStorePort
from token_installer.domain.ports.token_exchange import TokenExchangePort
from token_installer.settings import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


def get_state_store(request: Request) -> StateStorePort:
    # This is set in token_installer.main lifespan()
    return request.app.state.state_registry


def get_token_exchange(request: Request) -> TokenExchangePort:
    # This is set in token_installer.main lifespan()
    return request.app.state.token_exchange
