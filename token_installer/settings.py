from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3001

    # Shopify app credentials
    shopify_client_id: str
    shopify_client_secret: str
    shopify_scopes: str
    shopify_redirect_uri: str
    shopify_offline_token_expiring: bool = False

    # Security / policies
    state_ttl_seconds: int = 600
    state_sweep_interval_seconds: float = 60.0
    token_exchange_timeout_seconds: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "shopify_client_id",
        "shopify_client_secret",
        "shopify_scopes",
        "shopify_redirect_uri",
    )
    @classmethod
    def _required_non_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @model_validator(mode="after")
    def _secret_differs_from_client_id(self) -> "Settings":
        # An app secret equal to its client id means the env was copy-pasted
        # wrong, and every callback HMAC would fail.
        if self.shopify_client_secret == self.shopify_client_id:
            raise ValueError(
                "SHOPIFY_CLIENT_SECRET equals SHOPIFY_CLIENT_ID; refusing to start"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
