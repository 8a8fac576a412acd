from __future__ import annotations

from typing import Dict, Optional
import httpx
from pydantic import ValidationError

from token_installer.domain.entities import AccessGrant
from token_installer.domain.errors import MalformedTokenResponse, TokenExchangeFailed
from token_installer.domain.ports.token_exchange import TokenExchangePort
from token_installer.schemas.shopify import AccessTokenResponse


class ShopifyTokenExchangeAdapter(TokenExchangePort):
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
        expiring: bool = False,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._expiring = expiring
        self._timeout = timeout
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    def token_url(self, shop: str) -> str:
        return f"https://{shop}/admin/oauth/access_token"

    async def exchange(self, *, shop: str, code: str) -> AccessGrant:
        form: Dict[str, str] = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "code": code,
        }
        if self._expiring:
            # expiring offline token + refresh token
            form["expiring"] = "1"

        try:
            resp = await self._client.post(
                self.token_url(shop),
                data=form,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            raise TokenExchangeFailed(f"Shopify HTTP error: {e!r}") from e

        if not (200 <= resp.status_code < 300):
            text = resp.text[:200]
            raise TokenExchangeFailed(f"Shopify responded {resp.status_code}: {text}")

        try:
            body = AccessTokenResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise MalformedTokenResponse(
                f"No access_token in response: {resp.text[:200]}"
            ) from e

        return AccessGrant(
            shop=shop,
            access_token=body.access_token,
            scope=body.scope,
            expires_in=body.expires_in,
            refresh_token=body.refresh_token,
            refresh_token_expires_in=body.refresh_token_expires_in,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
