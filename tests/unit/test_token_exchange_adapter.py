from urllib.parse import parse_qs

import httpx
import pytest

from token_installer.domain.errors import (
    MalformedTokenResponse,
    TokenExchangeFailed,
    UpstreamError,
)
from token_installer.infrastructure.shopify.token_exchange import (
    ShopifyTokenExchangeAdapter,
)


def make_adapter(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    adapter = ShopifyTokenExchangeAdapter("cid", "csecret", client=client, **kwargs)
    return adapter, client


@pytest.mark.asyncio
async def test_exchange_posts_form_and_returns_grant():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["content_type"] = request.headers.get("Content-Type")
        seen["accept"] = request.headers.get("Accept")
        seen["form"] = parse_qs(request.content.decode("utf-8"))
        return httpx.Response(
            200, json={"access_token": "shpat_123", "scope": "read_products"}
        )

    adapter, client = make_adapter(handler)
    grant = await adapter.exchange(shop="abc.myshopify.com", code="c0de")

    assert seen["method"] == "POST"
    assert seen["url"] == "https://abc.myshopify.com/admin/oauth/access_token"
    assert seen["content_type"] == "application/x-www-form-urlencoded"
    assert seen["accept"] == "application/json"
    assert seen["form"] == {
        "client_id": ["cid"],
        "client_secret": ["csecret"],
        "code": ["c0de"],
    }
    assert grant.shop == "abc.myshopify.com"
    assert grant.access_token == "shpat_123"
    assert grant.scopes == ["read_products"]
    assert not grant.is_expiring

    await client.aclose()


@pytest.mark.asyncio
async def test_expiring_variant_sends_flag_and_reads_refresh_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["form"] = parse_qs(request.content.decode("utf-8"))
        return httpx.Response(
            200,
            json={
                "access_token": "shpat_exp",
                "scope": "read_products,write_orders",
                "expires_in": 86399,
                "refresh_token": "shprt_1",
                "refresh_token_expires_in": 7775999,
            },
        )

    adapter, client = make_adapter(handler, expiring=True)
    grant = await adapter.exchange(shop="abc.myshopify.com", code="c0de")

    assert seen["form"]["expiring"] == ["1"]
    assert grant.is_expiring
    assert grant.expires_in == 86399
    assert grant.refresh_token == "shprt_1"
    assert grant.scopes == ["read_products", "write_orders"]
    assert "shpat_exp" not in repr(grant)

    await client.aclose()


@pytest.mark.asyncio
async def test_non_2xx_raises_token_exchange_failed():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="invalid_request: code was already used")

    adapter, client = make_adapter(handler)
    with pytest.raises(TokenExchangeFailed) as ei:
        await adapter.exchange(shop="abc.myshopify.com", code="c0de")

    assert "Shopify responded 400" in str(ei.value)
    assert "already used" in str(ei.value)
    assert isinstance(ei.value, UpstreamError)

    await client.aclose()


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"scope": "read_products"}),
        httpx.Response(200, json={"access_token": "", "scope": "x"}),
        httpx.Response(200, json={"access_token": None}),
        httpx.Response(200, text="<html>not json</html>"),
    ],
)
@pytest.mark.asyncio
async def test_missing_access_token_is_malformed(response):
    adapter, client = make_adapter(lambda _: response)
    with pytest.raises(MalformedTokenResponse):
        await adapter.exchange(shop="abc.myshopify.com", code="c0de")

    await client.aclose()


@pytest.mark.asyncio
async def test_timeout_is_wrapped_as_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    adapter, client = make_adapter(handler)
    with pytest.raises(TokenExchangeFailed) as ei:
        await adapter.exchange(shop="abc.myshopify.com", code="c0de")

    assert isinstance(ei.value.__cause__, httpx.ReadTimeout)

    await client.aclose()


@pytest.mark.asyncio
async def test_network_error_is_wrapped_as_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    adapter, client = make_adapter(handler)
    with pytest.raises(UpstreamError) as ei:
        await adapter.exchange(shop="abc.myshopify.com", code="c0de")

    assert "Shopify HTTP error:" in str(ei.value)

    await client.aclose()


@pytest.mark.asyncio
async def test_aclose_closes_owned_client_only():
    owned = ShopifyTokenExchangeAdapter("cid", "csecret")
    await owned.aclose()
    assert owned._client.is_closed  # type: ignore[attr-defined]

    shared_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda _: httpx.Response(200))
    )
    not_owned = ShopifyTokenExchangeAdapter("cid", "csecret", client=shared_client)

    await not_owned.aclose()
    assert shared_client.is_closed is False

    await shared_client.aclose()


@pytest.mark.asyncio
async def test_null_scope_still_yields_a_grant():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "shpat_1", "scope": None})

    adapter, client = make_adapter(handler)
    grant = await adapter.exchange(shop="abc.myshopify.com", code="c0de")

    assert grant.access_token == "shpat_1"
    assert grant.scope == ""
    assert grant.scopes == []

    await client.aclose()
