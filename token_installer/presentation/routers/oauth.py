import logging
from html import escape
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from token_installer.application.complete_install import complete_install
from token_installer.application.start_install import start_install
from token_installer.domain.errors import (
    InvalidShop,
    InvalidSignature,
    InvalidState,
    MissingCode,
    UpstreamError,
)
from token_installer.domain.ports.state_store import StateStorePort
from token_installer.domain.ports.token_exchange import TokenExchangePort
from token_installer.domain.services import ParamValue
from token_installer.presentation.dependencies import (
    get_app_settings,
    get_state_store,
    get_token_exchange,
)
from token_installer.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["OAuth"])

SUCCESS_PAGE = """<h1>Success</h1>
<p>Token generated for <strong>{shop}</strong>.</p>
<p>Check your terminal logs for the access token.</p>"""


def query_params_of(request: Request) -> dict[str, ParamValue]:
    """Repeated keys become lists, in the order they were received."""
    params: dict[str, ParamValue] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        params[key] = values[0] if len(values) == 1 else values
    return params


@router.get("/install", status_code=302)
async def get_install(
    state_store: Annotated[StateStorePort, Depends(get_state_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    shop: Annotated[str | None, Query()] = None,
):
    try:
        url = start_install(
            shop,
            state_store=state_store,
            client_id=settings.shopify_client_id,
            scopes=settings.shopify_scopes,
            redirect_uri=settings.shopify_redirect_uri,
        )
    except InvalidShop:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ?shop parameter"
        )
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get("/auth/callback", response_class=HTMLResponse)
async def get_auth_callback(
    request: Request,
    state_store: Annotated[StateStorePort, Depends(get_state_store)],
    token_exchange: Annotated[TokenExchangePort, Depends(get_token_exchange)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    params = query_params_of(request)
    logger.info("received callback", extra={"params": params})

    try:
        grant = await complete_install(
            params,
            state_store=state_store,
            token_exchange=token_exchange,
            client_secret=settings.shopify_client_secret,
        )
    except InvalidShop:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid shop parameter"
        )
    except MissingCode:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Missing code parameter"
        )
    except InvalidState:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or missing state"
        )
    except InvalidSignature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="HMAC validation failed"
        )
    except UpstreamError as e:
        logger.error(
            "token exchange failed",
            extra={"shop": params.get("shop"), "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token exchange failed",
        )

    return HTMLResponse(SUCCESS_PAGE.format(shop=escape(grant.shop)))
