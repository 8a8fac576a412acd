import logging
from urllib.parse import urlencode

from token_installer.domain.entities import InstallStage
from token_installer.domain.errors import InvalidShop
from token_installer.domain.ports.state_store import StateStorePort
from token_installer.domain.services import is_valid_shop

logger = logging.getLogger(__name__)


def build_authorize_url(
    shop: str, *, client_id: str, scopes: str, redirect_uri: str, state: str
) -> str:
    # No grant_options[]=per-user, so Shopify issues an offline token.
    query = urlencode(
        {
            "client_id": client_id,
            "scope": scopes,
            "redirect_uri": redirect_uri,
            "state": state,
        }
    )
    return f"https://{shop}/admin/oauth/authorize?{query}"


def start_install(
    shop: str | None,
    *,
    state_store: StateStorePort,
    client_id: str,
    scopes: str,
    redirect_uri: str,
) -> str:
    """Issue a one-time state for ``shop`` and return the authorize URL."""
    if not shop or not is_valid_shop(shop):
        logger.warning(
            "install rejected: invalid shop",
            extra={"shop": shop, "stage": InstallStage.START.value},
        )
        raise InvalidShop()

    state = state_store.issue()
    url = build_authorize_url(
        shop,
        client_id=client_id,
        scopes=scopes,
        redirect_uri=redirect_uri,
        state=state,
    )
    logger.info(
        "redirecting to Shopify authorize URL",
        extra={"shop": shop, "url": url, "stage": InstallStage.REDIRECTED.value},
    )
    return url
