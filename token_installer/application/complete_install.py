import logging
from typing import Mapping

from token_installer.domain.entities import AccessGrant, InstallStage
from token_installer.domain.errors import (
    InvalidShop,
    InvalidSignature,
    InvalidState,
    MissingCode,
)
from token_installer.domain.ports.state_store import StateStorePort
from token_installer.domain.ports.token_exchange import TokenExchangePort
from token_installer.domain.services import ParamValue, is_valid_shop, verify_hmac

logger = logging.getLogger(__name__)


def _single(params: Mapping[str, ParamValue], key: str) -> str | None:
    value = params.get(key)
    return value if isinstance(value, str) and value else None


async def complete_install(
    params: Mapping[str, ParamValue],
    *,
    state_store: StateStorePort,
    token_exchange: TokenExchangePort,
    client_secret: str,
) -> AccessGrant:
    """
    Validate a Shopify OAuth callback and trade its code for an access token.

    Gates run in order and each one short-circuits: shop, code, pending state,
    HMAC. The state is consumed only once the HMAC has been verified, and
    before the network call to Shopify.
    """
    shop = _single(params, "shop")
    code = _single(params, "code")
    state = _single(params, "state")

    stage = InstallStage.CALLBACK_RECEIVED
    if not shop or not is_valid_shop(shop):
        raise InvalidShop()
    if not code:
        raise MissingCode()
    if not state or not state_store.is_pending(state):
        logger.error(
            "invalid or missing state",
            extra={"shop": shop, "state": state, "stage": stage.value},
        )
        raise InvalidState()

    if not verify_hmac(params, client_secret):
        raise InvalidSignature()

    # one-time use, only after the request is authenticated
    if not state_store.consume(state):
        logger.error(
            "state expired or reused during callback",
            extra={"shop": shop, "state": state, "stage": stage.value},
        )
        raise InvalidState()
    logger.debug(
        "callback authenticated",
        extra={"shop": shop, "stage": InstallStage.VALIDATED.value},
    )

    stage = InstallStage.EXCHANGING
    logger.info(
        "exchanging code for access token",
        extra={"shop": shop, "stage": stage.value},
    )
    grant = await token_exchange.exchange(shop=shop, code=code)

    stage = InstallStage.DONE
    logger.info(
        "access token generated",
        extra={
            "shop": grant.shop,
            "access_token": grant.access_token,
            "scopes": grant.scope,
            "expires_in": grant.expires_in,
            "stage": stage.value,
        },
    )
    return grant
