# token_installer/domain/services.py
from __future__ import annotations

import hashlib
import hmac
import logging
import re
import secrets
from typing import Mapping, Sequence, Union
from urllib.parse import quote

logger = logging.getLogger(__name__)

ParamValue = Union[str, Sequence[str]]

SHOP_DOMAIN_RE = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9\-]*\.myshopify\.com")

# Fields carrying the signature itself; never part of the signed message.
SIGNATURE_FIELDS = ("hmac", "signature")

# Same unreserved set as JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def generate_state_token() -> str:
    """128 random bits, hex encoded."""
    return secrets.token_hex(16)


def is_valid_shop(shop: object) -> bool:
    if not isinstance(shop, str):
        return False
    return SHOP_DOMAIN_RE.fullmatch(shop) is not None


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison over the UTF-8 bytes of both strings.
    Different lengths compare unequal. Lone surrogates are encoded as-is
    so malformed input compares unequal instead of raising.
    """
    return hmac.compare_digest(
        a.encode("utf-8", "surrogatepass"), b.encode("utf-8", "surrogatepass")
    )


def percent_encode(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def build_hmac_message(params: Mapping[str, ParamValue]) -> str:
    """
    Canonical message Shopify signs: every param except the signature fields,
    list values comma-joined in received order, keys sorted, each pair
    URI-component encoded and joined with '&'.
    """
    pairs = []
    for key in sorted(k for k in params if k not in SIGNATURE_FIELDS):
        value = params[key]
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        pairs.append(f"{percent_encode(key)}={percent_encode(str(value))}")
    return "&".join(pairs)


def compute_hmac(message: str, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def verify_hmac(params: Mapping[str, ParamValue], secret: str) -> bool:
    """
    True only if params carry an 'hmac' matching HMAC-SHA256(secret, message).
    Never raises on bad input.
    """
    supplied = params.get("hmac")
    if not supplied or not isinstance(supplied, str):
        logger.error("hmac missing from callback", extra={"params": dict(params)})
        return False

    try:
        message = build_hmac_message(params)
    except UnicodeEncodeError:
        logger.error(
            "hmac verification failed: params not encodable",
            extra={"params": dict(params)},
        )
        return False
    calculated = compute_hmac(message, secret)

    if not secure_compare(calculated, supplied):
        logger.error(
            "hmac mismatch",
            extra={
                "params": dict(params),
                "message_string": message,
                "calculated_hmac": calculated,
                "shopify_hmac": supplied,
            },
        )
        return False

    return True
