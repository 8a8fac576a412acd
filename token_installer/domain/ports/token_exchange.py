from __future__ import annotations

from typing import Protocol

from token_installer.domain.entities import AccessGrant


class TokenExchangePort(Protocol):
    async def exchange(self, *, shop: str, code: str) -> AccessGrant:
        """Trade an authorization code for an access token.

        Raises UpstreamError when no token could be obtained.
        """
