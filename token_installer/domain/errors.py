class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class InputValidationError(DomainError):
    """The request is malformed; the caller must fix it, nothing to retry."""

    pass


class InvalidShop(InputValidationError):
    """The shop parameter is missing or not a *.myshopify.com domain."""

    pass


class MissingCode(InputValidationError):
    """The callback carries no authorization code."""

    pass


class AuthenticationError(DomainError):
    """The callback could not be proven to come from Shopify for a flow we started."""

    pass


class InvalidState(AuthenticationError):
    """Unknown, expired or already used anti-forgery state."""

    pass


class InvalidSignature(AuthenticationError):
    """The callback HMAC does not match the one computed with our secret."""

    pass


class UpstreamError(DomainError):
    """The token exchange with Shopify did not produce an access token."""

    pass


class TokenExchangeFailed(UpstreamError):
    """Transport error, timeout or non-2xx response from the exchange endpoint."""

    pass


class MalformedTokenResponse(UpstreamError):
    """The exchange endpoint answered 2xx but without a usable access token."""

    pass
