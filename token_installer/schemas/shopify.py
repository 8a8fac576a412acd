from pydantic import BaseModel, ConfigDict, Field


class AccessTokenResponse(BaseModel):
    """Body of POST /admin/oauth/access_token."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    scope: str | None = None
    # Only present for the expiring offline token variant.
    expires_in: int | None = None
    refresh_token: str | None = None
    refresh_token_expires_in: int | None = None
