from dataclasses import dataclass, field
from enum import Enum


class InstallStage(str, Enum):
    START = "start"
    REDIRECTED = "redirected"
    CALLBACK_RECEIVED = "callback_received"
    VALIDATED = "validated"
    EXCHANGING = "exchanging"
    DONE = "done"


@dataclass
class AccessGrant:
    shop: str
    access_token: str = field(repr=False)
    scope: str | None = ""
    expires_in: int | None = None
    refresh_token: str | None = field(default=None, repr=False)
    refresh_token_expires_in: int | None = None

    def __post_init__(self):
        if not self.access_token:
            raise ValueError("access_token is required")
        if self.scope is None:
            self.scope = ""

    @property
    def scopes(self) -> list[str]:
        return [s.strip() for s in self.scope.split(",") if s.strip()]

    @property
    def is_expiring(self) -> bool:
        return self.expires_in is not None
