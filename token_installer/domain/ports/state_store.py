from typing import Protocol


class StateStorePort(Protocol):
    def issue(self) -> str:
        """Create a new one-time state token and remember it."""

    def is_pending(self, token: str) -> bool:
        """True if the token is known and not expired. Does not consume it."""

    def consume(self, token: str) -> bool:
        """True if the token was valid (and then delete it for single-use), else False."""

    def sweep(self) -> int:
        """Drop expired tokens, return how many were removed."""
