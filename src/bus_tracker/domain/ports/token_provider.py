"""Token provider port."""

from typing import Protocol


class TokenProvider(Protocol):
    """Fetches a fresh OAuth token for a known account."""

    async def fetch_token(self, email: str) -> str:
        """Get a new token for the account with ``email``."""
        ...
