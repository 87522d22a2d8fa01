"""Credential store port."""

from typing import Protocol

OAUTH_TOKEN_KEY = "google_oauth_token"
USER_EMAIL_KEY = "user_email"


class CredentialStore(Protocol):
    """Small persisted key-value store for session resumption."""

    def get(self, key: str) -> str | None:
        """Get a stored value, or None."""
        ...

    def put(self, key: str, value: str) -> None:
        """Store a value."""
        ...

    def remove(self, *keys: str) -> None:
        """Remove values. Missing keys are ignored."""
        ...
