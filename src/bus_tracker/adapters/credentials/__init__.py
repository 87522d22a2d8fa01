"""Credential store adapters."""

from bus_tracker.adapters.credentials.json_credential_store import (
    InMemoryCredentialStore,
    JsonCredentialStore,
)

__all__ = ["InMemoryCredentialStore", "JsonCredentialStore"]
