"""Ports (interfaces) for the ports-and-adapters architecture."""

from bus_tracker.domain.ports.bus_fetcher import BusFetcher
from bus_tracker.domain.ports.bus_listener import BusListener
from bus_tracker.domain.ports.credential_store import (
    OAUTH_TOKEN_KEY,
    USER_EMAIL_KEY,
    CredentialStore,
)
from bus_tracker.domain.ports.departure_fetcher import DepartureFetcher
from bus_tracker.domain.ports.favorites_backend import ChildEventListener, RemoteFavoritesBackend
from bus_tracker.domain.ports.geofence_service import GeofenceService
from bus_tracker.domain.ports.token_provider import TokenProvider

__all__ = [
    "OAUTH_TOKEN_KEY",
    "USER_EMAIL_KEY",
    "BusFetcher",
    "BusListener",
    "ChildEventListener",
    "CredentialStore",
    "DepartureFetcher",
    "GeofenceService",
    "RemoteFavoritesBackend",
    "TokenProvider",
]
