"""Adapters layer - external system integrations."""

from bus_tracker.adapters.bt4u_api import Bt4uBusFetcher, Bt4uDepartureFetcher
from bus_tracker.adapters.config import AppConfig
from bus_tracker.adapters.credentials import InMemoryCredentialStore, JsonCredentialStore
from bus_tracker.adapters.favorites_backend import InMemoryFavoritesBackend
from bus_tracker.adapters.geofence import GeofenceRegistry

__all__ = [
    "AppConfig",
    "Bt4uBusFetcher",
    "Bt4uDepartureFetcher",
    "GeofenceRegistry",
    "InMemoryCredentialStore",
    "InMemoryFavoritesBackend",
    "JsonCredentialStore",
]
