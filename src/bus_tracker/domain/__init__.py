"""Domain layer - core models, errors and ports."""

from bus_tracker.domain.errors import (
    AuthError,
    FetchError,
    ListenerDeliveryError,
    TransitError,
    UnauthenticatedOperationError,
)
from bus_tracker.domain.models import (
    AuthErrorCode,
    AuthSession,
    BusPosition,
    Departure,
    Route,
    SessionState,
    Stop,
)
from bus_tracker.domain.ports import (
    BusFetcher,
    BusListener,
    CredentialStore,
    DepartureFetcher,
    GeofenceService,
    RemoteFavoritesBackend,
)

__all__ = [
    "AuthError",
    "AuthErrorCode",
    "AuthSession",
    "BusFetcher",
    "BusListener",
    "BusPosition",
    "CredentialStore",
    "Departure",
    "DepartureFetcher",
    "FetchError",
    "GeofenceService",
    "ListenerDeliveryError",
    "RemoteFavoritesBackend",
    "Route",
    "SessionState",
    "Stop",
    "TransitError",
    "UnauthenticatedOperationError",
]
