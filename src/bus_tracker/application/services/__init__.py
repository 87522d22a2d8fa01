"""Application services."""

from bus_tracker.application.services.bus_polling_scheduler import BusPollingScheduler
from bus_tracker.application.services.favorites_store import FavoritesStore
from bus_tracker.application.services.session_gate import AUTH_WAIT_TIMEOUT_SECONDS, SessionGate

__all__ = [
    "AUTH_WAIT_TIMEOUT_SECONDS",
    "BusPollingScheduler",
    "FavoritesStore",
    "SessionGate",
]
