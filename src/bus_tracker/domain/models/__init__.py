"""Domain models for bus tracking."""

from bus_tracker.domain.models.bus_position import BusPosition
from bus_tracker.domain.models.departure import Departure
from bus_tracker.domain.models.route import Route
from bus_tracker.domain.models.session import AuthErrorCode, AuthSession, SessionState
from bus_tracker.domain.models.stop import Stop

__all__ = [
    "AuthErrorCode",
    "AuthSession",
    "BusPosition",
    "Departure",
    "Route",
    "SessionState",
    "Stop",
]
